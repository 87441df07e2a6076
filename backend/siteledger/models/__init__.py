from siteledger.models.user import User, Role
from siteledger.models.ledger import Material, DailyReport, Received, TotalPrice, ActivityLog, ActivityAction

__all__ = ["User", "Role", "Material", "DailyReport", "Received", "TotalPrice", "ActivityLog", "ActivityAction"]
