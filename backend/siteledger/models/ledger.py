"""
Tenant-scoped tables. These live on TenantBase and are created inside each
tenant database by the tenant registry, never in the global database.
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, JSON, UniqueConstraint
from sqlalchemy.sql import func
import enum
from siteledger.core.database import TenantBase


class ActivityAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Material(TenantBase):
    """Price catalog entry. Usage rows reference it by name."""
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    material_name = Column(String(255), nullable=False)
    unit = Column(String(50), nullable=False)
    material_price = Column(Float, nullable=False)
    labor_price = Column(Float, nullable=False)
    created_by = Column(String(255), index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("material_name", name="uq_materials_material_name"),
    )


class DailyReport(TenantBase):
    """Material usage event. Prices are a copy taken at insertion time."""
    __tablename__ = "daily_reports"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(255), index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    material_name = Column(String(255), index=True, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)
    material_price = Column(Float, nullable=False)
    labour_price = Column(Float, nullable=False)
    location = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Received(TenantBase):
    """Incoming stock event."""
    __tablename__ = "received"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(255), index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    material_name = Column(String(255), index=True, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)
    supplier = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class TotalPrice(TenantBase):
    """Priced usage event carrying its derived costs."""
    __tablename__ = "total_prices"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(255), index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    material_name = Column(String(255), index=True, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)
    material_price = Column(Float, nullable=False)
    labor_price = Column(Float, nullable=False)
    material_cost = Column(Float, nullable=False)
    labor_cost = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)
    location = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ActivityLog(TenantBase):
    """Append-only audit trail."""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(255), index=True, nullable=False)
    role = Column(String(20), nullable=True)
    action = Column(String(20), nullable=False)
    resource = Column(String(50), nullable=False)
    resource_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
