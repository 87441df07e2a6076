"""Site overview for managers and admins: record counts and the activity log."""
from datetime import date
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from siteledger.core.config import settings
from siteledger.core.security import Identity
from siteledger.models.ledger import ActivityLog
from siteledger.schemas.ledger import SiteStatistics
from siteledger.schemas.totals import TotalsReport
from siteledger.services.aggregation import calculate_totals
from siteledger.services.authorization import Operation, authorize, visible_usernames
from siteledger.services.tenant_registry import TenantHandles

logger = logging.getLogger(__name__)


def collect_statistics(handles: TenantHandles, usernames=None) -> SiteStatistics:
    return SiteStatistics(
        daily_reports=handles.daily_reports.count(usernames=usernames),
        materials=handles.materials.count(usernames=usernames),
        received_items=handles.received.count(usernames=usernames),
        total_prices=handles.total_prices.count(usernames=usernames),
    )


def site_statistics(db: Session, handles: TenantHandles, identity: Identity) -> SiteStatistics:
    authorize(identity, Operation.VIEW_SITE_OVERVIEW)
    return collect_statistics(handles, visible_usernames(db, identity))


def site_activity_logs(
    db: Session,
    handles: TenantHandles,
    identity: Identity,
    limit: Optional[int] = None
) -> List[ActivityLog]:
    """Newest entries first; the limit is clamped to [1, ACTIVITY_LOG_MAX_LIMIT]."""
    authorize(identity, Operation.VIEW_SITE_OVERVIEW)
    if limit is None:
        limit = settings.ACTIVITY_LOG_DEFAULT_LIMIT
    limit = max(1, min(settings.ACTIVITY_LOG_MAX_LIMIT, int(limit)))
    return handles.activity_logs.recent(usernames=visible_usernames(db, identity), limit=limit)


def site_totals(
    db: Session,
    handles: TenantHandles,
    identity: Identity,
    start_date: date,
    end_date: date
) -> TotalsReport:
    """Aggregated costs; unfiltered for admins, ownership-filtered for managers."""
    authorize(identity, Operation.COMPUTE_TOTALS)
    return calculate_totals(handles, visible_usernames(db, identity), start_date, end_date)
