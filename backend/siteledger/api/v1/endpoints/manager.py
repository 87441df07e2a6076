"""
Site overview endpoints for managers and admins.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from siteledger.api.deps import get_identity, get_tenant_context, get_tenant_handles
from siteledger.core.database import get_db
from siteledger.core.security import Identity
from siteledger.schemas.ledger import ActivityLogResponse, MaterialResponse, SiteStatistics
from siteledger.schemas.totals import TotalsResponse
from siteledger.services import ledger_service, site_service
from siteledger.services.tenant_context import TenantContext
from siteledger.services.tenant_registry import TenantHandles

router = APIRouter()


@router.get("/site/calculate-total-prices", response_model=TotalsResponse)
def calculate_total_prices(
    start_date: date,
    end_date: date,
    identity: Identity = Depends(get_identity),
    context: TenantContext = Depends(get_tenant_context),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    """
    Per-material cost totals for the resolved site and date range.

    Managers only see rows submitted by accounts in their chain.
    """
    report = site_service.site_totals(db, handles, identity, start_date, end_date)
    return TotalsResponse(
        rows=report.rows,
        summary=report.summary,
        site=context.site,
        company=context.company,
        start_date=start_date,
        end_date=end_date
    )


@router.get("/site/materials", response_model=List[MaterialResponse])
def site_materials(
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_materials(db, handles, identity)


@router.get("/site/statistics", response_model=SiteStatistics)
def site_statistics(
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return site_service.site_statistics(db, handles, identity)


@router.get("/site/activity-logs", response_model=List[ActivityLogResponse])
def site_activity_logs(
    limit: Optional[int] = Query(None),
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return site_service.site_activity_logs(db, handles, identity, limit)
