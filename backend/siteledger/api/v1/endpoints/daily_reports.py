from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from siteledger.api.deps import get_identity, get_request_meta, get_tenant_handles
from siteledger.core.database import get_db
from siteledger.core.security import Identity
from siteledger.schemas.ledger import DailyReportResponse, UsageItem, UsageSubmission
from siteledger.services import ledger_service
from siteledger.services.activity_log import RequestMeta
from siteledger.services.tenant_registry import TenantHandles

router = APIRouter()


@router.get("", response_model=List[DailyReportResponse])
def list_daily_reports(
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_ledger(db, handles.daily_reports, identity)


@router.get("/date/{on_date}", response_model=List[DailyReportResponse])
def daily_reports_by_date(
    on_date: date,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_ledger(db, handles.daily_reports, identity, on_date=on_date)


@router.get("/range", response_model=List[DailyReportResponse])
def daily_reports_by_range(
    start: Optional[date] = None,
    end: Optional[date] = None,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_ledger(db, handles.daily_reports, identity, start_date=start, end_date=end)


@router.post("", response_model=List[DailyReportResponse], status_code=status.HTTP_201_CREATED)
def add_daily_reports(
    submission: UsageSubmission,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    """Submit usage rows. Prices come from the site catalog; unknown materials reject the whole batch."""
    return ledger_service.submit_daily_reports(handles, identity, submission.materials, meta)


@router.put("/{report_id}", response_model=DailyReportResponse)
def update_daily_report(
    report_id: int,
    item: UsageItem,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    return ledger_service.update_daily_report(handles, identity, report_id, item, meta)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_daily_report(
    report_id: int,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    ledger_service.delete_daily_report(handles, identity, report_id, meta)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
