from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from siteledger.api.deps import get_identity, get_request_meta, get_tenant_handles
from siteledger.core.database import get_db
from siteledger.core.security import Identity
from siteledger.schemas.ledger import TotalPriceResponse, UsageItem, UsageSubmission
from siteledger.schemas.totals import PriceCalculationRequest, PriceCalculationResponse
from siteledger.services import ledger_service
from siteledger.services.activity_log import RequestMeta
from siteledger.services.aggregation import price_items
from siteledger.services.authorization import Operation, authorize
from siteledger.services.tenant_registry import TenantHandles

router = APIRouter()


@router.get("", response_model=List[TotalPriceResponse])
def list_total_prices(
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_ledger(db, handles.total_prices, identity)


@router.get("/date/{on_date}", response_model=List[TotalPriceResponse])
def total_prices_by_date(
    on_date: date,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_ledger(db, handles.total_prices, identity, on_date=on_date)


@router.get("/range", response_model=List[TotalPriceResponse])
def total_prices_by_range(
    start: Optional[date] = None,
    end: Optional[date] = None,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_ledger(db, handles.total_prices, identity, start_date=start, end_date=end)


@router.post("", response_model=List[TotalPriceResponse], status_code=status.HTTP_201_CREATED)
def add_total_prices(
    submission: UsageSubmission,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    return ledger_service.submit_total_prices(handles, identity, submission.materials, meta)


@router.post("/calculate", response_model=PriceCalculationResponse)
def calculate_prices(
    request: PriceCalculationRequest,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles)
):
    """Price usage lines against the catalog without storing them"""
    authorize(identity, Operation.VIEW_MATERIALS)
    items = price_items(handles, request.materials)
    return PriceCalculationResponse(items=items, grand_total=sum(i.total_price for i in items))


@router.put("/{record_id}", response_model=TotalPriceResponse)
def update_total_price(
    record_id: int,
    item: UsageItem,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    return ledger_service.update_total_price(handles, identity, record_id, item, meta)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_total_price(
    record_id: int,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    ledger_service.delete_total_price(handles, identity, record_id, meta)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
