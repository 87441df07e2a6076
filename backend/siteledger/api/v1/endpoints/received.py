from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from siteledger.api.deps import get_identity, get_request_meta, get_tenant_handles
from siteledger.core.database import get_db
from siteledger.core.security import Identity
from siteledger.schemas.ledger import ReceivedItem, ReceivedResponse, ReceivedSubmission
from siteledger.services import ledger_service
from siteledger.services.activity_log import RequestMeta
from siteledger.services.tenant_registry import TenantHandles

router = APIRouter()


@router.get("", response_model=List[ReceivedResponse])
def list_received(
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_ledger(db, handles.received, identity)


@router.get("/date/{on_date}", response_model=List[ReceivedResponse])
def received_by_date(
    on_date: date,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_ledger(db, handles.received, identity, on_date=on_date)


@router.get("/range", response_model=List[ReceivedResponse])
def received_by_range(
    start: Optional[date] = None,
    end: Optional[date] = None,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_ledger(db, handles.received, identity, start_date=start, end_date=end)


@router.post("", response_model=List[ReceivedResponse], status_code=status.HTTP_201_CREATED)
def add_received(
    submission: ReceivedSubmission,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    return ledger_service.submit_received(handles, identity, submission.materials, meta)


@router.put("/{record_id}", response_model=ReceivedResponse)
def update_received(
    record_id: int,
    item: ReceivedItem,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    return ledger_service.update_received(handles, identity, record_id, item, meta)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_received(
    record_id: int,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    ledger_service.delete_received(handles, identity, record_id, meta)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
