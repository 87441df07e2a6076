from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from siteledger.api.deps import get_identity, get_request_meta, get_tenant_handles
from siteledger.core.database import get_db
from siteledger.core.security import Identity
from siteledger.schemas.ledger import MaterialCreate, MaterialResponse, MaterialUpdate
from siteledger.services import ledger_service
from siteledger.services.activity_log import RequestMeta
from siteledger.services.tenant_registry import TenantHandles

router = APIRouter()


@router.get("", response_model=List[MaterialResponse])
def list_materials(
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    return ledger_service.list_materials(db, handles, identity)


@router.post("", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
def create_material(
    material: MaterialCreate,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    """Add a catalog entry (site administrators only)"""
    return ledger_service.create_material(handles, identity, material, meta)


@router.put("", response_model=MaterialResponse)
def update_material(
    material: MaterialUpdate,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    return ledger_service.update_material(handles, identity, material, meta)


@router.delete("/{material_name}")
def delete_material(
    material_name: str,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    meta: RequestMeta = Depends(get_request_meta)
):
    ledger_service.delete_material(handles, identity, material_name, meta)
    return {"message": "Material deleted successfully"}


@router.get("/check/{material_name}")
def check_material_exists(
    material_name: str,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles)
):
    return {"exists": ledger_service.material_exists(handles, identity, material_name)}


@router.get("/search/{material_name}", response_model=MaterialResponse)
def search_material(
    material_name: str,
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles)
):
    return ledger_service.get_material(handles, identity, material_name)
