"""
Material catalog and usage ledger operations inside one tenant.

Every function takes the tenant's handle bundle, so an operation can only
ever touch the tenant resolved for the request. Usage submissions copy the
catalog prices onto each row at insertion time; later catalog changes never
rewrite submitted rows.
"""
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Set
import logging

from sqlalchemy.orm import Session

from siteledger.core.exceptions import AuthorizationDenied, DuplicateMaterial, MaterialNotFound, RecordNotFound
from siteledger.core.security import Identity
from siteledger.models.ledger import ActivityAction, DailyReport, Material, Received, TotalPrice
from siteledger.models.user import Role
from siteledger.schemas.ledger import MaterialCreate, MaterialUpdate, ReceivedItem, UsageItem
from siteledger.services.activity_log import RequestMeta, log_action
from siteledger.services.authorization import Operation, authorize, visible_usernames
from siteledger.services.record_store import RecordStore
from siteledger.services.tenant_registry import TenantHandles

logger = logging.getLogger(__name__)

RESOURCE_MATERIAL = "material"
RESOURCE_DAILY_REPORT = "dailyReport"
RESOURCE_RECEIVED = "received"
RESOURCE_TOTAL_PRICE = "totalPrice"


# ---------------------------------------------------------------------------
# Material catalog
# ---------------------------------------------------------------------------

def list_materials(db: Session, handles: TenantHandles, identity: Identity) -> List[Material]:
    """Catalog sorted by name; managers only see materials created within their chain."""
    authorize(identity, Operation.VIEW_MATERIALS)
    usernames = None
    if identity.role == Role.MANAGER.value:
        usernames = visible_usernames(db, identity)
    return handles.materials.find(usernames=usernames)


def material_exists(handles: TenantHandles, identity: Identity, material_name: str) -> bool:
    authorize(identity, Operation.VIEW_MATERIALS)
    return handles.materials.find_by_name(material_name) is not None


def get_material(handles: TenantHandles, identity: Identity, material_name: str) -> Material:
    authorize(identity, Operation.VIEW_MATERIALS)
    material = handles.materials.find_by_name(material_name)
    if material is None:
        raise RecordNotFound(RESOURCE_MATERIAL, material_name)
    return material


def create_material(
    handles: TenantHandles,
    identity: Identity,
    data: MaterialCreate,
    meta: Optional[RequestMeta] = None
) -> Material:
    authorize(identity, Operation.MANAGE_MATERIAL)
    if handles.materials.find_by_name(data.material_name) is not None:
        raise DuplicateMaterial(data.material_name)

    # The unique constraint still decides between concurrent creators
    material = handles.materials.insert_many([{**data.model_dump(), "created_by": identity.username}])[0]
    logger.info(f"Material '{material.material_name}' created in {handles.key} by {identity.username}")
    log_action(
        handles, identity, ActivityAction.CREATE, RESOURCE_MATERIAL, material.id,
        {"material_name": material.material_name, "unit": material.unit}, meta
    )
    return material


def update_material(
    handles: TenantHandles,
    identity: Identity,
    data: MaterialUpdate,
    meta: Optional[RequestMeta] = None
) -> Material:
    """Update or rename a catalog entry. Historical usage rows keep the old name."""
    authorize(identity, Operation.MANAGE_MATERIAL)
    original = handles.materials.find_by_name(data.original_material_name)
    if original is None:
        raise RecordNotFound(RESOURCE_MATERIAL, data.original_material_name)
    if data.material_name != data.original_material_name:
        if handles.materials.find_by_name(data.material_name) is not None:
            raise DuplicateMaterial(data.material_name)

    patch: Dict[str, Any] = data.model_dump(exclude={"original_material_name"})
    if not original.created_by:
        # legacy rows without an owner
        patch["created_by"] = identity.username
    material = handles.materials.update_by_name(data.original_material_name, patch)
    log_action(
        handles, identity, ActivityAction.UPDATE, RESOURCE_MATERIAL, material.id,
        {
            "material_name": material.material_name,
            "previous_name": data.original_material_name,
            "material_price": material.material_price,
            "labor_price": material.labor_price,
        },
        meta
    )
    return material


def delete_material(
    handles: TenantHandles,
    identity: Identity,
    material_name: str,
    meta: Optional[RequestMeta] = None
) -> Material:
    authorize(identity, Operation.MANAGE_MATERIAL)
    material = handles.materials.delete_by_name(material_name)
    log_action(
        handles, identity, ActivityAction.DELETE, RESOURCE_MATERIAL, material.id,
        {"material_name": material.material_name}, meta
    )
    return material


# ---------------------------------------------------------------------------
# Usage ledgers
# ---------------------------------------------------------------------------

def _catalog_for(handles: TenantHandles, names: Sequence[str]) -> Dict[str, Material]:
    """Catalog entries for every name, or MaterialNotFound for the first missing one."""
    catalog = handles.materials.find_by_names(names)
    for name in names:
        if name not in catalog:
            raise MaterialNotFound(name)
    return catalog


def _daily_report_values(item: UsageItem, material: Material) -> Dict[str, Any]:
    return {
        "date": item.date,
        "material_name": item.material_name,
        "quantity": item.quantity,
        "unit": item.unit or material.unit,
        "location": item.location,
        "notes": item.notes,
        "material_price": material.material_price,
        "labour_price": material.labor_price,
    }


def _received_values(item: ReceivedItem, material: Material) -> Dict[str, Any]:
    return {
        "date": item.date,
        "material_name": item.material_name,
        "quantity": item.quantity,
        "unit": item.unit or material.unit,
        "supplier": item.supplier,
        "location": item.location,
        "notes": item.notes,
    }


def _total_price_values(item: UsageItem, material: Material) -> Dict[str, Any]:
    material_cost = item.quantity * material.material_price
    labor_cost = item.quantity * material.labor_price
    return {
        "date": item.date,
        "material_name": item.material_name,
        "quantity": item.quantity,
        "unit": item.unit or material.unit,
        "location": item.location,
        "notes": item.notes,
        "material_price": material.material_price,
        "labor_price": material.labor_price,
        "material_cost": material_cost,
        "labor_cost": labor_cost,
        "total_price": material_cost + labor_cost,
    }


def _audit_details(record) -> Dict[str, Any]:
    details = {"material_name": record.material_name, "quantity": record.quantity, "unit": record.unit}
    total = getattr(record, "total_price", None)
    if total is not None:
        details["total_price"] = total
    return details


def _submit(
    handles: TenantHandles,
    identity: Identity,
    store: RecordStore,
    resource: str,
    items: Sequence[UsageItem],
    build: Callable[[Any, Material], Dict[str, Any]],
    meta: Optional[RequestMeta]
) -> List[Any]:
    authorize(identity, Operation.SUBMIT_LEDGER)
    catalog = _catalog_for(handles, [item.material_name for item in items])
    records = [
        {**build(item, catalog[item.material_name]), "username": identity.username}
        for item in items
    ]
    created = store.insert_many(records)
    logger.info(f"{len(created)} {resource} row(s) added in {handles.key} by {identity.username}")
    for record in created:
        log_action(handles, identity, ActivityAction.CREATE, resource, record.id, _audit_details(record), meta)
    return created


def _owned_record(store: RecordStore, identity: Identity, record_id: int):
    record = store.get(record_id)
    if record is None:
        raise RecordNotFound(store.resource, record_id)
    if identity.role == Role.USER.value and record.username != identity.username:
        raise AuthorizationDenied("You can only modify your own entries.")
    return record


def _update(
    handles: TenantHandles,
    identity: Identity,
    store: RecordStore,
    resource: str,
    record_id: int,
    item: UsageItem,
    build: Callable[[Any, Material], Dict[str, Any]],
    meta: Optional[RequestMeta]
):
    authorize(identity, Operation.SUBMIT_LEDGER)
    _owned_record(store, identity, record_id)
    catalog = _catalog_for(handles, [item.material_name])
    record = store.find_by_id_and_update(record_id, build(item, catalog[item.material_name]))
    log_action(handles, identity, ActivityAction.UPDATE, resource, record.id, _audit_details(record), meta)
    return record


def _delete(
    handles: TenantHandles,
    identity: Identity,
    store: RecordStore,
    resource: str,
    record_id: int,
    meta: Optional[RequestMeta]
):
    authorize(identity, Operation.SUBMIT_LEDGER)
    _owned_record(store, identity, record_id)
    record = store.find_by_id_and_delete(record_id)
    log_action(handles, identity, ActivityAction.DELETE, resource, record.id, _audit_details(record), meta)
    return record


def list_ledger(
    db: Session,
    store: RecordStore,
    identity: Identity,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    on_date: Optional[date] = None
) -> List[Any]:
    """
    Rows of one ledger visible to the caller.

    Admins see the whole tenant, managers their ownership chain and users
    their own rows.
    """
    authorize(identity, Operation.VIEW_LEDGER)
    usernames: Optional[Set[str]] = visible_usernames(db, identity)
    if on_date is not None:
        start_date = end_date = on_date
    return store.find(usernames=usernames, start_date=start_date, end_date=end_date)


def submit_daily_reports(handles, identity, items: Sequence[UsageItem], meta=None) -> List[DailyReport]:
    """Store usage rows with the catalog prices of the moment. All rows or none."""
    return _submit(handles, identity, handles.daily_reports, RESOURCE_DAILY_REPORT, items, _daily_report_values, meta)


def update_daily_report(handles, identity, report_id: int, item: UsageItem, meta=None) -> DailyReport:
    """Rewrite a usage row; prices are re-copied from the current catalog."""
    return _update(
        handles, identity, handles.daily_reports, RESOURCE_DAILY_REPORT, report_id, item, _daily_report_values, meta
    )


def delete_daily_report(handles, identity, report_id: int, meta=None) -> DailyReport:
    return _delete(handles, identity, handles.daily_reports, RESOURCE_DAILY_REPORT, report_id, meta)


def submit_received(handles, identity, items: Sequence[ReceivedItem], meta=None) -> List[Received]:
    return _submit(handles, identity, handles.received, RESOURCE_RECEIVED, items, _received_values, meta)


def update_received(handles, identity, record_id: int, item: ReceivedItem, meta=None) -> Received:
    return _update(handles, identity, handles.received, RESOURCE_RECEIVED, record_id, item, _received_values, meta)


def delete_received(handles, identity, record_id: int, meta=None) -> Received:
    return _delete(handles, identity, handles.received, RESOURCE_RECEIVED, record_id, meta)


def submit_total_prices(handles, identity, items: Sequence[UsageItem], meta=None) -> List[TotalPrice]:
    return _submit(handles, identity, handles.total_prices, RESOURCE_TOTAL_PRICE, items, _total_price_values, meta)


def update_total_price(handles, identity, record_id: int, item: UsageItem, meta=None) -> TotalPrice:
    return _update(
        handles, identity, handles.total_prices, RESOURCE_TOTAL_PRICE, record_id, item, _total_price_values, meta
    )


def delete_total_price(handles, identity, record_id: int, meta=None) -> TotalPrice:
    return _delete(handles, identity, handles.total_prices, RESOURCE_TOTAL_PRICE, record_id, meta)
