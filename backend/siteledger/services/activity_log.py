"""
Best-effort audit trail. A failed audit write is logged and dropped; it never
aborts the mutation that triggered it.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from siteledger.core.security import Identity
from siteledger.models.ledger import ActivityAction
from siteledger.services.tenant_registry import TenantHandles

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestMeta:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def log_action(
    handles: TenantHandles,
    actor: Optional[Identity],
    action: ActivityAction,
    resource: str,
    resource_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    meta: Optional[RequestMeta] = None
) -> None:
    """
    Append an entry to the tenant's activity log.

    Args:
        handles: tenant the mutation happened in
        actor: identity that performed it
        action: create, update or delete
        resource: record kind, e.g. "dailyReport"
        resource_id: id of the affected record
        details: small JSON-serialisable summary of the change
        meta: caller IP address and user agent
    """
    meta = meta or RequestMeta()
    try:
        handles.activity_logs.append(
            username=actor.username if actor else "unknown",
            role=actor.role if actor else "unknown",
            action=ActivityAction(action).value,
            resource=resource,
            resource_id=resource_id,
            details=details or {},
            ip_address=meta.ip_address,
            user_agent=meta.user_agent or ""
        )
    except Exception as e:
        logger.warning(f"Activity log write failed for {resource} {resource_id} in {handles.key}: {e}")
