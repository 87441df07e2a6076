"""
Resolve which tenant a request operates on.

Order, first match wins:
1. site and company carried by the identity token
2. site/company hints on the request (managers and admins only)
3. for managers without a site: the site/company of a user they created
4. SiteAccessDenied
"""
from dataclasses import dataclass
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from siteledger.core.exceptions import SiteAccessDenied
from siteledger.core.security import Identity
from siteledger.core.structured_logging import log_tenant_event
from siteledger.models.user import Role, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantHints:
    """Tenant requested by the caller via query parameters or X-Site/X-Company headers."""
    site: Optional[str] = None
    company: Optional[str] = None

    @property
    def complete(self) -> bool:
        return bool(self.site) and bool(self.company)


@dataclass(frozen=True)
class TenantContext:
    site: str
    company: str
    source: str  # identity, hints or inferred


def resolve_tenant(db: Session, identity: Identity, hints: Optional[TenantHints] = None) -> TenantContext:
    """
    Determine the authoritative tenant for a request.

    The identity itself is never modified; hints apply to this request only.

    Raises:
        SiteAccessDenied: no rule produced a tenant
    """
    if identity.has_tenant:
        return TenantContext(identity.site, identity.company, "identity")

    hints = hints or TenantHints()
    if identity.role in (Role.MANAGER.value, Role.ADMIN.value) and hints.complete:
        return TenantContext(str(hints.site).strip(), str(hints.company).strip(), "hints")

    if identity.role == Role.MANAGER.value:
        inferred = _tenant_of_created_user(db, identity.id)
        if inferred is not None:
            log_tenant_event(
                "tenant_inferred",
                username=identity.username,
                role=identity.role,
                site=inferred.site,
                company=inferred.company
            )
            return inferred

    log_tenant_event("site_access_denied", username=identity.username, role=identity.role)
    raise SiteAccessDenied()


def _tenant_of_created_user(db: Session, manager_id: int) -> Optional[TenantContext]:
    try:
        owned = db.query(User.site, User.company).filter(
            User.created_by_id == manager_id,
            User.site != "",
            User.company != ""
        ).order_by(User.created_at.asc(), User.id.asc()).first()
    except SQLAlchemyError as e:
        logger.error(f"Could not infer tenant for manager {manager_id}: {e}")
        return None
    if owned is None:
        return None
    return TenantContext(owned.site, owned.company, "inferred")
