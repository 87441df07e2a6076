"""
Role rules consulted before every mutating or privileged read operation.
"""
from typing import Dict, FrozenSet, Optional, Set, Tuple
import enum
import logging

from sqlalchemy.orm import Session

from siteledger.core.exceptions import AuthenticationRequired, AuthorizationDenied, InvalidRequest
from siteledger.core.security import Identity
from siteledger.core.structured_logging import log_access_decision
from siteledger.models.user import Role
from siteledger.services.ownership import resolve_allowed_usernames

logger = logging.getLogger(__name__)


class Operation(str, enum.Enum):
    MANAGE_MATERIAL = "manage_material"
    VIEW_MATERIALS = "view_materials"
    SUBMIT_LEDGER = "submit_ledger"
    VIEW_LEDGER = "view_ledger"
    COMPUTE_TOTALS = "compute_totals"
    VIEW_SITE_OVERVIEW = "view_site_overview"
    LIST_USERS = "list_users"


_ADMIN = Role.ADMIN.value
_MANAGER = Role.MANAGER.value
_USER = Role.USER.value

RULES: Dict[Operation, FrozenSet[str]] = {
    Operation.MANAGE_MATERIAL: frozenset({_ADMIN}),
    Operation.VIEW_MATERIALS: frozenset({_ADMIN, _MANAGER, _USER}),
    Operation.SUBMIT_LEDGER: frozenset({_ADMIN, _USER}),
    Operation.VIEW_LEDGER: frozenset({_ADMIN, _MANAGER, _USER}),
    Operation.COMPUTE_TOTALS: frozenset({_ADMIN, _MANAGER}),
    Operation.VIEW_SITE_OVERVIEW: frozenset({_ADMIN, _MANAGER}),
    Operation.LIST_USERS: frozenset({_ADMIN, _MANAGER}),
}

DENIAL_MESSAGES = {
    Operation.MANAGE_MATERIAL: "Access denied. Only site administrators can manage materials with pricing information.",
    Operation.SUBMIT_LEDGER: "Access denied. Managers do not submit ledger entries.",
    Operation.COMPUTE_TOTALS: "Access denied. Manager privileges required.",
    Operation.VIEW_SITE_OVERVIEW: "Access denied. Manager privileges required.",
    Operation.LIST_USERS: "Access denied. Manager privileges required.",
}

# Which account role may create which target role
REGISTRATION_RULES: Dict[Optional[str], FrozenSet[str]] = {
    None: frozenset({_USER}),  # anonymous self-registration
    _ADMIN: frozenset({_USER}),
    _MANAGER: frozenset({_ADMIN}),
    _USER: frozenset(),
}


def is_allowed(identity: Identity, operation: Operation) -> bool:
    return identity.role in RULES[operation]


def authorize(identity: Identity, operation: Operation) -> None:
    """
    Raises:
        AuthorizationDenied: the caller's role may not invoke the operation
    """
    allowed = is_allowed(identity, operation)
    if not allowed:
        log_access_decision(operation.value, False, identity.username, identity.role, reason="role")
        raise AuthorizationDenied(
            DENIAL_MESSAGES.get(operation, "You do not have permission to perform this action.")
        )


def visible_usernames(db: Session, identity: Identity) -> Optional[Set[str]]:
    """
    Record owners the caller may see inside the resolved tenant.

    Returns:
        None for admins (whole tenant), the ownership chain for managers and
        the caller alone for users.
    """
    if identity.role == _ADMIN:
        return None
    if identity.role == _MANAGER:
        return resolve_allowed_usernames(db, identity.id, identity.username)
    return {identity.username}


def check_registration(
    creator: Optional[Identity],
    target_role: str,
    site: Optional[str],
    company: Optional[str]
) -> Tuple[str, str]:
    """
    Apply the account-creation hierarchy.

    Args:
        creator: identity of the caller, None for anonymous registration
        target_role: role of the account to create
        site: requested site
        company: requested company

    Returns:
        (site, company) to store. An admin with a site always plants users
        in that site, whatever was requested.

    Raises:
        AuthenticationRequired: anonymous caller asked for a staff account
        AuthorizationDenied: creator's role may not create target_role
        InvalidRequest: unknown role or a user account without site/company
    """
    if target_role not in {r.value for r in Role}:
        raise InvalidRequest(f"Unknown role '{target_role}'")

    creator_role = creator.role if creator is not None else None
    if creator is None and target_role != _USER:
        log_access_decision(f"register_{target_role}", False, reason="anonymous")
        raise AuthenticationRequired("Authentication required to create admin/manager account")

    if target_role not in REGISTRATION_RULES.get(creator_role, frozenset()):
        log_access_decision(
            f"register_{target_role}", False, creator.username, creator_role, reason="hierarchy"
        )
        raise AuthorizationDenied(f"A {creator_role} cannot create {target_role} accounts")

    site = (site or "").strip()
    company = (company or "").strip()

    if creator_role == _ADMIN and creator.site:
        if site and site.lower() != creator.site.lower():
            logger.info(
                f"Admin {creator.username} requested site '{site}', forcing '{creator.site}'"
            )
        site = creator.site
        company = company or (creator.company or "")

    if target_role == _USER and (not site or not company):
        raise InvalidRequest("Site and company are required for user accounts")

    if creator is not None:
        log_access_decision(f"register_{target_role}", True, creator.username, creator_role, site=site)
    return site, company
