"""
Request dependencies: identity, tenant resolution and tenant handles.
"""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from siteledger.core.config import settings
from siteledger.core.database import get_db
from siteledger.core.exceptions import AuthenticationRequired
from siteledger.core.security import Identity, decode_access_token
from siteledger.services.activity_log import RequestMeta
from siteledger.services.tenant_context import TenantContext, TenantHints, resolve_tenant
from siteledger.services.tenant_registry import TenantHandles, TenantRegistry, get_tenant_registry


def get_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, falling back to the token cookie."""
    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(settings.TOKEN_COOKIE_NAME) or None


def get_optional_identity(request: Request) -> Optional[Identity]:
    """Identity when a token is sent; a token that fails verification is rejected, not ignored."""
    token = get_token(request)
    if token is None:
        return None
    return decode_access_token(token)


def get_identity(identity: Optional[Identity] = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise AuthenticationRequired()
    return identity


def get_tenant_hints(request: Request) -> TenantHints:
    return TenantHints(
        site=request.query_params.get("site") or request.headers.get("x-site"),
        company=request.query_params.get("company") or request.headers.get("x-company")
    )


def get_tenant_context(
    identity: Identity = Depends(get_identity),
    hints: TenantHints = Depends(get_tenant_hints),
    db: Session = Depends(get_db)
) -> TenantContext:
    return resolve_tenant(db, identity, hints)


def get_tenant_handles(
    context: TenantContext = Depends(get_tenant_context),
    registry: TenantRegistry = Depends(get_tenant_registry)
) -> TenantHandles:
    return registry.get_tenant_handles(context.site, context.company)


def get_request_meta(request: Request) -> RequestMeta:
    return RequestMeta(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent", "")
    )
