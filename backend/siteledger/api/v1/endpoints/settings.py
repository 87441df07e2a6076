from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from siteledger.api.deps import get_identity, get_tenant_handles
from siteledger.core.database import get_db
from siteledger.core.security import Identity
from siteledger.schemas.auth import UserResponse, UserSiteDetails
from siteledger.services.auth_service import AuthService
from siteledger.services.site_service import collect_statistics
from siteledger.services.tenant_registry import TenantHandles

router = APIRouter()


@router.get("/user-site-details", response_model=UserSiteDetails)
def user_site_details(
    identity: Identity = Depends(get_identity),
    handles: TenantHandles = Depends(get_tenant_handles),
    db: Session = Depends(get_db)
):
    """Stored profile of the caller plus record counts for their site"""
    user = AuthService.current_user(db, identity)
    return UserSiteDetails(
        user_details=UserResponse.model_validate(user),
        site_statistics=collect_statistics(handles)
    )
