"""
Account endpoints: registration, login/logout and user listings.
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Optional
import logging

from siteledger.api.deps import get_identity, get_optional_identity
from siteledger.core.config import settings
from siteledger.core.database import get_db
from siteledger.core.security import Identity
from siteledger.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserListResponse,
    UserResponse
)
from siteledger.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    creator: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db)
):
    """Register an account. Admin and manager accounts require a staff token."""
    user = AuthService.register(db, creator, request)
    return RegisterResponse(user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(
    request: LoginRequest,
    response: Response,
    db: Session = Depends(get_db)
):
    token, user = AuthService.login(db, request)
    response.set_cookie(
        settings.TOKEN_COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )
    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(
        settings.TOKEN_COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="strict"
    )
    return {"success": True, "message": "Logout successful"}


@router.get("/me", response_model=UserResponse)
def current_user(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return AuthService.current_user(db, identity)


@router.get("/users/recent", response_model=UserListResponse)
def recent_users(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    users = AuthService.recent_users(db, identity)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.get("/db-status")
def database_status(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Database status check failed: {e}")
        db_status = "disconnected"
    return {
        "success": True,
        "database": {
            "status": db_status,
            "dialect": db.get_bind().dialect.name
        }
    }
