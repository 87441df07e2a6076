"""
Account registration, login and user listings (global database).
"""
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
import logging

from siteledger.core.config import settings
from siteledger.core.exceptions import DuplicateUsername, InvalidCredentials, InvalidRequest, RecordNotFound
from siteledger.core.security import Identity, create_access_token, hash_password, verify_password
from siteledger.models.user import Role, User
from siteledger.schemas.auth import LoginRequest, RegisterRequest
from siteledger.services.authorization import Operation, authorize, check_registration

logger = logging.getLogger(__name__)

STAFF_ROLES = (Role.ADMIN.value, Role.MANAGER.value)


class AuthService:
    """Manages accounts and the identity tokens issued for them."""

    @staticmethod
    def username_taken(db: Session, username: str, role: str, site: str, company: str) -> bool:
        """
        Check the uniqueness rules for usernames.

        Admin/manager usernames are unique among all staff accounts; user
        usernames are unique within their (site, company). Comparison ignores
        case, matching login.
        """
        query = db.query(User.id).filter(func.lower(User.username) == username.lower())
        if role in STAFF_ROLES:
            query = query.filter(User.role.in_(STAFF_ROLES))
        else:
            query = query.filter(
                User.role == Role.USER.value,
                func.lower(User.site) == site.lower(),
                func.lower(User.company) == company.lower()
            )
        return query.first() is not None

    @staticmethod
    def register(db: Session, creator: Optional[Identity], request: RegisterRequest) -> User:
        """
        Create an account, enforcing the creator hierarchy.

        Args:
            db: Global database session
            creator: identity of the caller, None for self-registration
            request: requested account

        Returns:
            The stored User

        Raises:
            AuthenticationRequired, AuthorizationDenied: hierarchy violated
            DuplicateUsername: username already in use for this scope
        """
        role = request.role.value
        site, company = check_registration(creator, role, request.site, request.company)

        if AuthService.username_taken(db, request.username, role, site, company):
            raise DuplicateUsername(request.username)

        user = User(
            username=request.username,
            password_hash=hash_password(request.password),
            role=role,
            site=site,
            company=company,
            created_by_id=creator.id if creator else None,
            created_by_username=creator.username if creator else None,
            created_by_role=creator.role if creator else None
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateUsername(request.username)
        db.refresh(user)

        logger.info(
            f"Registered {role} '{user.username}' for site '{site}'"
            f" (created by {creator.username if creator else 'self-registration'})"
        )
        return user

    @staticmethod
    def login(db: Session, request: LoginRequest) -> Tuple[str, User]:
        """
        Verify credentials and issue an identity token.

        Managers log in by username alone; admins and users must also name
        their site and company (case-insensitive). A user and a staff account
        may share a name on one site, so every matching account is tried,
        exact-case usernames first, and the first whose password verifies wins.

        Raises:
            InvalidRequest: site/company missing for an admin or user login
            InvalidCredentials: no matching account or wrong password
        """
        candidates = db.query(User).filter(
            func.lower(User.username) == request.username.lower()
        ).order_by(User.id.asc()).all()

        site = (request.site or "").strip().lower()
        company = (request.company or "").strip().lower()
        managers = [c for c in candidates if c.role == Role.MANAGER.value]
        if not managers and (not site or not company):
            raise InvalidRequest("Site and company are required for admin/user login")

        matching = [
            c for c in candidates
            if c.role == Role.MANAGER.value
            or (
                (c.site or "").strip().lower() == site
                and (c.company or "").strip().lower() == company
            )
        ]
        matching.sort(key=lambda c: c.username != request.username)

        user = next((c for c in matching if verify_password(request.password, c.password_hash)), None)
        if user is None:
            logger.info(f"Failed login for '{request.username}'")
            raise InvalidCredentials()

        token = create_access_token(user.id, user.username, user.role, user.site, user.company)
        logger.info(f"Login successful for '{user.username}' ({user.role})")
        return token, user

    @staticmethod
    def current_user(db: Session, identity: Identity) -> User:
        user = db.get(User, identity.id)
        if user is None:
            raise RecordNotFound("user", identity.id)
        return user

    @staticmethod
    def recent_users(db: Session, identity: Identity, limit: Optional[int] = None) -> List[User]:
        """
        Accounts the caller is responsible for, newest first.

        Managers: accounts they created and accounts created by their admins.
        Admins: accounts of their own site, or the ones they created when
        they administer no site.
        """
        authorize(identity, Operation.LIST_USERS)
        query = db.query(User)
        if identity.role == Role.MANAGER.value:
            admin_ids = select(User.id).where(
                User.created_by_id == identity.id,
                User.role == Role.ADMIN.value
            )
            query = query.filter(or_(
                User.created_by_id == identity.id,
                User.created_by_id.in_(admin_ids)
            ))
        elif identity.site:
            query = query.filter(func.lower(User.site) == identity.site.lower())
        else:
            query = query.filter(User.created_by_id == identity.id)

        return query.order_by(User.created_at.desc(), User.id.desc()).limit(
            limit or settings.RECENT_USERS_LIMIT
        ).all()
