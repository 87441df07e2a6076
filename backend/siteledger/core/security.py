"""
Credential hashing and identity tokens.

Identity tokens are HS256 JWTs carrying
``{id, username, role, site, company, iat, exp}``.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import bcrypt
import jwt
from pydantic import BaseModel

from siteledger.core.config import settings
from siteledger.core.exceptions import InvalidToken

logger = logging.getLogger(__name__)


class Identity(BaseModel):
    """Verified token payload of the calling account."""
    id: int
    username: str
    role: str
    site: Optional[str] = None
    company: Optional[str] = None
    iat: Optional[int] = None
    exp: Optional[int] = None

    @property
    def has_tenant(self) -> bool:
        return bool(self.site) and bool(self.company)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash"""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.warning(f"Password verification error: {e}")
        return False


def create_access_token(
    user_id: int,
    username: str,
    role: str,
    site: Optional[str] = None,
    company: Optional[str] = None,
    expires_minutes: Optional[int] = None
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "id": user_id,
        "username": username,
        "role": role,
        "site": site or None,
        "company": company or None,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Identity:
    """
    Verify a token and return its payload.

    Raises:
        InvalidToken: signature invalid, payload malformed or token expired
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise InvalidToken("Token has expired. Please login again.")
    except jwt.InvalidTokenError as e:
        logger.info(f"Authentication error: {e}")
        raise InvalidToken()

    try:
        return Identity(**payload)
    except ValueError:
        raise InvalidToken()
