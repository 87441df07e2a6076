from sqlalchemy import Column, Integer, String, DateTime, Index, text
from sqlalchemy.sql import func
import enum
from siteledger.core.database import Base


class Role(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class User(Base):
    """Account record. Stored globally, scoped to a tenant by site/company."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(255), index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.USER.value)
    site = Column(String(255), nullable=False, default="")
    company = Column(String(255), nullable=False, default="")

    # Creator snapshot; null for self-registered and seeded accounts
    created_by_id = Column(Integer, index=True, nullable=True)
    created_by_username = Column(String(255), nullable=True)
    created_by_role = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        # usernames compare case-insensitively, as login does.
        # username is unique per tenant for role=user ...
        Index(
            "uq_users_tenant_username",
            func.lower(username), func.lower(site), func.lower(company),
            unique=True,
            sqlite_where=text("role = 'user'"),
            postgresql_where=text("role = 'user'"),
        ),
        # ... and globally unique among admins and managers
        Index(
            "uq_users_staff_username",
            func.lower(username),
            unique=True,
            sqlite_where=text("role IN ('admin', 'manager')"),
            postgresql_where=text("role IN ('admin', 'manager')"),
        ),
    )

    @property
    def created_by(self):
        if self.created_by_id is None:
            return None
        return {
            "id": self.created_by_id,
            "username": self.created_by_username,
            "role": self.created_by_role,
        }
