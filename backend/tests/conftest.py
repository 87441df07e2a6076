import os
import tempfile

# Settings are read at import time; point them at throwaway databases first
_TEST_DIR = tempfile.mkdtemp(prefix="siteledger-tests-")
os.environ["SECRET_KEY"] = "test-secret-key-for-siteledger-0123456789"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'global.db')}"
os.environ["TENANT_DATABASE_URL"] = f"sqlite:///{_TEST_DIR}/tenants/{{tenant_key}}.db"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from siteledger.core.database import Base, SessionLocal, engine
from siteledger.core.security import Identity, create_access_token, hash_password
from siteledger.main import app
from siteledger.models.user import Role, User
from siteledger.services.tenant_registry import TenantRegistry, get_tenant_registry


@pytest.fixture
def db():
    Base.metadata.create_all(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def registry(tmp_path):
    reg = TenantRegistry(f"sqlite:///{tmp_path}/{{tenant_key}}.db")
    yield reg
    reg.shutdown()


@pytest.fixture
def handles(registry):
    return registry.get_tenant_handles("SiteA", "CompX")


@pytest.fixture
def make_user(db):
    def _make_user(username, role=Role.USER, site="", company="", created_by=None, password="secret123"):
        user = User(
            username=username,
            password_hash=hash_password(password),
            role=Role(role).value,
            site=site,
            company=company,
            created_by_id=created_by.id if created_by else None,
            created_by_username=created_by.username if created_by else None,
            created_by_role=created_by.role if created_by else None
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


def identity_for(user: User) -> Identity:
    return Identity(
        id=user.id,
        username=user.username,
        role=user.role,
        site=user.site or None,
        company=user.company or None
    )


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.username, user.role, user.site, user.company)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db, registry):
    app.dependency_overrides[get_tenant_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
