from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from typing import Any, Dict
from siteledger.core.config import settings


def engine_kwargs_for(url: str) -> Dict[str, Any]:
    """create_engine() keyword arguments suited to the database dialect."""
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if parsed.database in (None, "", ":memory:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True}


# Global database: user accounts only. Ledger data lives in per-tenant
# databases handed out by services.tenant_registry.
engine = create_engine(settings.DATABASE_URL, **engine_kwargs_for(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Tables created inside every tenant database
TenantBase = declarative_base()


def create_db_and_tables() -> None:
    Base.metadata.create_all(engine)


def get_db():
    """Dependency for getting synchronous database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
