"""
Tenant registry: one isolated database per (site, company).

The first request for a tenant opens its database, creates the ledger tables
and builds the handle bundle; every later request for the same tenant key gets
the cached bundle back. Definition is serialised per tenant key, so concurrent
first requests for one tenant define the schema exactly once while other
tenants proceed independently.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional
import logging
import os
import re
import threading
import time

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from siteledger.core.config import settings
from siteledger.core.database import TenantBase, engine_kwargs_for
from siteledger.core.exceptions import SiteAccessDenied, StorageUnavailable
from siteledger.core.structured_logging import log_tenant_event, log_tenant_opened
from siteledger.models.ledger import DailyReport, Received, TotalPrice
from siteledger.services.record_store import ActivityLogStore, MaterialStore, RecordStore

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_tenant_key(site: Optional[str], company: Optional[str]) -> str:
    """
    Derive the storage key of a tenant.

    "Site A" / "Comp-X" -> "site_a_comp_x". Lookups are case-insensitive;
    display values keep their original case elsewhere.

    Raises:
        SiteAccessDenied: site or company missing
    """
    site = (site or "").strip()
    company = (company or "").strip()
    if not site or not company:
        raise SiteAccessDenied("Site and company are required")
    return _NON_ALNUM.sub("_", f"{site}_{company}".lower())


@dataclass(frozen=True)
class TenantHandles:
    """
    Data-access handles for one tenant database.

    Shared by every caller whose site/company normalise to the same key, so it
    carries no display names; responses take those from the resolved TenantContext.
    """
    key: str
    engine: Engine
    session_factory: sessionmaker
    materials: MaterialStore
    daily_reports: RecordStore[DailyReport]
    received: RecordStore[Received]
    total_prices: RecordStore[TotalPrice]
    activity_logs: ActivityLogStore


class TenantRegistry:
    """Process-wide cache of tenant engines and handle bundles."""

    def __init__(self, url_template: Optional[str] = None):
        self.url_template = url_template or settings.TENANT_DATABASE_URL
        self._handles: Dict[str, TenantHandles] = {}
        self._engines: Dict[str, Engine] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def database_url(self, tenant_key: str) -> str:
        return self.url_template.replace("{tenant_key}", tenant_key)

    def get_tenant_handles(self, site: str, company: str) -> TenantHandles:
        """
        Return the handle bundle of a tenant, creating it on first access.

        Args:
            site: site name as given by the caller (any case)
            company: company name as given by the caller (any case)

        Returns:
            The cached TenantHandles; identical object for every call with the same key

        Raises:
            SiteAccessDenied: site or company missing
            StorageUnavailable: tenant database could not be opened
        """
        key = normalize_tenant_key(site, company)

        # Fast path, no locking once the tenant is known
        handles = self._handles.get(key)
        if handles is not None:
            return handles

        with self._lock_for(key):
            handles = self._handles.get(key)
            if handles is None:
                handles = self._create_handles(key, site.strip(), company.strip())
                self._handles[key] = handles
        return handles

    def is_cached(self, site: str, company: str) -> bool:
        return normalize_tenant_key(site, company) in self._handles

    def tenant_keys(self) -> List[str]:
        return sorted(self._handles)

    def shutdown(self) -> None:
        """Dispose every tenant engine and forget all cached bundles."""
        with self._lock:
            for key, engine in self._engines.items():
                try:
                    engine.dispose()
                except Exception as e:
                    logger.error(f"Error closing connection to {key}: {e}")
            closed = len(self._engines)
            self._engines.clear()
            self._handles.clear()
            self._key_locks.clear()
        logger.info(f"Closed {closed} tenant database connection(s)")

    def _lock_for(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def _open_engine(self, key: str) -> Engine:
        engine = self._engines.get(key)
        if engine is not None:
            return engine

        url = self.database_url(key)
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
            directory = os.path.dirname(os.path.abspath(parsed.database))
            os.makedirs(directory, exist_ok=True)
        else:
            self._ensure_database(key, parsed)

        engine = create_engine(url, **engine_kwargs_for(url))
        with self._lock:
            self._engines[key] = engine
        return engine

    def _ensure_database(self, key: str, url: URL) -> None:
        """
        Create the tenant database on a PostgreSQL server when it does not exist yet.

        CREATE DATABASE cannot run inside a transaction, so this goes through an
        AUTOCOMMIT connection to the server's maintenance database.

        Raises:
            StorageUnavailable: server unreachable or database could not be created
        """
        if url.get_backend_name() != "postgresql" or not url.database:
            return

        maintenance = create_engine(url.set(database="postgres"), isolation_level="AUTOCOMMIT")
        try:
            with maintenance.connect() as connection:
                exists = connection.execute(
                    text("SELECT 1 FROM pg_database WHERE datname = :name"),
                    {"name": url.database}
                ).scalar()
                if not exists:
                    quoted = url.database.replace('"', '""')
                    connection.execute(text(f'CREATE DATABASE "{quoted}"'))
                    logger.info(f"Created tenant database {url.database}")
                    log_tenant_event("tenant_database_created", tenant_key=key, database=url.database)
        except OperationalError as e:
            logger.error(f"Failed to create tenant database {url.database}: {e}")
            log_tenant_event("tenant_open_failed", tenant_key=key, error=str(e))
            raise StorageUnavailable() from e
        finally:
            maintenance.dispose()

    def _create_handles(self, key: str, site: str, company: str) -> TenantHandles:
        started = time.perf_counter()
        engine = self._open_engine(key)
        try:
            TenantBase.metadata.create_all(engine)
        except OperationalError as e:
            logger.error(f"Failed to open tenant database {key}: {e}")
            log_tenant_event("tenant_open_failed", tenant_key=key, error=str(e))
            raise StorageUnavailable() from e

        session_factory = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False
        )
        handles = TenantHandles(
            key=key,
            engine=engine,
            session_factory=session_factory,
            materials=MaterialStore(session_factory),
            daily_reports=RecordStore(DailyReport, session_factory, "daily_report"),
            received=RecordStore(Received, session_factory, "received"),
            total_prices=RecordStore(TotalPrice, session_factory, "total_price"),
            activity_logs=ActivityLogStore(session_factory),
        )
        log_tenant_opened(key, site, company, duration_ms=round((time.perf_counter() - started) * 1000, 2))
        return handles


_tenant_registry: Optional[TenantRegistry] = None
_registry_lock = threading.Lock()


def get_tenant_registry() -> TenantRegistry:
    """Get or create the process-wide tenant registry (thread-safe singleton)"""
    global _tenant_registry

    # Double-check locking pattern for thread safety
    if _tenant_registry is None:
        with _registry_lock:
            if _tenant_registry is None:
                logger.info("Creating new TenantRegistry instance")
                _tenant_registry = TenantRegistry()

    return _tenant_registry


def shutdown_tenant_registry() -> None:
    if _tenant_registry is not None:
        _tenant_registry.shutdown()
