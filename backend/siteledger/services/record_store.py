"""
Per-tenant record stores.

A store is bound to one tenant's session factory when the tenant registry
builds the tenant's handle bundle, so every query it runs is confined to that
tenant database. There is no way to build a store without a bundle.
"""
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, Sequence, Type, TypeVar
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from siteledger.core.exceptions import DuplicateMaterial, RecordNotFound, StorageUnavailable
from siteledger.models.ledger import ActivityLog, Material

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# Columns a caller may never set through insert/update payloads
PROTECTED_FIELDS = {"id", "created_at", "updated_at"}


class _BaseStore(Generic[ModelT]):
    resource = "record"
    owner_field = "username"

    def __init__(self, model: Type[ModelT], session_factory: sessionmaker):
        self.model = model
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except OperationalError as e:
            session.rollback()
            logger.error(f"Storage error on {self.resource}: {e}")
            raise StorageUnavailable() from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _filtered(
        self,
        session: Session,
        usernames: Optional[Iterable[str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **criteria
    ):
        query = session.query(self.model)
        if usernames is not None:
            query = query.filter(getattr(self.model, self.owner_field).in_(list(usernames)))
        date_column = getattr(self.model, "date", None)
        if start_date is not None and date_column is not None:
            query = query.filter(date_column >= start_date)
        if end_date is not None and date_column is not None:
            query = query.filter(date_column <= end_date)
        for field, value in criteria.items():
            query = query.filter(getattr(self.model, field) == value)
        return query

    def _default_order(self):
        date_column = getattr(self.model, "date", None)
        if date_column is not None:
            return [date_column.asc(), self.model.id.asc()]
        return [self.model.id.asc()]

    def find(
        self,
        usernames: Optional[Iterable[str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
        **criteria
    ) -> List[ModelT]:
        """
        Query records of this kind.

        Args:
            usernames: restrict to rows owned by these usernames; None means unfiltered
            start_date: inclusive lower date bound (ledger kinds only)
            end_date: inclusive upper date bound (ledger kinds only)
            order_by: column expressions, defaults to date then id
            limit: maximum number of rows
            **criteria: column == value equality filters
        """
        with self._session() as session:
            query = self._filtered(session, usernames, start_date, end_date, **criteria)
            query = query.order_by(*(order_by or self._default_order()))
            if limit is not None:
                query = query.limit(limit)
            return query.all()

    def find_one(self, **criteria) -> Optional[ModelT]:
        with self._session() as session:
            return self._filtered(session, **criteria).order_by(self.model.id.asc()).first()

    def get(self, record_id: int) -> Optional[ModelT]:
        with self._session() as session:
            return session.get(self.model, record_id)

    def count(self, usernames: Optional[Iterable[str]] = None, **criteria) -> int:
        with self._session() as session:
            query = self._filtered(session, usernames, **criteria)
            return query.with_entities(func.count(self.model.id)).scalar() or 0


class RecordStore(_BaseStore[ModelT]):
    """CRUD over one ledger kind inside one tenant database."""

    def __init__(self, model: Type[ModelT], session_factory: sessionmaker, resource: str):
        super().__init__(model, session_factory)
        self.resource = resource

    def _clean(self, values: Dict[str, Any]) -> Dict[str, Any]:
        columns = set(self.model.__table__.columns.keys())
        return {k: v for k, v in values.items() if k in columns and k not in PROTECTED_FIELDS}

    def insert_many(self, records: Sequence[Dict[str, Any]]) -> List[ModelT]:
        """Insert all records in one transaction; either all are stored or none."""
        with self._session() as session:
            objects = [self.model(**self._clean(record)) for record in records]
            session.add_all(objects)
            session.flush()
            for obj in objects:
                session.refresh(obj)
            return objects

    def find_by_id_and_update(self, record_id: int, patch: Dict[str, Any]) -> ModelT:
        with self._session() as session:
            obj = session.get(self.model, record_id)
            if obj is None:
                raise RecordNotFound(self.resource, record_id)
            for field, value in self._clean(patch).items():
                setattr(obj, field, value)
            session.flush()
            session.refresh(obj)
            return obj

    def find_by_id_and_delete(self, record_id: int) -> ModelT:
        with self._session() as session:
            obj = session.get(self.model, record_id)
            if obj is None:
                raise RecordNotFound(self.resource, record_id)
            session.delete(obj)
            return obj


class MaterialStore(RecordStore[Material]):
    """Tenant price catalog. material_name is unique per tenant."""

    owner_field = "created_by"

    def __init__(self, session_factory: sessionmaker):
        super().__init__(Material, session_factory, "material")

    def _default_order(self):
        return [Material.material_name.asc()]

    def find_by_name(self, material_name: str) -> Optional[Material]:
        return self.find_one(material_name=material_name)

    def find_by_names(self, material_names: Iterable[str]) -> Dict[str, Material]:
        names = set(material_names)
        with self._session() as session:
            rows = session.query(Material).filter(Material.material_name.in_(names)).all()
            return {row.material_name: row for row in rows}

    def insert_many(self, records: Sequence[Dict[str, Any]]) -> List[Material]:
        try:
            return super().insert_many(records)
        except IntegrityError as e:
            name = self._colliding_name(records)
            logger.info(f"Duplicate material rejected: {name}")
            raise DuplicateMaterial(name) from e

    def _colliding_name(self, records: Sequence[Dict[str, Any]]) -> str:
        names = [r.get("material_name") for r in records]
        seen = set()
        for name in names:
            if name in seen:
                return name
            seen.add(name)
        existing = self.find_by_names(names)
        for name in names:
            if name in existing:
                return name
        return names[0] if names else ""

    def update_by_name(self, original_name: str, patch: Dict[str, Any]) -> Material:
        """Update (and possibly rename) a catalog entry. Usage rows keep their old name."""
        new_name = patch.get("material_name", original_name)
        try:
            with self._session() as session:
                obj = session.query(Material).filter(Material.material_name == original_name).first()
                if obj is None:
                    raise RecordNotFound(self.resource, original_name)
                for field, value in self._clean(patch).items():
                    setattr(obj, field, value)
                session.flush()
                session.refresh(obj)
                return obj
        except IntegrityError as e:
            raise DuplicateMaterial(new_name) from e

    def delete_by_name(self, material_name: str) -> Material:
        with self._session() as session:
            obj = session.query(Material).filter(Material.material_name == material_name).first()
            if obj is None:
                raise RecordNotFound(self.resource, material_name)
            session.delete(obj)
            return obj


class ActivityLogStore(_BaseStore[ActivityLog]):
    """Append-only audit trail: no update or delete surface."""

    resource = "activity_log"

    def __init__(self, session_factory: sessionmaker):
        super().__init__(ActivityLog, session_factory)

    def append(self, **fields) -> ActivityLog:
        with self._session() as session:
            entry = ActivityLog(**fields)
            session.add(entry)
            session.flush()
            session.refresh(entry)
            return entry

    def recent(self, usernames: Optional[Iterable[str]] = None, limit: int = 50) -> List[ActivityLog]:
        return self.find(
            usernames=usernames,
            order_by=[ActivityLog.timestamp.desc(), ActivityLog.id.desc()],
            limit=limit
        )
