# services/repository.py
"""
Repository adapter - the only door the billing core uses to reach storage.

The core talks to `Repository`; `SqlAlchemyRepository` is the production
implementation over a SQLAlchemy session. Entity types are the model
classes themselves (Invoice, InvoiceItem, ...).

Writes are flushed immediately so generated ids and database errors show up
at the call site. Committing and rolling back are left to whoever owns the
session (the request-scoped `get_session` dependency in the API); a failed
flush is reported as a BillingError and the session is left for the owner
to roll back.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Type, TypeVar

from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .errors import (
     BillingError,
     ConflictError,
     NotFoundError,
     PermissionDeniedError,
     RepositoryError,
     TransientError,
     ValidationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Repository(ABC):
     """Abstract CRUD + list over the billing entity types."""

     @abstractmethod
     def create(self, entity_type: Type[T], fields: Mapping[str, Any]) -> T:
          ...

     @abstractmethod
     def get(self, entity_type: Type[T], record_id: Any) -> T:
          """Return the record or raise NotFoundError."""

     @abstractmethod
     def update(self, entity_type: Type[T], record_id: Any, fields: Mapping[str, Any]) -> T:
          ...

     @abstractmethod
     def delete(self, entity_type: Type[T], record_id: Any) -> None:
          ...

     @abstractmethod
     def list(self, entity_type: Type[T], **filters: Any) -> List[T]:
          """Records whose attributes equal every filter value, ordered by id."""

     def delete_many(self, entity_type: Type[T], record_ids: Iterable[Any]) -> int:
          """
          Delete several records. Adapters with batch support override this;
          the fallback deletes one by one and stops at the first failure, noting
          how many were deleted in the error context.
          """
          count = 0
          for record_id in record_ids:
               try:
                    self.delete(entity_type, record_id)
               except BillingError as exc:
                    exc.context.setdefault("deleted", count)
                    raise
               count += 1
          return count


def _entity_name(entity_type: type) -> str:
     return getattr(entity_type, "__name__", str(entity_type))


class SqlAlchemyRepository(Repository):
     """Repository over one SQLAlchemy session."""

     def __init__(self, session: Session):
          self.session = session

     def _flush(self, entity: str, action: str, record_id: Any = None) -> None:
          try:
               self.session.flush()
          except StaleDataError as exc:
               raise ConflictError(
                    f"{entity} {record_id} was modified by another request",
                    entity=entity, entity_id=record_id, step=action,
               ) from exc
          except IntegrityError as exc:
               raise ValidationError(
                    f"{entity} {action} violates a data constraint: {exc.orig}",
                    entity=entity, entity_id=record_id, step=action,
               ) from exc
          except OperationalError as exc:
               raise TransientError(
                    f"Database unavailable during {entity} {action}",
                    entity=entity, entity_id=record_id, step=action,
               ) from exc
          except SQLAlchemyError as exc:
               if "permission" in str(exc).lower():
                    raise PermissionDeniedError(
                         f"Database refused {entity} {action}",
                         entity=entity, entity_id=record_id, step=action,
                    ) from exc
               raise RepositoryError(
                    f"Database error during {entity} {action}: {exc}",
                    entity=entity, entity_id=record_id, step=action,
               ) from exc

     def _columns(self, entity_type: type) -> set:
          return {c.key for c in entity_type.__table__.columns}

     def _check_fields(self, entity_type: type, fields: Mapping[str, Any]) -> Dict[str, Any]:
          unknown = set(fields) - self._columns(entity_type)
          if unknown:
               raise ValidationError(
                    f"Unknown {_entity_name(entity_type)} field(s): {', '.join(sorted(unknown))}",
                    entity=_entity_name(entity_type),
               )
          return dict(fields)

     def create(self, entity_type, fields):
          record = entity_type(**self._check_fields(entity_type, fields))
          self.session.add(record)
          self._flush(_entity_name(entity_type), "create")
          return record

     def get(self, entity_type, record_id):
          try:
               record = self.session.get(entity_type, record_id)
          except OperationalError as exc:
               raise TransientError(
                    f"Database unavailable while loading {_entity_name(entity_type)} {record_id}",
                    entity=_entity_name(entity_type), entity_id=record_id,
               ) from exc
          if record is None:
               raise NotFoundError(_entity_name(entity_type), record_id)
          return record

     def update(self, entity_type, record_id, fields):
          record = self.get(entity_type, record_id)
          values = self._check_fields(entity_type, fields)
          for key, value in values.items():
               setattr(record, key, value)
          if "updated_at" in self._columns(entity_type) and "updated_at" not in values:
               record.updated_at = datetime.utcnow()
          self._flush(_entity_name(entity_type), "update", record_id)
          return record

     def delete(self, entity_type, record_id):
          record = self.get(entity_type, record_id)
          self.session.delete(record)
          self._flush(_entity_name(entity_type), "delete", record_id)

     def delete_many(self, entity_type, record_ids):
          ids = list(record_ids)
          if not ids:
               return 0
          # Drop cached instances first so the session never flushes them back.
          wanted = set(ids)
          for cached in [obj for obj in self.session.identity_map.values() if isinstance(obj, entity_type)]:
               if cached.id in wanted:
                    self.session.expunge(cached)
          try:
               result = self.session.execute(
                    sql_delete(entity_type).where(entity_type.id.in_(ids)).execution_options(synchronize_session=False)
               )
          except OperationalError as exc:
               raise TransientError(
                    f"Database unavailable during {_entity_name(entity_type)} batch delete",
                    entity=_entity_name(entity_type), step="delete_many",
               ) from exc
          except SQLAlchemyError as exc:
               raise RepositoryError(
                    f"Batch delete of {_entity_name(entity_type)} failed: {exc}",
                    entity=_entity_name(entity_type), step="delete_many",
               ) from exc
          logger.debug("Deleted %s %s row(s)", result.rowcount, _entity_name(entity_type))
          return result.rowcount

     def list(self, entity_type, **filters):
          columns = self._columns(entity_type)
          unknown = set(filters) - columns
          if unknown:
               raise ValidationError(
                    f"Unknown {_entity_name(entity_type)} filter(s): {', '.join(sorted(unknown))}",
                    entity=_entity_name(entity_type),
               )
          stmt = select(entity_type)
          for key, value in filters.items():
               stmt = stmt.where(getattr(entity_type, key) == value)
          stmt = stmt.order_by(entity_type.id)
          try:
               return list(self.session.scalars(stmt).all())
          except OperationalError as exc:
               raise TransientError(
                    f"Database unavailable while listing {_entity_name(entity_type)}",
                    entity=_entity_name(entity_type),
               ) from exc
