# services/audit_service.py
"""
Audit Log Service - append-only record of billing actions.

Each entry names the entity, the action (created/updated/deleted/sent/paid),
the acting user id and a JSON document of the changed fields. Entries are
never updated or deleted.
"""
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional

from models import AuditLog
from models.audit_log import AuditAction
from .repository import Repository

logger = logging.getLogger(__name__)


def _json_default(value: Any):
     if isinstance(value, Decimal):
          return str(value)
     if isinstance(value, (date, datetime)):
          return value.isoformat()
     if isinstance(value, Enum):
          return value.value
     raise TypeError(f"{type(value).__name__} is not JSON serializable")


def serialize_changes(changes: Optional[Mapping[str, Any]]) -> Optional[str]:
     """Canonical JSON (sorted keys) of a change set, or None when empty."""
     if not changes:
          return None
     return json.dumps(dict(changes), default=_json_default, sort_keys=True)


def record_event(
     repo: Repository,
     entity_type: str,
     entity_id: Any,
     action: AuditAction,
     user_id: Any,
     changes: Optional[Mapping[str, Any]] = None,
) -> AuditLog:
     entry = repo.create(AuditLog, {
          "entity_type": entity_type,
          "entity_id": str(entity_id),
          "action": AuditAction(action),
          "user_id": str(user_id),
          "changes": serialize_changes(changes),
          "timestamp": datetime.utcnow(),
     })
     logger.debug("Audit %s %s#%s by %s", entry.action.value, entity_type, entity_id, user_id)
     return entry


def list_events(
     repo: Repository,
     entity_type: Optional[str] = None,
     entity_id: Optional[Any] = None,
     limit: Optional[int] = None,
) -> List[AuditLog]:
     """Newest entries first."""
     filters = {}
     if entity_type is not None:
          filters["entity_type"] = entity_type
     if entity_id is not None:
          filters["entity_id"] = str(entity_id)
     events = list(reversed(repo.list(AuditLog, **filters)))
     return events[:limit] if limit else events
