"""
Pydantic schemas for the audit log.
"""
import json
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from models.audit_log import AuditAction


class AuditLogResponse(BaseModel):
     id: int
     entity_type: str
     entity_id: str
     action: AuditAction
     user_id: str
     changes: Optional[Any] = None
     timestamp: datetime

     model_config = ConfigDict(from_attributes=True)

     @field_validator("changes", mode="before")
     @classmethod
     def _decode_changes(cls, value):
          if isinstance(value, str):
               return json.loads(value)
          return value
