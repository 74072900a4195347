# models/audit_log.py
"""
AuditLog model - append-only record of who changed what.

Rows are only ever inserted; the application layer exposes no update or
delete path for them.
"""
import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, func
from .base import Base, enum_values


class AuditAction(str, enum.Enum):
     CREATED = "created"
     UPDATED = "updated"
     DELETED = "deleted"
     SENT = "sent"
     PAID = "paid"


class AuditLog(Base):
     __tablename__ = "audit_logs"

     id = Column(Integer, primary_key=True, autoincrement=True)
     entity_type = Column(String(50), nullable=False, index=True)  # Invoice, Customer, Payment, etc.
     entity_id = Column(String(64), nullable=False, index=True)
     action = Column(
          Enum(AuditAction, name="audit_action", values_callable=enum_values),
          nullable=False,
     )
     user_id = Column(String(255), nullable=False)
     changes = Column(Text, nullable=True)  # JSON document of the changed fields
     timestamp = Column(DateTime, server_default=func.now(), nullable=False)

     def __repr__(self):
          return f"<AuditLog(id={self.id}, {self.entity_type}#{self.entity_id} {self.action.value} by {self.user_id})>"
