# models/base.py
from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Every model names its table explicitly with __tablename__.
     """


class TimestampMixin:
     """created_at / updated_at columns shared by every billing table."""
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)


def enum_values(enum_cls) -> list:
     """Persist enum values ("draft") rather than member names ("DRAFT")."""
     return [member.value for member in enum_cls]
