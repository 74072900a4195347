# models/email_template.py
import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, Enum
from .base import Base, TimestampMixin, enum_values


class EmailTemplateType(str, enum.Enum):
     INVOICE_SENT = "invoice_sent"
     PAYMENT_REMINDER = "payment_reminder"
     PAYMENT_RECEIVED = "payment_received"
     OVERDUE_NOTICE = "overdue_notice"


class EmailTemplate(TimestampMixin, Base):
     """
     Editable subject/body pair used when emailing customers.

     Placeholders use str.format syntax, e.g. "Invoice {invoice_number}".
     """
     __tablename__ = "email_templates"

     id = Column(Integer, primary_key=True, autoincrement=True)
     name = Column(String(255), nullable=False)
     type = Column(
          Enum(EmailTemplateType, name="email_template_type", values_callable=enum_values),
          nullable=False,
          index=True,
     )
     subject = Column(String(500), nullable=False)
     body = Column(Text, nullable=False)
     is_active = Column(Boolean, default=True, nullable=False)

     def __repr__(self):
          return f"<EmailTemplate(id={self.id}, type='{self.type.value}', active={self.is_active})>"
