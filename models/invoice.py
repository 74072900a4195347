# models/invoice.py
import enum
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, ForeignKey, Enum
from .base import Base, TimestampMixin, enum_values


class InvoiceStatus(str, enum.Enum):
     """Enumeration for invoice lifecycle status."""
     DRAFT = "draft"
     SENT = "sent"
     VIEWED = "viewed"
     PAID = "paid"
     OVERDUE = "overdue"
     CANCELLED = "cancelled"


class Invoice(TimestampMixin, Base):
     """
     Invoice model - billing document owed by a customer.

     subtotal / tax_amount / discount_amount / total are derived from the
     invoice items and always satisfy total = subtotal + tax - discount.
     `version` is bumped by SQLAlchemy on every UPDATE so stale writers fail.
     """
     __tablename__ = "invoices"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_number = Column(String(50), nullable=False, unique=True, index=True)

     # Foreign keys
     customer_id = Column(
          Integer,
          ForeignKey("customers.id", ondelete="RESTRICT"),
          nullable=False,
          index=True
     )

     # Dates
     issue_date = Column(Date, nullable=False)
     due_date = Column(Date, nullable=False, index=True)

     status = Column(
          Enum(InvoiceStatus, name="invoice_status", values_callable=enum_values),
          default=InvoiceStatus.DRAFT,
          nullable=False,
          index=True
     )

     # Amounts
     subtotal = Column(Numeric(12, 2), nullable=False)
     tax_amount = Column(Numeric(12, 2), default=0, nullable=False)
     discount_amount = Column(Numeric(12, 2), default=0, nullable=False)
     total = Column(Numeric(12, 2), nullable=False)

     notes = Column(Text, nullable=True)
     terms = Column(Text, nullable=True)
     pdf_url = Column(String(500), nullable=True)

     sent_at = Column(DateTime, nullable=True)
     viewed_at = Column(DateTime, nullable=True)

     version = Column(Integer, nullable=False)

     __mapper_args__ = {"version_id_col": version}

     def __repr__(self):
          return f"<Invoice(id={self.id}, number='{self.invoice_number}', status='{self.status.value}', total={self.total})>"


class InvoiceItem(TimestampMixin, Base):
     """
     One billed line of an invoice.

     amount is always quantity * rate rounded to cents; it is written by the
     invoice service and never accepted from callers.
     """
     __tablename__ = "invoice_items"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     product_id = Column(
          Integer,
          ForeignKey("products.id", ondelete="SET NULL"),
          nullable=True,
          index=True
     )

     description = Column(String(500), nullable=False)
     quantity = Column(Numeric(12, 3), nullable=False)
     rate = Column(Numeric(12, 4), nullable=False)
     amount = Column(Numeric(12, 2), nullable=False)
     tax_rate = Column(Numeric(6, 4), default=0, nullable=False)

     def __repr__(self):
          return f"<InvoiceItem(id={self.id}, invoice_id={self.invoice_id}, amount={self.amount})>"
