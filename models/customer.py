# models/customer.py
import enum
from sqlalchemy import Column, Integer, String, Text, Numeric, Enum
from .base import Base, TimestampMixin, enum_values


class CustomerStatus(str, enum.Enum):
     """Billing status of a customer account."""
     ACTIVE = "active"
     INACTIVE = "inactive"
     SUSPENDED = "suspended"


class Customer(TimestampMixin, Base):
     """
     Customer model - the party invoices are billed to.

     total_billed / total_paid are advisory running totals; the invoices and
     payments tables remain the source of truth.
     """
     __tablename__ = "customers"

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Identity
     name = Column(String(255), nullable=False)
     email = Column(String(255), nullable=False, index=True)
     phone = Column(String(50), nullable=True)
     tax_id = Column(String(100), nullable=True)

     # Addresses
     address = Column(Text, nullable=True)
     billing_address = Column(Text, nullable=True)
     shipping_address = Column(Text, nullable=True)

     # Terms
     payment_terms = Column(Integer, nullable=True)  # days
     credit_limit = Column(Numeric(12, 2), nullable=True)
     status = Column(
          Enum(CustomerStatus, name="customer_status", values_callable=enum_values),
          default=CustomerStatus.ACTIVE,
          nullable=False,
     )

     # Running totals
     total_billed = Column(Numeric(12, 2), default=0, nullable=False)
     total_paid = Column(Numeric(12, 2), default=0, nullable=False)

     def __repr__(self):
          return f"<Customer(id={self.id}, name='{self.name}', email='{self.email}')>"
