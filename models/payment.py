# models/payment.py
import enum
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum
from .base import Base, TimestampMixin, enum_values


class PaymentMethod(str, enum.Enum):
     CASH = "cash"
     CHECK = "check"
     BANK_TRANSFER = "bank_transfer"
     CREDIT_CARD = "credit_card"
     PAYPAL = "paypal"
     STRIPE = "stripe"


class PaymentStatus(str, enum.Enum):
     PENDING = "pending"
     COMPLETED = "completed"
     FAILED = "failed"
     REFUNDED = "refunded"


class Payment(TimestampMixin, Base):
     """
     Payment model - an amount applied against one invoice's balance.
     """
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="RESTRICT"),  # Invoice delete is refused while payments exist
          nullable=False,
          index=True
     )

     amount = Column(Numeric(12, 2), nullable=False)
     payment_date = Column(Date, nullable=False)
     method = Column(
          Enum(PaymentMethod, name="payment_method", values_callable=enum_values),
          nullable=False,
     )
     status = Column(
          Enum(PaymentStatus, name="payment_status", values_callable=enum_values),
          default=PaymentStatus.COMPLETED,
          nullable=False,
     )
     reference = Column(String(255), nullable=True)  # transaction ID, check number, etc.
     notes = Column(Text, nullable=True)
     processing_fee = Column(Numeric(12, 2), default=0, nullable=False)

     def __repr__(self):
          return f"<Payment(id={self.id}, invoice_id={self.invoice_id}, amount={self.amount}, status='{self.status.value}')>"
