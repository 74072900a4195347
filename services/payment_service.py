# services/payment_service.py
"""
Payment Reconciliation - records payments and keeps invoice status in step.

When a payment is recorded (or changed):
1. The payment row is written
2. The invoice's paid amount is recomputed from all of its stored payments
3. If the paid amount covers the invoice total, the invoice becomes PAID

Step 3 is a separate write. If it fails the payment stays recorded and a
ReconciliationError tells the caller to run `reconcile` again; reconciling
only reads current payments and conditionally writes the status, so
repeating it is harmless.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from models import Invoice, Payment
from models.invoice import InvoiceStatus
from models.payment import PaymentMethod, PaymentStatus
from .calculator import ZERO, round2, to_money
from .errors import BillingError, ReconciliationError, ValidationError
from .invoice_status import SETTLED_STATUSES, apply_transition
from .repository import Repository

logger = logging.getLogger(__name__)

# Every recorded payment counts unless configured otherwise
DEFAULT_COUNTED_STATUSES = frozenset(PaymentStatus)

EDITABLE_FIELDS = ("amount", "payment_date", "method", "status", "reference", "notes", "processing_fee")


@dataclass
class ReconciliationResult:
     invoice: Invoice
     total_paid: Decimal
     balance: Decimal
     transitioned: bool


def _coerce_enum(enum_cls, value: Any, field: str):
     try:
          return enum_cls(value)
     except ValueError:
          allowed = ", ".join(m.value for m in enum_cls)
          raise ValidationError(f"{field} must be one of: {allowed}", field=field)


def _coerce_payment_date(value: Any) -> date:
     if isinstance(value, datetime):
          return value.date()
     if isinstance(value, date):
          return value
     if isinstance(value, str) and value.strip():
          try:
               return date.fromisoformat(value.strip())
          except ValueError:
               raise ValidationError(f"payment_date must be an ISO date, got {value!r}", field="payment_date")
     raise ValidationError("payment_date is required", field="payment_date")


class PaymentService:
     """Payment bookkeeping and invoice reconciliation."""

     def __init__(self, repo: Repository, counted_statuses: Optional[Iterable[Any]] = None):
          self.repo = repo
          statuses = DEFAULT_COUNTED_STATUSES if counted_statuses is None else counted_statuses
          self.counted_statuses = frozenset(PaymentStatus(s) for s in statuses)

     # ------------------------------------------------------------------
     # Reads
     # ------------------------------------------------------------------

     def get_payment(self, payment_id: int) -> Payment:
          return self.repo.get(Payment, payment_id)

     def list_payments(self, invoice_id: Optional[int] = None) -> List[Payment]:
          if invoice_id is None:
               return self.repo.list(Payment)
          return self.repo.list(Payment, invoice_id=invoice_id)

     def total_paid(self, invoice_id: int) -> Decimal:
          """Sum of the invoice's payments whose status counts towards the balance."""
          payments = self.repo.list(Payment, invoice_id=invoice_id)
          return round2(sum(
               (Decimal(p.amount) for p in payments if PaymentStatus(p.status) in self.counted_statuses),
               ZERO,
          ))

     # ------------------------------------------------------------------
     # Reconciliation
     # ------------------------------------------------------------------

     def reconcile(self, invoice_id: int) -> ReconciliationResult:
          """
          Compare the invoice's payments to its total and mark it PAID when
          covered. Settled invoices (paid, cancelled) are left untouched.
          """
          invoice = self.repo.get(Invoice, invoice_id)
          paid = self.total_paid(invoice_id)
          total = Decimal(invoice.total)
          balance = round2(total - paid)
          status = InvoiceStatus(invoice.status)

          if status in SETTLED_STATUSES:
               if status == InvoiceStatus.PAID and paid < total:
                    logger.warning(
                         "Invoice %s is marked paid but payments cover only %s of %s",
                         invoice_id, paid, total,
                    )
               return ReconciliationResult(invoice, paid, balance, transitioned=False)

          if paid >= total:
               invoice = apply_transition(self.repo, invoice, InvoiceStatus.PAID)
               logger.info("Invoice %s fully paid (%s of %s)", invoice_id, paid, total)
               return ReconciliationResult(invoice, paid, balance, transitioned=True)

          return ReconciliationResult(invoice, paid, balance, transitioned=False)

     def _reconcile_after_write(self, payment_id: int, invoice_id: int, step: str) -> None:
          try:
               self.reconcile(invoice_id)
          except BillingError as exc:
               logger.error("Payment %s saved but invoice %s was not reconciled: %s", payment_id, invoice_id, exc)
               raise ReconciliationError(
                    f"Payment {payment_id} was saved but invoice {invoice_id} status could not be updated; retry reconciliation",
                    entity="Payment", entity_id=payment_id, invoice_id=invoice_id, step=step,
               ) from exc

     # ------------------------------------------------------------------
     # Writes
     # ------------------------------------------------------------------

     def record_payment(
          self,
          invoice_id: int,
          amount: Any,
          method: Any,
          payment_date: Any,
          reference: Optional[str] = None,
          status: Any = PaymentStatus.COMPLETED,
          notes: Optional[str] = None,
          processing_fee: Any = 0,
     ) -> Payment:
          """
          Record a payment against an invoice and reconcile the invoice.

          Raises:
               ValidationError: amount <= 0, bad method/status/date, cancelled invoice
               NotFoundError: invoice does not exist
               ReconciliationError: payment stored, status update failed
          """
          value = to_money(amount, "amount")
          if value <= 0:
               raise ValidationError("Payment amount must be greater than 0", field="amount")
          fee = to_money(processing_fee or 0, "processing_fee")
          if fee < 0:
               raise ValidationError("processing_fee must not be negative", field="processing_fee")

          invoice = self.repo.get(Invoice, invoice_id)
          if InvoiceStatus(invoice.status) == InvoiceStatus.CANCELLED:
               raise ValidationError(f"Invoice {invoice_id} is cancelled; payments cannot be recorded", entity_id=invoice_id)

          payment = self.repo.create(Payment, {
               "invoice_id": invoice_id,
               "amount": value,
               "payment_date": _coerce_payment_date(payment_date),
               "method": _coerce_enum(PaymentMethod, method, "method"),
               "status": _coerce_enum(PaymentStatus, status, "status"),
               "reference": reference,
               "notes": notes,
               "processing_fee": fee,
          })
          logger.info("Recorded payment %s of %s against invoice %s", payment.id, value, invoice_id)

          self._reconcile_after_write(payment.id, invoice_id, step="reconcile_after_create")
          return payment

     def update_payment(self, payment_id: int, fields: Mapping[str, Any]) -> Payment:
          """Edit a payment (amount, status, ...) and reconcile its invoice."""
          payment = self.repo.get(Payment, payment_id)
          unknown = set(fields) - set(EDITABLE_FIELDS)
          if unknown:
               raise ValidationError(f"Unknown or read-only payment field(s): {', '.join(sorted(unknown))}")

          values = {}
          for key, value in fields.items():
               if key == "amount":
                    value = to_money(value, "amount")
                    if value <= 0:
                         raise ValidationError("Payment amount must be greater than 0", field="amount")
               elif key == "processing_fee":
                    value = to_money(value or 0, "processing_fee")
                    if value < 0:
                         raise ValidationError("processing_fee must not be negative", field="processing_fee")
               elif key == "payment_date":
                    value = _coerce_payment_date(value)
               elif key == "method":
                    value = _coerce_enum(PaymentMethod, value, "method")
               elif key == "status":
                    value = _coerce_enum(PaymentStatus, value, "status")
               values[key] = value

          payment = self.repo.update(Payment, payment_id, values)
          self._reconcile_after_write(payment_id, payment.invoice_id, step="reconcile_after_update")
          return payment

     def delete_payment(self, payment_id: int) -> None:
          payment = self.repo.get(Payment, payment_id)
          invoice_id = payment.invoice_id
          self.repo.delete(Payment, payment_id)
          logger.info("Deleted payment %s of invoice %s", payment_id, invoice_id)
          self._reconcile_after_write(payment_id, invoice_id, step="reconcile_after_delete")
