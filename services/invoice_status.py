# services/invoice_status.py
"""
Invoice status state machine.

Persisted transitions:
     draft   -> sent        dispatch workflow only
     sent    -> viewed      "customer viewed" signal
     *       -> paid        payments cover the total (never from cancelled)
     *       -> cancelled   explicit user action, terminal

`overdue` is never written by this module; it is derived at read time by
`effective_status`. Rows that were stored as overdue by older tooling are
treated like sent invoices.
"""
import logging
from datetime import date
from typing import Any, Optional

from models.invoice import Invoice, InvoiceStatus
from .errors import InvalidStatusTransitionError
from .repository import Repository

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
     InvoiceStatus.DRAFT: {InvoiceStatus.SENT, InvoiceStatus.PAID, InvoiceStatus.CANCELLED},
     InvoiceStatus.SENT: {InvoiceStatus.VIEWED, InvoiceStatus.PAID, InvoiceStatus.CANCELLED},
     InvoiceStatus.VIEWED: {InvoiceStatus.PAID, InvoiceStatus.CANCELLED},
     InvoiceStatus.OVERDUE: {InvoiceStatus.SENT, InvoiceStatus.VIEWED, InvoiceStatus.PAID, InvoiceStatus.CANCELLED},
     InvoiceStatus.PAID: {InvoiceStatus.CANCELLED},
     InvoiceStatus.CANCELLED: set(),
}

SETTLED_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED})


def can_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
     """Same-status moves are always allowed (no-op)."""
     current, target = InvoiceStatus(current), InvoiceStatus(target)
     return current == target or target in ALLOWED_TRANSITIONS[current]


def check_transition(current: InvoiceStatus, target: InvoiceStatus) -> None:
     if not can_transition(current, target):
          raise InvalidStatusTransitionError(
               f"Cannot move invoice from '{InvoiceStatus(current).value}' to '{InvoiceStatus(target).value}'",
               current=InvoiceStatus(current).value,
               target=InvoiceStatus(target).value,
          )


def is_overdue(invoice: Invoice, today: Optional[date] = None) -> bool:
     """Unsettled and past its due date."""
     today = today or date.today()
     return InvoiceStatus(invoice.status) not in SETTLED_STATUSES and invoice.due_date < today


def effective_status(invoice: Invoice, today: Optional[date] = None) -> InvoiceStatus:
     """Status as shown to users: the stored status, or overdue when it applies."""
     if is_overdue(invoice, today):
          return InvoiceStatus.OVERDUE
     return InvoiceStatus(invoice.status)


def apply_transition(repo: Repository, invoice: Invoice, target: InvoiceStatus, **fields: Any) -> Invoice:
     """
     Validate and persist a status change together with any extra fields
     (sent_at, viewed_at, ...).
     """
     current = InvoiceStatus(invoice.status)
     target = InvoiceStatus(target)
     check_transition(current, target)
     updated = repo.update(Invoice, invoice.id, {"status": target, **fields})
     if current != target:
          logger.info("Invoice %s status %s -> %s", invoice.id, current.value, target.value)
     return updated
