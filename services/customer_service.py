# services/customer_service.py
"""Customer CRUD with referential checks and advisory billing totals."""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from models import Customer, Invoice, Payment
from models.customer import CustomerStatus
from models.invoice import InvoiceStatus
from .calculator import ZERO, round2, to_money
from .errors import ValidationError
from .repository import Repository

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = (
     "name", "email", "phone", "tax_id", "address", "billing_address",
     "shipping_address", "payment_terms", "credit_limit", "status",
)


def _clean(fields: Mapping[str, Any], partial: bool) -> Dict[str, Any]:
     unknown = set(fields) - set(CUSTOMER_FIELDS)
     if unknown:
          raise ValidationError(f"Unknown customer field(s): {', '.join(sorted(unknown))}")
     values = dict(fields)
     for key in ("name", "email"):
          if key in values or not partial:
               value = (values.get(key) or "").strip()
               if not value:
                    raise ValidationError(f"Customer {key} is required", field=key)
               values[key] = value
     if values.get("credit_limit") is not None:
          values["credit_limit"] = to_money(values["credit_limit"], "credit_limit")
          if values["credit_limit"] < 0:
               raise ValidationError("credit_limit must not be negative", field="credit_limit")
     if values.get("payment_terms") is not None and int(values["payment_terms"]) < 0:
          raise ValidationError("payment_terms must not be negative", field="payment_terms")
     if "status" in values:
          try:
               values["status"] = CustomerStatus(values["status"] or CustomerStatus.ACTIVE)
          except ValueError:
               raise ValidationError(f"Unknown customer status {values['status']!r}", field="status")
     return values


def list_customers(repo: Repository, status: Optional[str] = None) -> List[Customer]:
     if status is None:
          return repo.list(Customer)
     return repo.list(Customer, status=CustomerStatus(status))


def get_customer(repo: Repository, customer_id: int) -> Customer:
     return repo.get(Customer, customer_id)


def create_customer(repo: Repository, fields: Mapping[str, Any]) -> Customer:
     customer = repo.create(Customer, _clean(fields, partial=False))
     logger.info("Created customer %s (%s)", customer.id, customer.email)
     return customer


def update_customer(repo: Repository, customer_id: int, fields: Mapping[str, Any]) -> Customer:
     return repo.update(Customer, customer_id, _clean(fields, partial=True))


def delete_customer(repo: Repository, customer_id: int) -> None:
     """Customers with invoices cannot be deleted; set them inactive instead."""
     repo.get(Customer, customer_id)
     invoices = repo.list(Invoice, customer_id=customer_id)
     if invoices:
          raise ValidationError(
               f"Customer {customer_id} has {len(invoices)} invoice(s); deactivate the customer instead",
               entity="Customer", entity_id=customer_id,
          )
     repo.delete(Customer, customer_id)
     logger.info("Deleted customer %s", customer_id)


def billing_totals(repo: Repository, customer_id: int, counted_statuses) -> Dict[str, Decimal]:
     """Billed and paid totals over the customer's non-cancelled invoices."""
     billed, paid = ZERO, ZERO
     for invoice in repo.list(Invoice, customer_id=customer_id):
          if InvoiceStatus(invoice.status) == InvoiceStatus.CANCELLED:
               continue
          billed += Decimal(invoice.total)
          for payment in repo.list(Payment, invoice_id=invoice.id):
               if payment.status in counted_statuses:
                    paid += Decimal(payment.amount)
     return {"total_billed": round2(billed), "total_paid": round2(paid)}


def refresh_totals(repo: Repository, customer_id: int, counted_statuses) -> Customer:
     """Recompute the advisory total_billed / total_paid columns."""
     totals = billing_totals(repo, customer_id, counted_statuses)
     return repo.update(Customer, customer_id, totals)
