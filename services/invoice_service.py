# services/invoice_service.py
"""
Invoice Service - business logic for an invoice and its line items.

An invoice and its items are written as one logical unit: the invoice row
first, then one row per item. Totals are always recomputed here from the
items; callers never supply subtotal, total or item amounts.

The repository may not be transactional, so a failure after the invoice row
was written is reported as DependencyWriteError with enough context to find
and repair the half-written invoice.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from models import Customer, Invoice, InvoiceItem, Payment, Product
from models.invoice import InvoiceStatus
from .calculator import aggregate, line_amount, to_decimal, to_money
from .errors import (
     BillingError,
     ConflictError,
     DependencyWriteError,
     NotFoundError,
     ValidationError,
)
from .invoice_status import apply_transition, effective_status
from .repository import Repository

logger = logging.getLogger(__name__)

HEADER_FIELDS = (
     "invoice_number",
     "customer_id",
     "issue_date",
     "due_date",
     "tax_amount",
     "discount_amount",
     "notes",
     "terms",
)
ITEM_FIELDS = ("product_id", "description", "quantity", "rate", "tax_rate")

QUANTITY_STEP = Decimal("0.001")
RATE_STEP = Decimal("0.0001")
TAX_RATE_STEP = Decimal("0.0001")


def _as_mapping(value: Any) -> Dict[str, Any]:
     if hasattr(value, "model_dump"):
          return value.model_dump(exclude_unset=True)
     if isinstance(value, Mapping):
          return dict(value)
     raise ValidationError(f"Expected a mapping, got {type(value).__name__}")


def _exact(value: Any, step: Decimal, field: str, index: int) -> Decimal:
     """Decimal at the column scale; more digits than the column holds is an error."""
     number = to_decimal(value, field)
     if number != number.quantize(step):
          places = -step.as_tuple().exponent
          raise ValidationError(
               f"Item {field} allows at most {places} decimal places, got {value}",
               field="items", index=index,
          )
     return number.quantize(step)


def _coerce_date(value: Any, field: str) -> date:
     if isinstance(value, datetime):
          return value.date()
     if isinstance(value, date):
          return value
     if isinstance(value, str) and value.strip():
          try:
               return date.fromisoformat(value.strip())
          except ValueError:
               raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD), got {value!r}", field=field)
     raise ValidationError(f"{field} is required", field=field)


class InvoiceService:
     """Create, update and delete invoices together with their items."""

     def __init__(self, repo: Repository):
          self.repo = repo

     # ------------------------------------------------------------------
     # Reads
     # ------------------------------------------------------------------

     def get_invoice(self, invoice_id: int) -> Invoice:
          return self.repo.get(Invoice, invoice_id)

     def get_items(self, invoice_id: int) -> List[InvoiceItem]:
          self.repo.get(Invoice, invoice_id)
          return self.repo.list(InvoiceItem, invoice_id=invoice_id)

     def list_invoices(
          self,
          customer_id: Optional[int] = None,
          status: Optional[InvoiceStatus] = None,
          overdue_only: bool = False,
          today: Optional[date] = None,
     ) -> List[Invoice]:
          """
          List invoices. `status` is matched against the effective status, so
          filtering by "overdue" finds unpaid invoices past their due date.
          """
          filters = {}
          if customer_id is not None:
               filters["customer_id"] = customer_id
          invoices = self.repo.list(Invoice, **filters)
          if overdue_only:
               status = InvoiceStatus.OVERDUE
          if status is not None:
               wanted = InvoiceStatus(status)
               invoices = [inv for inv in invoices if effective_status(inv, today) == wanted]
          return invoices

     # ------------------------------------------------------------------
     # Writes
     # ------------------------------------------------------------------

     def create_invoice(self, header: Any, items: Iterable[Any]) -> Invoice:
          """
          Create a draft invoice and its items.

          Raises:
               ValidationError: missing/invalid header field, unknown customer,
                    duplicate invoice number, empty or invalid items
               DependencyWriteError: an item row failed after the invoice row was written
          """
          fields = self._validate_header(_as_mapping(header))
          self._ensure_unique_number(fields["invoice_number"])
          rows = self._prepare_items(items)
          totals = aggregate(rows, fields["tax_amount"], fields["discount_amount"])

          invoice = self.repo.create(Invoice, {
               **fields,
               "subtotal": totals.subtotal,
               "tax_amount": totals.tax_amount,
               "discount_amount": totals.discount_amount,
               "total": totals.total,
               "status": InvoiceStatus.DRAFT,
          })
          self._write_items(invoice.id, rows, step="create_items", completed=["create_invoice"])

          logger.info(
               "Created invoice %s (%s) with %d item(s), total %s",
               invoice.id, invoice.invoice_number, len(rows), invoice.total,
          )
          return invoice

     def update_invoice(
          self,
          invoice_id: int,
          header: Any,
          items: Optional[Iterable[Any]] = None,
          expected_version: Optional[int] = None,
     ) -> Invoice:
          """
          Update the header and replace all items.

          Items are replaced wholesale: every stored item is deleted and the
          supplied list recreated. With `items=None` the stored items are kept
          and only the totals are recomputed.

          Pass `expected_version` (the version the caller last read) to reject
          the write if someone else updated the invoice in between; without it
          the last write wins.

          Raises:
               NotFoundError, ValidationError, ConflictError, DependencyWriteError
          """
          invoice = self.repo.get(Invoice, invoice_id)
          if expected_version is not None and invoice.version != expected_version:
               raise ConflictError(
                    f"Invoice {invoice_id} is at version {invoice.version}, not {expected_version}",
                    entity="Invoice", entity_id=invoice_id,
                    expected_version=expected_version, current_version=invoice.version,
               )
          if InvoiceStatus(invoice.status) == InvoiceStatus.CANCELLED:
               raise ValidationError(f"Invoice {invoice_id} is cancelled and cannot be edited", entity_id=invoice_id)

          merged = {field: getattr(invoice, field) for field in HEADER_FIELDS}
          changes = _as_mapping(header)
          unknown = set(changes) - set(HEADER_FIELDS)
          if unknown:
               raise ValidationError(f"Unknown invoice field(s): {', '.join(sorted(unknown))}")
          merged.update(changes)

          fields = self._validate_header(merged)
          if fields["invoice_number"] != invoice.invoice_number:
               self._ensure_unique_number(fields["invoice_number"], exclude_id=invoice_id)
          existing = self.repo.list(InvoiceItem, invoice_id=invoice_id)
          rows = existing if items is None else self._prepare_items(items)
          totals = aggregate(rows, fields["tax_amount"], fields["discount_amount"])

          invoice = self.repo.update(Invoice, invoice_id, {
               **fields,
               "subtotal": totals.subtotal,
               "tax_amount": totals.tax_amount,
               "discount_amount": totals.discount_amount,
               "total": totals.total,
          })

          if items is None:
               logger.info("Updated invoice %s header, total %s", invoice_id, invoice.total)
               return invoice

          try:
               self.repo.delete_many(InvoiceItem, [item.id for item in existing])
          except BillingError as exc:
               logger.error("Invoice %s updated but clearing its items failed: %s", invoice_id, exc)
               raise DependencyWriteError(
                    f"Invoice {invoice_id} was updated but its old items could not be removed",
                    entity="Invoice", entity_id=invoice_id, step="delete_items",
                    completed=["update_invoice"],
               ) from exc
          self._write_items(invoice_id, rows, step="recreate_items", completed=["update_invoice", "delete_items"])

          logger.info("Updated invoice %s: %d item(s), total %s", invoice_id, len(rows), invoice.total)
          return invoice

     def delete_invoice(self, invoice_id: int) -> None:
          """
          Delete the invoice's items, then the invoice.

          Invoices with recorded payments are refused; payments must be
          removed first so none outlive their invoice.

          Raises:
               NotFoundError, ValidationError, DependencyWriteError
          """
          self.repo.get(Invoice, invoice_id)
          payments = self.repo.list(Payment, invoice_id=invoice_id)
          if payments:
               raise ValidationError(
                    f"Invoice {invoice_id} has {len(payments)} payment(s); delete them before deleting the invoice",
                    entity_id=invoice_id, payments=len(payments),
               )

          items = self.repo.list(InvoiceItem, invoice_id=invoice_id)
          try:
               self.repo.delete_many(InvoiceItem, [item.id for item in items])
          except BillingError as exc:
               logger.error("Deleting items of invoice %s failed midway: %s", invoice_id, exc)
               raise DependencyWriteError(
                    f"Could not delete all items of invoice {invoice_id}; manual cleanup required",
                    entity="Invoice", entity_id=invoice_id, step="delete_items", completed=[],
                    items_deleted=exc.context.get("deleted", 0), items_expected=len(items),
               ) from exc

          try:
               self.repo.delete(Invoice, invoice_id)
          except BillingError as exc:
               logger.error("Items of invoice %s deleted but the invoice row remains: %s", invoice_id, exc)
               raise DependencyWriteError(
                    f"Items of invoice {invoice_id} were deleted but the invoice itself was not",
                    entity="Invoice", entity_id=invoice_id, step="delete_invoice",
                    completed=["delete_items"], items_deleted=len(items),
               ) from exc

          logger.info("Deleted invoice %s and %d item(s)", invoice_id, len(items))

     def cancel_invoice(self, invoice_id: int) -> Invoice:
          invoice = self.repo.get(Invoice, invoice_id)
          return apply_transition(self.repo, invoice, InvoiceStatus.CANCELLED)

     def mark_viewed(self, invoice_id: int, viewed_at: Optional[datetime] = None) -> Invoice:
          """Hook for the "customer opened the invoice" signal."""
          invoice = self.repo.get(Invoice, invoice_id)
          if InvoiceStatus(invoice.status) == InvoiceStatus.VIEWED:
               return invoice
          return apply_transition(
               self.repo, invoice, InvoiceStatus.VIEWED,
               viewed_at=viewed_at or datetime.utcnow(),
          )

     # ------------------------------------------------------------------
     # Helpers
     # ------------------------------------------------------------------

     def _validate_header(self, header: Mapping[str, Any]) -> Dict[str, Any]:
          invoice_number = str(header.get("invoice_number") or "").strip()
          if not invoice_number:
               raise ValidationError("invoice_number is required", field="invoice_number")

          customer_id = header.get("customer_id")
          if customer_id in (None, ""):
               raise ValidationError("customer_id is required", field="customer_id")
          try:
               self.repo.get(Customer, customer_id)
          except NotFoundError as exc:
               raise ValidationError(f"Customer with ID {customer_id} not found", field="customer_id") from exc

          issue_date = _coerce_date(header.get("issue_date"), "issue_date")
          due_date = _coerce_date(header.get("due_date"), "due_date")
          if due_date < issue_date:
               raise ValidationError("due_date must not be before issue_date", field="due_date")

          tax_amount = to_money(header.get("tax_amount") or 0, "tax_amount")
          discount_amount = to_money(header.get("discount_amount") or 0, "discount_amount")
          if tax_amount < 0:
               raise ValidationError("tax_amount must not be negative", field="tax_amount")
          if discount_amount < 0:
               raise ValidationError("discount_amount must not be negative", field="discount_amount")

          return {
               "invoice_number": invoice_number,
               "customer_id": customer_id,
               "issue_date": issue_date,
               "due_date": due_date,
               "tax_amount": tax_amount,
               "discount_amount": discount_amount,
               "notes": header.get("notes"),
               "terms": header.get("terms"),
          }

     def _ensure_unique_number(self, invoice_number: str, exclude_id: Optional[int] = None) -> None:
          clashes = [
               inv for inv in self.repo.list(Invoice, invoice_number=invoice_number)
               if inv.id != exclude_id
          ]
          if clashes:
               raise ValidationError(
                    f"Invoice number {invoice_number} is already in use",
                    field="invoice_number", existing_id=clashes[0].id,
               )

     def _prepare_items(self, items: Iterable[Any]) -> List[Dict[str, Any]]:
          """
          Validate raw items and turn them into item rows (without invoice_id).

          Items that reference a product take the product's description and
          price when the caller leaves them out. The catalog tax rate is not
          copied; item tax_rate defaults to 0.
          """
          raw_items = [_as_mapping(item) for item in (items or [])]
          if not raw_items:
               raise ValidationError("An invoice needs at least one item", field="items")

          rows = []
          for index, raw in enumerate(raw_items):
               unknown = set(raw) - set(ITEM_FIELDS) - {"amount", "id", "invoice_id"}
               if unknown:
                    raise ValidationError(
                         f"Unknown item field(s): {', '.join(sorted(unknown))}",
                         field="items", index=index,
                    )

               product = None
               product_id = raw.get("product_id")
               if product_id not in (None, ""):
                    try:
                         product = self.repo.get(Product, product_id)
                    except NotFoundError as exc:
                         raise ValidationError(
                              f"Product with ID {product_id} not found", field="items", index=index,
                         ) from exc
               else:
                    product_id = None

               description = raw.get("description")
               if not description and product is not None:
                    description = product.description or product.name
               description = str(description or "").strip()
               if not description:
                    raise ValidationError("Item description is required", field="items", index=index)

               rate = raw.get("rate")
               if rate is None and product is not None:
                    rate = product.price
               if rate is None:
                    raise ValidationError("Item rate is required", field="items", index=index)

               quantity = raw.get("quantity")
               quantity = _exact(1 if quantity is None else quantity, QUANTITY_STEP, "quantity", index)
               rate = _exact(rate, RATE_STEP, "rate", index)
               try:
                    amount = line_amount(quantity, rate)
               except ValidationError as exc:
                    exc.context.update(field="items", index=index)
                    raise

               tax_rate = _exact(raw.get("tax_rate") or 0, TAX_RATE_STEP, "tax_rate", index)
               if tax_rate < 0:
                    raise ValidationError("Item tax_rate must not be negative", field="items", index=index)

               rows.append({
                    "product_id": product_id,
                    "description": description,
                    "quantity": quantity,
                    "rate": rate,
                    "amount": amount,
                    "tax_rate": tax_rate,
               })
          return rows

     def _write_items(self, invoice_id: int, rows: List[Dict[str, Any]], step: str, completed: List[str]) -> None:
          for written, row in enumerate(rows):
               try:
                    self.repo.create(InvoiceItem, {**row, "invoice_id": invoice_id})
               except BillingError as exc:
                    logger.error(
                         "Invoice %s: item %d of %d failed during %s: %s",
                         invoice_id, written + 1, len(rows), step, exc,
                    )
                    raise DependencyWriteError(
                         f"Invoice {invoice_id} was written but only {written} of {len(rows)} item(s) followed",
                         entity="Invoice", entity_id=invoice_id, step=step,
                         completed=completed, items_written=written, items_expected=len(rows),
                    ) from exc
