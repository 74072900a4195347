# services/dispatch_service.py
"""
Send-invoice workflow.

1. Load the invoice, its customer and items
2. Build the email (active "invoice_sent" template, or the built-in text)
3. Render the PDF and attach it; store a copy when blob storage is set up
4. Hand the message to the email transport
5. Mark the invoice sent

A PDF or storage failure only drops the attachment. A transport failure
aborts before anything is written. If step 5 fails the email is already
out, so the caller gets a PartialSuccessError carrying the message id and
can retry `mark_sent` alone.
"""
import base64
import html
import logging
import re
from datetime import datetime
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from config import COMPANY_NAME, EMAIL_FROM
from models import Customer, EmailTemplate, Invoice, InvoiceItem
from models.email_template import EmailTemplateType
from models.invoice import InvoiceStatus
from schemas.email import EmailAttachment, EmailMessage
from utils.email import EmailTransport
from .errors import (
     BillingError,
     DispatchError,
     NotFoundError,
     PartialSuccessError,
     RenderError,
     ValidationError,
)
from .invoice_status import apply_transition

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Invoice {invoice_number} from {company_name}"
DEFAULT_BODY = (
     "Dear {customer_name},\n\n"
     "Please find attached invoice {invoice_number} issued on {issue_date} "
     "for {total}.\n"
     "Payment is due by {due_date}.\n\n"
     "Thank you for your business,\n"
     "{company_name}"
)

OVERRIDE_FIELDS = ("subject", "text", "html")

# Invoices in these states move to SENT; viewed/paid keep their status.
RESENDABLE_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.OVERDUE})


class _Placeholders(dict):
     def __missing__(self, key):
          return "{" + key + "}"


def _fill(template: str, context: Mapping[str, str]) -> str:
     try:
          return template.format_map(_Placeholders(context))
     except (ValueError, IndexError) as exc:
          raise ValidationError(f"Email template is malformed: {exc}") from exc


def text_to_html(text: str) -> str:
     paragraphs = [p for p in re.split(r"\n\s*\n", text) if p.strip()]
     return "".join(f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs)


def _blob_key(invoice_number: str) -> str:
     return f"invoices/{re.sub(r'[^A-Za-z0-9._-]', '_', invoice_number)}.pdf"


class InvoiceDispatcher:
     """Emails invoices to their customers and records the dispatch."""

     def __init__(
          self,
          repo,
          transport: EmailTransport,
          renderer=None,
          blob_store=None,
          from_address: str = EMAIL_FROM,
          company_name: str = COMPANY_NAME,
     ):
          self.repo = repo
          self.transport = transport
          self.renderer = renderer
          self.blob_store = blob_store
          self.from_address = from_address
          self.company_name = company_name

     # ------------------------------------------------------------------
     # Message building
     # ------------------------------------------------------------------

     def _customer_for(self, invoice: Invoice) -> Customer:
          try:
               customer = self.repo.get(Customer, invoice.customer_id)
          except NotFoundError:
               raise ValidationError(
                    f"Invoice {invoice.invoice_number} has no customer record",
                    entity_id=invoice.id, customer_id=invoice.customer_id,
               )
          if not customer.email:
               raise ValidationError(
                    f"Customer {customer.name} has no email address",
                    entity_id=invoice.id, customer_id=customer.id,
               )
          return customer

     def _active_template(self) -> Optional[EmailTemplate]:
          templates = self.repo.list(EmailTemplate, type=EmailTemplateType.INVOICE_SENT, is_active=True)
          return templates[0] if templates else None

     def template_context(self, invoice: Invoice, customer: Customer) -> dict:
          return {
               "invoice_number": invoice.invoice_number,
               "customer_name": customer.name,
               "customer_email": customer.email,
               "issue_date": invoice.issue_date.isoformat(),
               "due_date": invoice.due_date.isoformat(),
               "total": f"${invoice.total:,.2f}",
               "company_name": self.company_name,
          }

     def build_message(
          self,
          invoice: Invoice,
          customer: Customer,
          overrides: Optional[Mapping[str, Any]] = None,
     ) -> EmailMessage:
          overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
          unknown = set(overrides) - set(OVERRIDE_FIELDS)
          if unknown:
               raise ValidationError(f"Unknown email override(s): {', '.join(sorted(unknown))}")

          context = self.template_context(invoice, customer)
          template = self._active_template()
          subject = _fill(template.subject if template else DEFAULT_SUBJECT, context)
          text = _fill(template.body if template else DEFAULT_BODY, context)
          body_html = text_to_html(text)

          if "text" in overrides or "html" in overrides:
               text = overrides.get("text")
               body_html = overrides.get("html")

          try:
               return EmailMessage(
                    from_address=self.from_address,
                    to=customer.email,
                    subject=overrides.get("subject", subject),
                    text=text,
                    html=body_html,
               )
          except PydanticValidationError as exc:
               raise ValidationError(f"Invalid email for invoice {invoice.invoice_number}: {exc.errors()[0]['msg']}", entity_id=invoice.id) from exc

     # ------------------------------------------------------------------
     # PDF
     # ------------------------------------------------------------------

     def render_pdf(self, invoice_id: int) -> bytes:
          """Render an invoice PDF. Raises RenderError when no renderer is configured or it fails."""
          if self.renderer is None:
               raise RenderError("PDF rendering is not configured", entity="Invoice", entity_id=invoice_id)
          invoice = self.repo.get(Invoice, invoice_id)
          customer = self.repo.get(Customer, invoice.customer_id)
          items = self.repo.list(InvoiceItem, invoice_id=invoice_id)
          return self.renderer.render(invoice, customer, items)

     def pdf_attachment(self, invoice: Invoice, pdf: bytes) -> EmailAttachment:
          return EmailAttachment(
               filename=f"invoice-{invoice.invoice_number}.pdf",
               content_base64=base64.b64encode(pdf).decode("ascii"),
               content_type="application/pdf",
          )

     def _try_render(self, invoice: Invoice, customer: Customer, items: List[InvoiceItem]) -> Optional[bytes]:
          if self.renderer is None:
               return None
          try:
               return self.renderer.render(invoice, customer, items)
          except Exception as exc:
               logger.warning("PDF for invoice %s failed, sending without attachment: %s", invoice.id, exc, exc_info=True)
               return None

     def _try_store(self, invoice: Invoice, pdf: bytes) -> Optional[str]:
          if self.blob_store is None:
               return None
          try:
               return self.blob_store.upload_bytes(_blob_key(invoice.invoice_number), pdf, content_type="application/pdf")
          except Exception as exc:
               logger.warning("Storing PDF for invoice %s failed: %s", invoice.id, exc, exc_info=True)
               return None

     # ------------------------------------------------------------------
     # Workflow
     # ------------------------------------------------------------------

     def send_invoice(
          self,
          invoice_id: int,
          overrides: Optional[Mapping[str, Any]] = None,
          generate_pdf: bool = True,
          now: Optional[datetime] = None,
     ) -> Invoice:
          """
          Email an invoice to its customer and mark it sent.

          Raises:
               NotFoundError: invoice does not exist
               ValidationError: cancelled invoice, customer missing or without email
               DispatchError: the transport did not accept the message (nothing written)
               PartialSuccessError: email sent, status update failed
          """
          invoice = self.repo.get(Invoice, invoice_id)
          if InvoiceStatus(invoice.status) == InvoiceStatus.CANCELLED:
               raise ValidationError(f"Invoice {invoice.invoice_number} is cancelled and cannot be sent", entity_id=invoice_id)
          customer = self._customer_for(invoice)
          items = self.repo.list(InvoiceItem, invoice_id=invoice_id)
          message = self.build_message(invoice, customer, overrides)

          pdf_url = None
          if generate_pdf:
               pdf = self._try_render(invoice, customer, items)
               if pdf is not None:
                    message.attachments.append(self.pdf_attachment(invoice, pdf))
                    pdf_url = self._try_store(invoice, pdf)

          try:
               result = self.transport.send(message)
          except Exception as exc:
               logger.error("Email transport raised for invoice %s: %s", invoice_id, exc)
               raise DispatchError(
                    f"Email for invoice {invoice.invoice_number} was not sent: {exc}",
                    entity="Invoice", entity_id=invoice_id, step="send_email",
               ) from exc
          if not result.ok:
               logger.error("Email for invoice %s rejected: %s", invoice_id, result.error)
               raise DispatchError(
                    f"Email for invoice {invoice.invoice_number} was not sent: {result.error}",
                    entity="Invoice", entity_id=invoice_id, step="send_email",
               )
          logger.info("Invoice %s emailed to %s (message %s)", invoice.invoice_number, customer.email, result.id)

          try:
               return self.mark_sent(invoice_id, sent_at=now, pdf_url=pdf_url)
          except BillingError as exc:
               logger.error("Invoice %s emailed but not marked sent: %s", invoice_id, exc)
               raise PartialSuccessError(
                    f"Invoice {invoice.invoice_number} was emailed but could not be marked sent; retry marking it sent",
                    entity="Invoice", entity_id=invoice_id, step="mark_sent", message_id=result.id,
               ) from exc

     def mark_sent(
          self,
          invoice_id: int,
          sent_at: Optional[datetime] = None,
          pdf_url: Optional[str] = None,
     ) -> Invoice:
          """Record a dispatch: draft/sent/overdue become SENT, sent_at is stamped either way."""
          invoice = self.repo.get(Invoice, invoice_id)
          status = InvoiceStatus(invoice.status)
          if status == InvoiceStatus.CANCELLED:
               raise ValidationError(f"Invoice {invoice.invoice_number} is cancelled", entity_id=invoice_id)
          target = InvoiceStatus.SENT if status in RESENDABLE_STATUSES else status
          fields = {"sent_at": sent_at or datetime.utcnow()}
          if pdf_url:
               fields["pdf_url"] = pdf_url
          return apply_transition(self.repo, invoice, target, **fields)
