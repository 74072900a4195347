# routers/invoices.py
"""
Invoice API routes.

Provides CRUD operations for invoices and their line items plus the
lifecycle actions (send, cancel, viewed, reconcile) and the PDF download.
Access:
- Any authenticated user: read
- admin / billing: create, edit, send, cancel, reconcile
- admin: delete
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from dependencies import (
     CurrentUser,
     get_counted_statuses,
     get_current_user,
     get_dispatcher,
     get_invoice_service,
     get_payment_service,
     require_capability,
)
from models import Customer, Invoice, InvoiceItem
from models.audit_log import AuditAction
from models.invoice import InvoiceStatus
from schemas.invoice import (
     InvoiceCreate,
     InvoiceUpdate,
     InvoiceItemResponse,
     InvoiceResponse,
     InvoiceListResponse,
     ReconcileResponse,
     SendInvoiceRequest,
)
from services import InvoiceDispatcher, InvoiceService, PaymentService
from services.audit_service import record_event
from services.customer_service import refresh_totals
from services.invoice_status import effective_status
from services.permissions import CREATE, DELETE, EDIT
from services.repository import Repository

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def build_invoice_response(invoice: Invoice, repo: Repository, today: Optional[date] = None) -> InvoiceResponse:
     """Invoice with its items, effective status and customer contact."""
     customer = repo.get(Customer, invoice.customer_id)
     data = {c.key: getattr(invoice, c.key) for c in Invoice.__table__.columns}
     data.update(
          status=effective_status(invoice, today),
          stored_status=invoice.status,
          items=[InvoiceItemResponse.model_validate(item) for item in repo.list(InvoiceItem, invoice_id=invoice.id)],
          customer_name=customer.name,
          customer_email=customer.email,
     )
     return InvoiceResponse.model_validate(data)


@router.post(
     "",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a new invoice"
)
def create_invoice(
     invoice_data: InvoiceCreate,
     service: InvoiceService = Depends(get_invoice_service),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(CREATE)),
):
     """
     Create a draft invoice with its line items.

     - **invoice_number**: unique, chosen by the caller
     - **items**: at least one; amounts and totals are computed server side
     """
     invoice = service.create_invoice(invoice_data.header(), invoice_data.items)
     refresh_totals(service.repo, invoice.customer_id, counted_statuses)
     record_event(service.repo, "Invoice", invoice.id, AuditAction.CREATED, user.id, {
          "invoice_number": invoice.invoice_number,
          "total": invoice.total,
     })
     return build_invoice_response(invoice, service.repo)


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List all invoices with filters"
)
def list_invoices(
     customer_id: Optional[int] = Query(None, description="Filter by customer ID"),
     status: Optional[InvoiceStatus] = Query(None, description="Filter by (effective) status"),
     overdue_only: bool = Query(False, description="Show only overdue invoices"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=100, description="Items per page"),
     service: InvoiceService = Depends(get_invoice_service),
     user: CurrentUser = Depends(get_current_user),
):
     """
     Retrieve a paginated list of invoices, newest due date first.

     Filters:
     - **customer_id**: Show invoices for a specific customer
     - **status**: draft, sent, viewed, paid, overdue, cancelled
     - **overdue_only**: unpaid invoices past their due date
     """
     invoices = service.list_invoices(customer_id=customer_id, status=status, overdue_only=overdue_only)
     invoices.sort(key=lambda inv: (inv.due_date, inv.id), reverse=True)

     total = len(invoices)
     offset = (page - 1) * page_size
     page_rows = invoices[offset:offset + page_size]

     return InvoiceListResponse(
          invoices=[build_invoice_response(inv, service.repo) for inv in page_rows],
          total=total,
          page=page,
          page_size=page_size
     )


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get invoice by ID"
)
def get_invoice(
     invoice_id: int,
     service: InvoiceService = Depends(get_invoice_service),
     user: CurrentUser = Depends(get_current_user),
):
     return build_invoice_response(service.get_invoice(invoice_id), service.repo)


@router.put(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Update an invoice"
)
def update_invoice(
     invoice_id: int,
     invoice_data: InvoiceUpdate,
     service: InvoiceService = Depends(get_invoice_service),
     payments: PaymentService = Depends(get_payment_service),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(EDIT)),
):
     """
     Update header fields. When **items** is given every existing item is
     replaced. Send **expected_version** to get a 409 instead of overwriting
     someone else's change. If the new total is already covered by recorded
     payments the invoice becomes paid.
     """
     previous = service.get_invoice(invoice_id)
     previous_customer_id, previous_total = previous.customer_id, previous.total
     changes = invoice_data.header()
     invoice = service.update_invoice(
          invoice_id,
          changes,
          invoice_data.items,
          expected_version=invoice_data.expected_version,
     )
     if invoice.total != previous_total:
          result = payments.reconcile(invoice_id)
          invoice = result.invoice
          if result.transitioned:
               record_event(service.repo, "Invoice", invoice_id, AuditAction.PAID, user.id, {"total_paid": result.total_paid})
     for customer_id in {previous_customer_id, invoice.customer_id}:
          refresh_totals(service.repo, customer_id, counted_statuses)
     if invoice_data.items is not None:
          changes["items"] = len(invoice_data.items)
     record_event(service.repo, "Invoice", invoice_id, AuditAction.UPDATED, user.id, changes)
     return build_invoice_response(invoice, service.repo)


@router.delete(
     "/{invoice_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete an invoice and its items"
)
def delete_invoice(
     invoice_id: int,
     service: InvoiceService = Depends(get_invoice_service),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(DELETE)),
):
     """Invoices with recorded payments cannot be deleted; cancel them instead."""
     invoice = service.get_invoice(invoice_id)
     customer_id, invoice_number = invoice.customer_id, invoice.invoice_number
     service.delete_invoice(invoice_id)
     refresh_totals(service.repo, customer_id, counted_statuses)
     record_event(service.repo, "Invoice", invoice_id, AuditAction.DELETED, user.id, {"invoice_number": invoice_number})
     return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Lifecycle actions
# ---------------------------------------------------------------------------

@router.post(
     "/{invoice_id}/send",
     response_model=InvoiceResponse,
     summary="Email the invoice to its customer"
)
def send_invoice(
     invoice_id: int,
     body: Optional[SendInvoiceRequest] = None,
     dispatcher: InvoiceDispatcher = Depends(get_dispatcher),
     user: CurrentUser = Depends(require_capability(EDIT)),
):
     """
     Email the invoice (with a PDF attachment unless **generate_pdf** is
     false) and mark it sent. Subject and body may be overridden.
     """
     body = body or SendInvoiceRequest()
     invoice = dispatcher.send_invoice(invoice_id, overrides=body.overrides(), generate_pdf=body.generate_pdf)
     record_event(dispatcher.repo, "Invoice", invoice_id, AuditAction.SENT, user.id, {
          "sent_at": invoice.sent_at,
          "pdf_url": invoice.pdf_url,
     })
     return build_invoice_response(invoice, dispatcher.repo)


@router.post(
     "/{invoice_id}/cancel",
     response_model=InvoiceResponse,
     summary="Cancel an invoice"
)
def cancel_invoice(
     invoice_id: int,
     service: InvoiceService = Depends(get_invoice_service),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(EDIT)),
):
     invoice = service.cancel_invoice(invoice_id)
     refresh_totals(service.repo, invoice.customer_id, counted_statuses)
     record_event(service.repo, "Invoice", invoice_id, AuditAction.UPDATED, user.id, {"status": InvoiceStatus.CANCELLED})
     return build_invoice_response(invoice, service.repo)


@router.post(
     "/{invoice_id}/viewed",
     response_model=InvoiceResponse,
     summary="Record that the customer viewed the invoice"
)
def mark_invoice_viewed(
     invoice_id: int,
     service: InvoiceService = Depends(get_invoice_service),
     user: CurrentUser = Depends(require_capability(EDIT)),
):
     invoice = service.mark_viewed(invoice_id)
     return build_invoice_response(invoice, service.repo)


@router.post(
     "/{invoice_id}/reconcile",
     response_model=ReconcileResponse,
     summary="Re-run payment reconciliation for an invoice"
)
def reconcile_invoice(
     invoice_id: int,
     payments: PaymentService = Depends(get_payment_service),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(EDIT)),
):
     """Safe to repeat: marks the invoice paid only when payments cover its total."""
     result = payments.reconcile(invoice_id)
     if result.transitioned:
          record_event(payments.repo, "Invoice", invoice_id, AuditAction.PAID, user.id, {"total_paid": result.total_paid})
          refresh_totals(payments.repo, result.invoice.customer_id, counted_statuses)
     return ReconcileResponse(
          invoice=build_invoice_response(result.invoice, payments.repo),
          total_paid=result.total_paid,
          balance=result.balance,
          transitioned=result.transitioned,
     )


@router.get(
     "/{invoice_id}/pdf",
     summary="Download the invoice as PDF"
)
def download_invoice_pdf(
     invoice_id: int,
     dispatcher: InvoiceDispatcher = Depends(get_dispatcher),
     user: CurrentUser = Depends(get_current_user),
):
     invoice = dispatcher.repo.get(Invoice, invoice_id)
     pdf = dispatcher.render_pdf(invoice_id)
     return Response(
          content=pdf,
          media_type="application/pdf",
          headers={"Content-Disposition": f'attachment; filename="invoice-{invoice.invoice_number}.pdf"'},
     )
