# routers/payments.py
"""
Payment API routes.

Recording, editing or deleting a payment reconciles its invoice in the same
request: once payments cover the invoice total the invoice becomes paid.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from dependencies import (
     CurrentUser,
     get_counted_statuses,
     get_current_user,
     get_payment_service,
     require_capability,
)
from models import Invoice, Payment
from models.audit_log import AuditAction
from models.invoice import InvoiceStatus
from schemas.payment import PaymentCreate, PaymentUpdate, PaymentResponse
from services import PaymentService
from services.audit_service import record_event
from services.customer_service import refresh_totals
from services.permissions import CREATE, DELETE, EDIT

router = APIRouter(prefix="/api/payments", tags=["payments"])


def _payment_response(payment: Payment, invoice: Optional[Invoice] = None) -> PaymentResponse:
     response = PaymentResponse.model_validate(payment)
     if invoice is not None:
          response.invoice_status = InvoiceStatus(invoice.status)
     return response


def _after_write(
     payments: PaymentService,
     invoice_id: int,
     status_before: InvoiceStatus,
     user: CurrentUser,
     counted_statuses,
) -> Invoice:
     """Refresh customer totals and log the paid transition if the write caused one."""
     invoice = payments.repo.get(Invoice, invoice_id)
     if status_before != InvoiceStatus.PAID and InvoiceStatus(invoice.status) == InvoiceStatus.PAID:
          record_event(payments.repo, "Invoice", invoice_id, AuditAction.PAID, user.id, {
               "total_paid": payments.total_paid(invoice_id),
          })
     refresh_totals(payments.repo, invoice.customer_id, counted_statuses)
     return invoice


@router.get(
     "",
     response_model=List[PaymentResponse],
     summary="List payments"
)
def list_payments(
     invoice_id: Optional[int] = Query(None, description="Only payments of this invoice"),
     payments: PaymentService = Depends(get_payment_service),
     user: CurrentUser = Depends(get_current_user),
):
     return [_payment_response(p) for p in payments.list_payments(invoice_id)]


@router.post(
     "",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment against an invoice"
)
def record_payment(
     body: PaymentCreate,
     payments: PaymentService = Depends(get_payment_service),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(CREATE)),
):
     """
     Record a payment. The response carries the invoice status after
     reconciliation (`paid` once the invoice is fully covered).
     """
     status_before = InvoiceStatus(payments.repo.get(Invoice, body.invoice_id).status)
     payment = payments.record_payment(
          body.invoice_id,
          body.amount,
          body.method,
          body.payment_date,
          reference=body.reference,
          status=body.status,
          notes=body.notes,
          processing_fee=body.processing_fee,
     )
     record_event(payments.repo, "Payment", payment.id, AuditAction.CREATED, user.id, {
          "invoice_id": body.invoice_id,
          "amount": payment.amount,
          "method": payment.method,
     })
     invoice = _after_write(payments, body.invoice_id, status_before, user, counted_statuses)
     return _payment_response(payment, invoice)


@router.get(
     "/{payment_id}",
     response_model=PaymentResponse,
     summary="Get payment by ID"
)
def get_payment(
     payment_id: int,
     payments: PaymentService = Depends(get_payment_service),
     user: CurrentUser = Depends(get_current_user),
):
     payment = payments.get_payment(payment_id)
     return _payment_response(payment, payments.repo.get(Invoice, payment.invoice_id))


@router.put(
     "/{payment_id}",
     response_model=PaymentResponse,
     summary="Update a payment"
)
def update_payment(
     payment_id: int,
     body: PaymentUpdate,
     payments: PaymentService = Depends(get_payment_service),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(EDIT)),
):
     changes = body.model_dump(exclude_unset=True)
     invoice_id = payments.get_payment(payment_id).invoice_id
     status_before = InvoiceStatus(payments.repo.get(Invoice, invoice_id).status)
     payment = payments.update_payment(payment_id, changes)
     record_event(payments.repo, "Payment", payment_id, AuditAction.UPDATED, user.id, changes)
     invoice = _after_write(payments, invoice_id, status_before, user, counted_statuses)
     return _payment_response(payment, invoice)


@router.delete(
     "/{payment_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete a payment"
)
def delete_payment(
     payment_id: int,
     payments: PaymentService = Depends(get_payment_service),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(DELETE)),
):
     """Paid invoices stay paid after a payment is removed; the gap is logged."""
     payment = payments.get_payment(payment_id)
     invoice_id, amount = payment.invoice_id, payment.amount
     status_before = InvoiceStatus(payments.repo.get(Invoice, invoice_id).status)
     payments.delete_payment(payment_id)
     record_event(payments.repo, "Payment", payment_id, AuditAction.DELETED, user.id, {
          "invoice_id": invoice_id,
          "amount": amount,
     })
     _after_write(payments, invoice_id, status_before, user, counted_statuses)
     return Response(status_code=status.HTTP_204_NO_CONTENT)
