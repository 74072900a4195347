from datetime import date
from decimal import Decimal

import pytest

from models import Invoice, Payment
from models.invoice import InvoiceStatus
from models.payment import PaymentStatus
from services.errors import ReconciliationError, ValidationError
from services.invoice_service import InvoiceService
from services.payment_service import PaymentService
from tests.fakes import STANDARD_ITEMS, FlakyRepository, invoice_header

PAID_ON = date(2026, 10, 20)


@pytest.fixture
def invoice(repo, customer):
    return InvoiceService(repo).create_invoice(invoice_header(customer.id), STANDARD_ITEMS)


@pytest.fixture
def payments(repo):
    return PaymentService(repo)


def test_full_payment_marks_invoice_paid(payments, invoice, repo):
    assert invoice.total == Decimal("320.76")
    payments.record_payment(invoice.id, "320.76", "bank_transfer", PAID_ON)
    assert repo.get(Invoice, invoice.id).status == InvoiceStatus.PAID


def test_partial_payments_accumulate(payments, invoice, repo):
    payments.record_payment(invoice.id, "200.00", "check", PAID_ON)
    assert repo.get(Invoice, invoice.id).status == InvoiceStatus.DRAFT
    assert payments.total_paid(invoice.id) == Decimal("200.00")

    payments.record_payment(invoice.id, "120.76", "cash", PAID_ON)
    assert repo.get(Invoice, invoice.id).status == InvoiceStatus.PAID


def test_overpayment_also_marks_paid(payments, invoice, repo):
    payments.record_payment(invoice.id, "400", "stripe", PAID_ON)
    result = payments.reconcile(invoice.id)
    assert result.invoice.status == InvoiceStatus.PAID
    assert result.balance == Decimal("-79.24")


def test_fractional_payments_sum_exactly(payments, repo, customer):
    invoice = InvoiceService(repo).create_invoice(
        invoice_header(customer.id, "INV-CENTS", tax_amount=0),
        [{"description": "Penny item", "quantity": 3, "rate": "0.10"}],
    )
    for _ in range(3):
        payments.record_payment(invoice.id, 0.1, "cash", PAID_ON)
    assert payments.total_paid(invoice.id) == Decimal("0.30")
    assert repo.get(Invoice, invoice.id).status == InvoiceStatus.PAID


def test_failed_and_refunded_payments_can_be_excluded(invoice, repo):
    payments = PaymentService(repo, counted_statuses=[PaymentStatus.PENDING, PaymentStatus.COMPLETED])
    payments.record_payment(invoice.id, "320.76", "credit_card", PAID_ON, status=PaymentStatus.FAILED)
    payments.record_payment(invoice.id, "320.76", "credit_card", PAID_ON, status="refunded")
    assert payments.total_paid(invoice.id) == Decimal("0.00")
    assert repo.get(Invoice, invoice.id).status == InvoiceStatus.DRAFT


def test_every_payment_counts_by_default(payments, invoice, repo):
    payments.record_payment(invoice.id, "300.00", "credit_card", PAID_ON, status=PaymentStatus.REFUNDED)
    payments.record_payment(invoice.id, "20.76", "cash", PAID_ON, status=PaymentStatus.FAILED)

    assert payments.total_paid(invoice.id) == Decimal("320.76")
    assert repo.get(Invoice, invoice.id).status == InvoiceStatus.PAID


def test_counted_statuses_are_configurable(repo, invoice):
    strict = PaymentService(repo, counted_statuses=["completed"])
    strict.record_payment(invoice.id, "320.76", "paypal", PAID_ON, status="pending")
    assert repo.get(Invoice, invoice.id).status == InvoiceStatus.DRAFT


def test_reconcile_is_idempotent(payments, invoice, repo):
    payments.record_payment(invoice.id, "320.76", "cash", PAID_ON)
    version = repo.get(Invoice, invoice.id).version

    again = payments.reconcile(invoice.id)

    assert again.transitioned is False
    assert repo.get(Invoice, invoice.id).version == version


def test_deleting_a_payment_does_not_demote_a_paid_invoice(payments, invoice, repo):
    payment = payments.record_payment(invoice.id, "320.76", "cash", PAID_ON)
    payments.delete_payment(payment.id)
    assert repo.get(Invoice, invoice.id).status == InvoiceStatus.PAID
    assert repo.list(Payment, invoice_id=invoice.id) == []


def test_updating_amount_reconciles(payments, invoice, repo):
    payment = payments.record_payment(invoice.id, "100.00", "cash", PAID_ON)
    payments.update_payment(payment.id, {"amount": "320.76"})
    assert repo.get(Invoice, invoice.id).status == InvoiceStatus.PAID


@pytest.mark.parametrize("amount", [0, "-5", "abc"])
def test_invalid_amounts_are_rejected(payments, invoice, amount):
    with pytest.raises(ValidationError):
        payments.record_payment(invoice.id, amount, "cash", PAID_ON)


def test_unknown_method_is_rejected(payments, invoice):
    with pytest.raises(ValidationError):
        payments.record_payment(invoice.id, "10", "barter", PAID_ON)


def test_payment_on_cancelled_invoice_is_rejected(payments, invoice):
    InvoiceService(payments.repo).cancel_invoice(invoice.id)
    with pytest.raises(ValidationError):
        payments.record_payment(invoice.id, "10", "cash", PAID_ON)


def test_status_write_failure_keeps_payment_and_can_be_retried(repo, invoice):
    flaky = PaymentService(FlakyRepository(repo, {("update", Invoice): 0}))

    with pytest.raises(ReconciliationError) as info:
        flaky.record_payment(invoice.id, "320.76", "cash", PAID_ON)
    assert info.value.context["invoice_id"] == invoice.id
    assert len(repo.list(Payment, invoice_id=invoice.id)) == 1

    result = PaymentService(repo).reconcile(invoice.id)
    assert result.transitioned is True
    assert result.invoice.status == InvoiceStatus.PAID
