import json
from datetime import date
from decimal import Decimal

from models.audit_log import AuditAction
from models.invoice import InvoiceStatus
from services.audit_service import list_events, record_event
from services.invoice_service import InvoiceService
from services.payment_service import DEFAULT_COUNTED_STATUSES, PaymentService
from services.report_service import customer_summary, dashboard_summary
from tests.fakes import STANDARD_ITEMS, invoice_header

TODAY = date(2026, 10, 17)


def test_audit_events_are_serialized_and_listed_newest_first(repo):
    record_event(repo, "Invoice", 1, AuditAction.CREATED, "user-1", {"total": Decimal("320.76"), "due": date(2026, 10, 31)})
    record_event(repo, "Invoice", 1, AuditAction.SENT, "user-2")
    record_event(repo, "Payment", 7, AuditAction.CREATED, "user-1", {"status": InvoiceStatus.PAID})

    events = list_events(repo, entity_type="Invoice", entity_id=1)

    assert [e.action for e in events] == [AuditAction.SENT, AuditAction.CREATED]
    assert json.loads(events[1].changes) == {"due": "2026-10-31", "total": "320.76"}
    assert events[0].changes is None
    assert len(list_events(repo, limit=2)) == 2


def test_dashboard_summary(repo, customer):
    invoices = InvoiceService(repo)
    paid = invoices.create_invoice(invoice_header(customer.id, "INV-PAID"), STANDARD_ITEMS)
    late = invoices.create_invoice(invoice_header(customer.id, "INV-LATE", due_date=date(2026, 10, 10)), STANDARD_ITEMS)
    invoices.create_invoice(invoice_header(customer.id, "INV-NEW", due_date=date(2026, 11, 30)), STANDARD_ITEMS)
    cancelled = invoices.create_invoice(invoice_header(customer.id, "INV-X"), STANDARD_ITEMS)
    invoices.cancel_invoice(cancelled.id)

    payments = PaymentService(repo)
    payments.record_payment(paid.id, "320.76", "cash", TODAY)
    payments.record_payment(late.id, "20.76", "cash", TODAY)

    summary = dashboard_summary(repo, DEFAULT_COUNTED_STATUSES, today=TODAY)

    assert summary["invoice_count"] == 4
    assert summary["customer_count"] == 1
    assert summary["status_counts"]["paid"] == 1
    assert summary["status_counts"]["overdue"] == 1
    assert summary["status_counts"]["cancelled"] == 1
    assert summary["total_billed"] == Decimal("962.28")
    assert summary["total_collected"] == Decimal("341.52")
    assert summary["total_outstanding"] == Decimal("620.76")
    assert [row["invoice_number"] for row in summary["overdue_invoices"]] == ["INV-LATE"]
    assert summary["overdue_invoices"][0]["balance"] == Decimal("300.00")
    assert summary["overdue_invoices"][0]["days_overdue"] == 7


def test_customer_summary(repo, customer):
    InvoiceService(repo).create_invoice(invoice_header(customer.id), STANDARD_ITEMS)
    summary = customer_summary(repo, customer.id, DEFAULT_COUNTED_STATUSES, today=TODAY)
    assert summary["customer_name"] == "Acme Corp"
    assert summary["total_outstanding"] == Decimal("320.76")
