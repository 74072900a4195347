from datetime import date
from decimal import Decimal

import pytest

from models import Invoice, InvoiceItem, Payment
from models.invoice import InvoiceStatus
from models.payment import PaymentMethod
from services.errors import ConflictError, DependencyWriteError, ValidationError
from services.invoice_service import InvoiceService
from tests.fakes import STANDARD_ITEMS, FlakyRepository, invoice_header


@pytest.fixture
def service(repo):
    return InvoiceService(repo)


def test_create_then_read_back_keeps_items_and_totals(service, customer):
    items = [
        {"description": "Design", "quantity": 3, "rate": "45.50"},
        {"description": "Hosting", "quantity": "0.5", "rate": "19.99"},
    ]
    invoice = service.create_invoice(invoice_header(customer.id, tax_amount="12.00", discount_amount="2.50"), items)

    stored = service.get_invoice(invoice.id)
    stored_items = service.get_items(invoice.id)

    assert stored.status == InvoiceStatus.DRAFT
    assert stored.version == 1
    assert len(stored_items) == 2
    assert sum(i.amount for i in stored_items) == stored.subtotal
    assert stored.subtotal == Decimal("146.50")
    assert stored.total == Decimal("156.00")


def test_item_amount_from_caller_is_ignored(service, customer):
    invoice = service.create_invoice(
        invoice_header(customer.id),
        [{"description": "Work", "quantity": 2, "rate": "10.00", "amount": "999.99"}],
    )
    assert service.get_items(invoice.id)[0].amount == Decimal("20.00")


def test_product_snapshot_fills_description_and_rate(service, customer, product, repo):
    invoice = service.create_invoice(invoice_header(customer.id), [{"product_id": product.id, "quantity": 2}])
    item = service.get_items(invoice.id)[0]
    assert item.description == "Hourly web development"
    assert item.rate == Decimal("150.00")
    assert item.tax_rate == Decimal("0")

    repo.update(type(product), product.id, {"price": Decimal("200.00")})
    assert service.get_items(invoice.id)[0].rate == Decimal("150.00")


@pytest.mark.parametrize("items", [[], [{"description": "x", "quantity": 0, "rate": 1}], [{"description": "", "rate": 1}]])
def test_invalid_items_are_rejected(service, customer, items):
    with pytest.raises(ValidationError):
        service.create_invoice(invoice_header(customer.id), items)


def test_unknown_customer_is_rejected(service):
    with pytest.raises(ValidationError):
        service.create_invoice(invoice_header(9999), STANDARD_ITEMS)


def test_due_date_before_issue_date_is_rejected(service, customer):
    with pytest.raises(ValidationError):
        service.create_invoice(invoice_header(customer.id, due_date=date(2026, 9, 1)), STANDARD_ITEMS)


def test_duplicate_invoice_number_is_rejected(service, customer):
    service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)
    with pytest.raises(ValidationError):
        service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)


def test_update_replaces_items_and_recomputes_totals(service, customer, repo):
    invoice = service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)

    updated = service.update_invoice(
        invoice.id,
        {"notes": "Thanks"},
        [{"description": "Audit", "quantity": 1, "rate": "99.99"}, {"description": "Fix", "quantity": 2, "rate": "5"}],
    )

    items = repo.list(InvoiceItem, invoice_id=invoice.id)
    assert [i.description for i in items] == ["Audit", "Fix"]
    assert updated.subtotal == Decimal("109.99")
    assert updated.total == Decimal("130.75")
    assert updated.notes == "Thanks"
    assert updated.version == 2


def test_header_only_update_keeps_items(service, customer, repo):
    invoice = service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)
    updated = service.update_invoice(invoice.id, {"discount_amount": "20.76"})
    assert len(repo.list(InvoiceItem, invoice_id=invoice.id)) == 1
    assert updated.total == Decimal("300.00")


def test_update_with_stale_expected_version_conflicts(service, customer):
    invoice = service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)
    version = invoice.version

    service.update_invoice(invoice.id, {"notes": "first"}, expected_version=version)
    with pytest.raises(ConflictError):
        service.update_invoice(invoice.id, {"notes": "second"}, expected_version=version)
    assert service.get_invoice(invoice.id).notes == "first"


def test_update_without_version_is_last_write_wins(service, customer):
    invoice = service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)
    service.update_invoice(invoice.id, {"notes": "first"})
    service.update_invoice(invoice.id, {"notes": "second"})
    assert service.get_invoice(invoice.id).notes == "second"


def test_update_rejects_unknown_header_fields(service, customer):
    invoice = service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)
    with pytest.raises(ValidationError):
        service.update_invoice(invoice.id, {"total": "1.00"})


def test_cancelled_invoice_cannot_be_edited(service, customer):
    invoice = service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)
    service.cancel_invoice(invoice.id)
    with pytest.raises(ValidationError):
        service.update_invoice(invoice.id, {"notes": "too late"})


def test_delete_removes_invoice_and_all_items(service, customer, repo):
    items = [{"description": f"Line {n}", "quantity": 1, "rate": 10} for n in range(3)]
    invoice = service.create_invoice(invoice_header(customer.id), items)

    service.delete_invoice(invoice.id)

    assert repo.list(InvoiceItem, invoice_id=invoice.id) == []
    assert repo.list(Invoice) == []


def test_delete_is_refused_while_payments_exist(service, customer, repo):
    invoice = service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)
    repo.create(Payment, {
        "invoice_id": invoice.id,
        "amount": Decimal("10.00"),
        "payment_date": date(2026, 10, 5),
        "method": PaymentMethod.CASH,
    })
    with pytest.raises(ValidationError):
        service.delete_invoice(invoice.id)


def test_failed_item_delete_surfaces_dependency_write_error(repo, customer):
    items = [{"description": f"Line {n}", "quantity": 1, "rate": 10} for n in range(3)]
    invoice = InvoiceService(repo).create_invoice(invoice_header(customer.id), items)

    flaky = InvoiceService(FlakyRepository(repo, {("delete_many", InvoiceItem): 0}))
    with pytest.raises(DependencyWriteError) as info:
        flaky.delete_invoice(invoice.id)
    assert info.value.context["step"] == "delete_items"
    assert info.value.context["entity_id"] == invoice.id


def test_item_delete_failing_midway_reports_what_was_removed(repo, customer):
    items = [{"description": f"Line {n}", "quantity": 1, "rate": 10} for n in range(3)]
    invoice = InvoiceService(repo).create_invoice(invoice_header(customer.id), items)

    one_by_one = FlakyRepository(repo, {("delete", InvoiceItem): 1}, batch_delete=False)
    with pytest.raises(DependencyWriteError) as info:
        InvoiceService(one_by_one).delete_invoice(invoice.id)

    assert info.value.context["step"] == "delete_items"
    assert info.value.context["items_deleted"] == 1
    assert info.value.context["items_expected"] == 3
    assert len(repo.list(InvoiceItem, invoice_id=invoice.id)) == 2
    assert repo.get(Invoice, invoice.id).invoice_number == "INV-001"


def test_failed_item_write_reports_progress(repo, customer):
    items = [{"description": f"Line {n}", "quantity": 1, "rate": 10} for n in range(3)]
    flaky = InvoiceService(FlakyRepository(repo, {("create", InvoiceItem): 1}))

    with pytest.raises(DependencyWriteError) as info:
        flaky.create_invoice(invoice_header(customer.id), items)
    assert info.value.context["items_written"] == 1
    assert info.value.context["items_expected"] == 3
    assert info.value.context["step"] == "create_items"


def test_list_filters_on_effective_status(service, customer):
    late = service.create_invoice(invoice_header(customer.id, "INV-LATE", due_date=date(2026, 10, 2)), STANDARD_ITEMS)
    service.create_invoice(invoice_header(customer.id, "INV-OK", due_date=date(2026, 12, 31)), STANDARD_ITEMS)

    overdue = service.list_invoices(overdue_only=True, today=date(2026, 10, 17))
    drafts = service.list_invoices(status=InvoiceStatus.DRAFT, today=date(2026, 10, 17))

    assert [inv.id for inv in overdue] == [late.id]
    assert [inv.invoice_number for inv in drafts] == ["INV-OK"]
    assert service.get_invoice(late.id).status == InvoiceStatus.DRAFT


def test_mark_viewed_sets_timestamp_once(service, customer, repo):
    invoice = service.create_invoice(invoice_header(customer.id), STANDARD_ITEMS)
    repo.update(Invoice, invoice.id, {"status": InvoiceStatus.SENT})

    first = service.mark_viewed(invoice.id)
    viewed_at = first.viewed_at
    second = service.mark_viewed(invoice.id)

    assert second.status == InvoiceStatus.VIEWED
    assert second.viewed_at == viewed_at


def test_sub_cent_rates_are_billed_unrounded(service, customer):
    invoice = service.create_invoice(
        invoice_header(customer.id, tax_amount=0),
        [{"description": "API calls", "quantity": 1000, "rate": "0.005"}],
    )

    item = service.get_items(invoice.id)[0]
    assert item.rate == Decimal("0.005")
    assert item.amount == Decimal("5.00")
    assert service.get_invoice(invoice.id).total == Decimal("5.00")


def test_rate_with_more_places_than_stored_is_rejected(service, customer):
    with pytest.raises(ValidationError) as info:
        service.create_invoice(invoice_header(customer.id), [{"description": "X", "quantity": 1, "rate": "0.00001"}])
    assert info.value.context == {"field": "items", "index": 0}


@pytest.mark.parametrize("quantity", ["0.0004", "1.0005"])
def test_quantity_is_never_silently_rounded(service, customer, quantity):
    with pytest.raises(ValidationError) as info:
        service.create_invoice(invoice_header(customer.id), [{"description": "X", "quantity": quantity, "rate": "10"}])
    assert "decimal places" in info.value.message


def test_fractional_quantity_within_scale_is_kept(service, customer):
    invoice = service.create_invoice(
        invoice_header(customer.id, tax_amount=0),
        [{"description": "Consulting", "quantity": "1.125", "rate": "80.00"}],
    )
    assert service.get_items(invoice.id)[0].quantity == Decimal("1.125")
    assert invoice.total == Decimal("90.00")
