from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from services.errors import RenderError
from services.pdf_service import InvoicePdfRenderer


def _invoice(**overrides):
    data = dict(
        id=1,
        invoice_number="INV-001",
        issue_date=date(2026, 10, 1),
        due_date=date(2026, 10, 31),
        status="draft",
        subtotal=Decimal("300.00"),
        tax_amount=Decimal("20.76"),
        discount_amount=Decimal("0.00"),
        total=Decimal("320.76"),
        notes="Thank you for your business",
        terms="Net 30",
    )
    data.update(overrides)
    return SimpleNamespace(**data)


CUSTOMER = SimpleNamespace(
    name="Café Zoë", email="ap@acme.example", phone=None, address="1 Main St", billing_address=None,
)
ITEMS = [SimpleNamespace(description="Web Development ✓", quantity=Decimal("2.000"), rate=Decimal("150.00"), amount=Decimal("300.00"))]


def test_render_produces_a_pdf():
    pdf = InvoicePdfRenderer("Netspire", ["123 Business Street"]).render(_invoice(), CUSTOMER, ITEMS)
    assert pdf.startswith(b"%PDF")


def test_render_failure_becomes_render_error():
    with pytest.raises(RenderError):
        InvoicePdfRenderer("Netspire", []).render(_invoice(total="not money"), CUSTOMER, ITEMS)
