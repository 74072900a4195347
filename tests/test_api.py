from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from database import get_session
from main import create_app
from services.errors import NotFoundError
from tests.fakes import FakeBlobStore, FakeRenderer, FakeTransport
from utils.auth import create_token, verify_token

INVOICE = {
    "invoice_number": "INV-100",
    "issue_date": "2026-10-01",
    "due_date": "2099-12-31",
    "tax_amount": "20.76",
    "items": [{"description": "Web Development", "quantity": 2, "rate": "150.00"}],
}


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def app(session_factory, transport):
    application = create_app(email_transport=transport, pdf_renderer=FakeRenderer(), blob_store=FakeBlobStore())

    def override_session():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    application.dependency_overrides[get_session] = override_session
    return application


def _client(app, *groups):
    app.dependency_overrides[verify_token] = lambda: {"sub": "user-1", "email": "ops@netspire.com", "groups": list(groups)}
    return TestClient(app)


@pytest.fixture
def admin(app):
    return _client(app, "admin")


def _create_customer(client):
    response = client.post("/api/customers", json={"name": "Acme Corp", "email": "ap@acme.example"})
    assert response.status_code == 201
    return response.json()


def _create_invoice(client, customer_id, **overrides):
    response = client.post("/api/invoices", json={**INVOICE, "customer_id": customer_id, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def test_invoice_lifecycle(admin, transport):
    customer = _create_customer(admin)
    invoice = _create_invoice(admin, customer["id"])
    assert invoice["status"] == "draft"
    assert Decimal(invoice["total"]) == Decimal("320.76")
    assert len(invoice["items"]) == 1

    sent = admin.post(f"/api/invoices/{invoice['id']}/send")
    assert sent.status_code == 200, sent.text
    assert sent.json()["status"] == "sent"
    assert sent.json()["pdf_url"].endswith("invoices/INV-100.pdf")
    assert transport.sent[0].attachments[0].content_type == "application/pdf"

    partial = admin.post("/api/payments", json={
        "invoice_id": invoice["id"], "amount": "200.00", "payment_date": "2026-10-20", "method": "check",
    })
    assert partial.status_code == 201
    assert partial.json()["invoice_status"] == "sent"

    rest = admin.post("/api/payments", json={
        "invoice_id": invoice["id"], "amount": "120.76", "payment_date": "2026-10-21", "method": "bank_transfer",
    })
    assert rest.json()["invoice_status"] == "paid"

    assert admin.get(f"/api/invoices/{invoice['id']}").json()["status"] == "paid"
    refreshed = admin.get(f"/api/customers/{customer['id']}").json()
    assert Decimal(refreshed["total_paid"]) == Decimal("320.76")

    actions = [e["action"] for e in admin.get("/api/audit", params={"entity_type": "Invoice"}).json()]
    assert actions == ["paid", "sent", "created"]


def test_list_invoices_with_filters(admin):
    customer = _create_customer(admin)
    _create_invoice(admin, customer["id"])
    _create_invoice(admin, customer["id"], invoice_number="INV-101", due_date="2026-10-05")

    everything = admin.get("/api/invoices").json()
    overdue = admin.get("/api/invoices", params={"overdue_only": True}).json()

    assert everything["total"] == 2
    assert [inv["invoice_number"] for inv in overdue["invoices"]] == ["INV-101"]
    assert overdue["invoices"][0]["stored_status"] == "draft"


def test_viewer_can_read_but_not_write(app):
    viewer = _client(app, "viewer")
    assert viewer.get("/api/customers").status_code == 200
    response = viewer.post("/api/customers", json={"name": "Acme", "email": "a@b.c"})
    assert response.status_code == 403


def test_billing_cannot_delete(app):
    billing = _client(app, "billing")
    customer = _create_customer(billing)
    assert billing.delete(f"/api/customers/{customer['id']}").status_code == 403


def test_missing_invoice_is_404_with_context(admin):
    response = admin.get("/api/invoices/999")
    assert response.status_code == 404
    assert response.json()["context"] == {"entity": "Invoice", "entity_id": 999}


def test_unknown_customer_is_400(admin):
    response = admin.post("/api/invoices", json={**INVOICE, "customer_id": 42})
    assert response.status_code == 400
    assert "Customer" in response.json()["detail"]


def test_stale_version_is_409(admin):
    invoice = _create_invoice(admin, _create_customer(admin)["id"])
    url = f"/api/invoices/{invoice['id']}"

    first = admin.put(url, json={"notes": "one", "expected_version": invoice["version"]})
    second = admin.put(url, json={"notes": "two", "expected_version": invoice["version"]})

    assert first.status_code == 200
    assert second.status_code == 409


def test_transport_failure_is_502_and_invoice_stays_draft(app, admin):
    app.state.email_transport = FakeTransport(error="Brevo error 500")
    invoice = _create_invoice(admin, _create_customer(admin)["id"])

    response = admin.post(f"/api/invoices/{invoice['id']}/send", json={"generate_pdf": False})

    assert response.status_code == 502
    assert admin.get(f"/api/invoices/{invoice['id']}").json()["status"] == "draft"


def test_delete_invoice_with_payments_is_refused(admin):
    invoice = _create_invoice(admin, _create_customer(admin)["id"])
    admin.post("/api/payments", json={
        "invoice_id": invoice["id"], "amount": "10.00", "payment_date": "2026-10-20", "method": "cash",
    })
    assert admin.delete(f"/api/invoices/{invoice['id']}").status_code == 400


def test_pdf_download(admin):
    invoice = _create_invoice(admin, _create_customer(admin)["id"])
    response = admin.get(f"/api/invoices/{invoice['id']}/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_send_email_validation_and_success(admin, transport):
    missing = admin.post("/api/email/send", json={"to": "x@y.z", "text": "hi"})
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Missing required fields: from, to, subject"

    no_body = admin.post("/api/email/send", json={"from": "a@b.c", "to": "x@y.z", "subject": "Hi"})
    assert no_body.status_code == 400
    assert no_body.json()["detail"] == "Either text or html content is required"

    ok = admin.post("/api/email/send", json={"from": "a@b.c", "to": ["x@y.z"], "subject": "Hi", "html": "<p>Hi</p>"})
    assert ok.status_code == 200
    assert ok.json() == {"id": "msg-1"}
    assert transport.sent[0].html == "<p>Hi</p>"


def test_send_email_with_invoice_pdf(admin, transport):
    invoice = _create_invoice(admin, _create_customer(admin)["id"])
    response = admin.post("/api/email/send", json={
        "from": "a@b.c", "to": "x@y.z", "subject": "Invoice", "text": "Attached",
        "invoice": invoice["id"], "generatePdf": True,
    })
    assert response.status_code == 200
    assert transport.sent[0].attachments[0].filename == "invoice-INV-100.pdf"


def test_pdf_lookup_problem_does_not_block_the_email(app, admin, transport):
    app.state.pdf_renderer = FakeRenderer(error=NotFoundError("Customer", 1))
    invoice = _create_invoice(admin, _create_customer(admin)["id"])

    response = admin.post("/api/email/send", json={
        "from": "a@b.c", "to": "x@y.z", "subject": "Invoice", "text": "Attached",
        "invoice": invoice["id"], "generatePdf": True,
    })

    assert response.status_code == 200
    assert transport.sent[0].attachments == []


def test_lowering_the_total_to_what_was_paid_marks_invoice_paid(admin):
    invoice = _create_invoice(admin, _create_customer(admin)["id"])
    admin.post("/api/payments", json={
        "invoice_id": invoice["id"], "amount": "300.00", "payment_date": "2026-10-20", "method": "check",
    })

    response = admin.put(f"/api/invoices/{invoice['id']}", json={"tax_amount": "0.00"})

    assert response.status_code == 200, response.text
    assert Decimal(response.json()["total"]) == Decimal("300.00")
    assert response.json()["status"] == "paid"
    actions = [e["action"] for e in admin.get("/api/audit", params={"entity_type": "Invoice"}).json()]
    assert actions[:2] == ["updated", "paid"]


def test_dashboard_requires_report_capability(app):
    assert _client(app, "viewer").get("/api/reports/dashboard").status_code == 403
    assert _client(app, "billing").get("/api/reports/dashboard").status_code == 200


def test_my_permissions(app):
    body = _client(app, "billing").get("/api/me/permissions").json()
    assert body["capabilities"] == ["create", "edit", "view_reports"]
    assert body["user_id"] == "user-1"


def test_bearer_token_is_verified(app):
    client = TestClient(app)
    assert client.get("/api/customers").status_code == 401
    assert client.get("/api/customers", headers={"Authorization": "Bearer nonsense"}).status_code == 403

    token = create_token("user-9", ["admin"])
    response = client.get("/api/me/permissions", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["is_admin"] is True
