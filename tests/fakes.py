"""Test doubles and builders shared by the test modules."""
from datetime import date
from decimal import Decimal

from schemas.email import SendResult
from services.errors import RenderError, TransientError
from services.repository import Repository


def invoice_header(customer_id, number="INV-001", **overrides):
    header = {
        "invoice_number": number,
        "customer_id": customer_id,
        "issue_date": date(2026, 10, 1),
        "due_date": date(2026, 10, 31),
        "tax_amount": Decimal("20.76"),
    }
    header.update(overrides)
    return header


# 2 x 150.00 + 20.76 tax = 320.76
STANDARD_ITEMS = [{"description": "Web Development", "quantity": 2, "rate": "150.00"}]


class FakeTransport:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send(self, message):
        self.sent.append(message)
        if self.error:
            return SendResult(error=self.error)
        return SendResult(id=f"msg-{len(self.sent)}")


class FakeRenderer:
    def __init__(self, fail=False, error=None):
        self.fail = fail
        self.error = error
        self.calls = 0

    def render(self, invoice, customer, items):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.fail:
            raise RenderError("renderer exploded", entity_id=invoice.id)
        return b"%PDF-1.4 test document"


class FakeBlobStore:
    def __init__(self, fail=False):
        self.fail = fail
        self.blobs = {}

    def upload_bytes(self, key, data, content_type="application/octet-stream"):
        if self.fail:
            raise ConnectionError("storage offline")
        self.blobs[key] = data
        return f"https://blobs.test/billing/{key}"


class FlakyRepository(Repository):
    """
    Wraps a real repository and fails selected calls.

    fail_on maps (operation, entity_type) to the number of calls that still
    succeed before every further call raises TransientError. With
    batch_delete=False, delete_many falls back to deleting row by row.
    """

    def __init__(self, inner, fail_on=None, batch_delete=True):
        self.inner = inner
        self.fail_on = dict(fail_on or {})
        self.batch_delete = batch_delete

    def _maybe_fail(self, operation, entity_type):
        key = (operation, entity_type)
        if key not in self.fail_on:
            return
        if self.fail_on[key] > 0:
            self.fail_on[key] -= 1
            return
        raise TransientError(f"injected {operation} failure", entity=entity_type.__name__)

    def create(self, entity_type, fields):
        self._maybe_fail("create", entity_type)
        return self.inner.create(entity_type, fields)

    def get(self, entity_type, record_id):
        return self.inner.get(entity_type, record_id)

    def update(self, entity_type, record_id, fields):
        self._maybe_fail("update", entity_type)
        return self.inner.update(entity_type, record_id, fields)

    def delete(self, entity_type, record_id):
        self._maybe_fail("delete", entity_type)
        return self.inner.delete(entity_type, record_id)

    def delete_many(self, entity_type, record_ids):
        if not self.batch_delete:
            return super().delete_many(entity_type, record_ids)
        self._maybe_fail("delete_many", entity_type)
        return self.inner.delete_many(entity_type, record_ids)

    def list(self, entity_type, **filters):
        return self.inner.list(entity_type, **filters)
