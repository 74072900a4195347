from decimal import Decimal

import pytest

from services.calculator import aggregate, line_amount, round2, to_decimal, to_money
from services.errors import ValidationError


def test_line_amount_rounds_half_up_to_cents():
    assert line_amount(3, "0.335") == Decimal("1.01")
    assert line_amount("2.5", "10.01") == Decimal("25.03")


def test_line_amount_rejects_non_positive_quantity_and_negative_rate():
    with pytest.raises(ValidationError):
        line_amount(0, 10)
    with pytest.raises(ValidationError):
        line_amount(-1, 10)
    with pytest.raises(ValidationError):
        line_amount(1, "-0.01")


def test_zero_rate_line_is_allowed():
    assert line_amount(5, 0) == Decimal("0.00")


def test_floats_keep_their_decimal_value():
    items = [{"quantity": 1, "rate": 0.1}] * 3
    assert aggregate(items).subtotal == Decimal("0.30")


def test_aggregate_total_is_subtotal_plus_tax_minus_discount():
    items = [
        {"quantity": 2, "rate": "150.00"},
        {"quantity": "1.5", "rate": "33.33"},
    ]
    totals = aggregate(items, tax_amount="20.76", discount_amount="5")
    assert totals.subtotal == Decimal("350.00")
    assert totals.total == round2(totals.subtotal + Decimal("20.76") - Decimal("5"))


def test_aggregate_is_order_independent():
    items = [
        {"quantity": "0.333", "rate": "9.99"},
        {"quantity": 7, "rate": "0.07"},
        {"quantity": "1.005", "rate": "100"},
    ]
    assert aggregate(items) == aggregate(list(reversed(items)))


def test_aggregate_accepts_objects():
    class Line:
        quantity = Decimal("4")
        rate = Decimal("2.50")

    assert aggregate([Line()]).subtotal == Decimal("10.00")


def test_discount_larger_than_subtotal_gives_negative_total():
    totals = aggregate([{"quantity": 1, "rate": 10}], discount_amount=15)
    assert totals.total == Decimal("-5.00")


@pytest.mark.parametrize("junk", [None, True, "abc", "", float("nan"), "Infinity"])
def test_to_decimal_rejects_junk(junk):
    with pytest.raises(ValidationError):
        to_decimal(junk, "amount")


def test_to_money_rounds():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(7) == Decimal("7.00")
