# services/calculator.py
"""
Money and line-item arithmetic.

All amounts are decimal.Decimal rounded half-up to cents. Floats are routed
through str() before conversion so 0.1 stays 0.1 instead of its binary
approximation. Nothing here touches the database.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Union

from .errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[int, float, str, Decimal]


def to_decimal(value: Number, field: str = "value") -> Decimal:
     """Convert input to an unrounded Decimal, rejecting junk."""
     if isinstance(value, bool) or value is None:
          raise ValidationError(f"{field} must be a number", field=field)
     if isinstance(value, Decimal):
          result = value
     else:
          try:
               result = Decimal(str(value).strip())
          except (InvalidOperation, ValueError):
               raise ValidationError(f"{field} must be a number, got {value!r}", field=field)
     if not result.is_finite():
          raise ValidationError(f"{field} must be a finite number", field=field)
     return result


def round2(value: Decimal) -> Decimal:
     return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Number, field: str = "amount") -> Decimal:
     """Convert input to a 2-place Decimal."""
     return round2(to_decimal(value, field))


def line_amount(quantity: Number, rate: Number) -> Decimal:
     """
     Amount of one invoice line: round2(quantity * rate).

     Raises:
          ValidationError: quantity <= 0 or rate < 0
     """
     qty = to_decimal(quantity, "quantity")
     unit_rate = to_decimal(rate, "rate")
     if qty <= 0:
          raise ValidationError("quantity must be greater than 0", field="quantity")
     if unit_rate < 0:
          raise ValidationError("rate must not be negative", field="rate")
     return round2(qty * unit_rate)


@dataclass(frozen=True)
class InvoiceTotals:
     subtotal: Decimal
     tax_amount: Decimal
     discount_amount: Decimal
     total: Decimal


def _item_value(item: Any, key: str) -> Any:
     if isinstance(item, Mapping):
          return item.get(key)
     return getattr(item, key, None)


def aggregate(
     items: Iterable[Any],
     tax_amount: Number = 0,
     discount_amount: Number = 0,
) -> InvoiceTotals:
     """
     Invoice aggregates from its lines.

     Items may be mappings or objects exposing quantity and rate. The sum
     is taken over already-rounded line amounts, so the result does not
     depend on item order. Discounts larger than the subtotal produce a
     negative total; nothing is clamped.
     """
     subtotal = round2(sum((line_amount(_item_value(i, "quantity"), _item_value(i, "rate")) for i in items), ZERO))
     tax = to_money(tax_amount, "tax_amount")
     discount = to_money(discount_amount, "discount_amount")
     return InvoiceTotals(
          subtotal=subtotal,
          tax_amount=tax,
          discount_amount=discount,
          total=round2(subtotal + tax - discount),
     )
