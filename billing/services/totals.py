# billing/services/totals.py
"""
Invoice arithmetic.

All amounts are `Decimal`; results are quantized to cents with
ROUND_HALF_UP. Each line is rounded on its own and the subtotal is the sum
of those rounded line totals. A discount larger than the subtotal is not
capped, so tax and total can come out negative.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List

from billing.config import TAX_RATE
from billing.errors import ValidationError

CENT = Decimal("0.01")


def round2(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineInput:
    item_id: int
    quantity: Decimal
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return round2(self.quantity * self.unit_price)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def to_lines(raw_lines: Iterable) -> List[LineInput]:
    """
    Normalise request lines (pydantic models or dicts) into LineInput,
    rejecting non-positive quantities or prices.
    """
    lines: List[LineInput] = []
    for raw in raw_lines:
        if isinstance(raw, dict):
            item_id, quantity, unit_price = raw["item_id"], raw["quantity"], raw["unit_price"]
        else:
            item_id, quantity, unit_price = raw.item_id, raw.quantity, raw.unit_price

        quantity = Decimal(str(quantity))
        unit_price = Decimal(str(unit_price))
        if quantity <= 0:
            raise ValidationError(f"quantity must be positive (item {item_id})")
        if unit_price <= 0:
            raise ValidationError(f"unit_price must be positive (item {item_id})")

        lines.append(LineInput(item_id=item_id, quantity=quantity, unit_price=unit_price))
    return lines


def compute_totals(lines: Iterable[LineInput], discount=Decimal("0")) -> Totals:
    discount = round2(Decimal(str(discount)))
    subtotal = sum((line.line_total for line in lines), Decimal("0.00"))
    taxable = subtotal - discount
    tax_amount = round2(taxable * TAX_RATE)
    total_amount = taxable + tax_amount

    return Totals(
        subtotal=subtotal,
        discount=discount,
        tax_rate=TAX_RATE,
        tax_amount=tax_amount,
        total_amount=total_amount,
    )
