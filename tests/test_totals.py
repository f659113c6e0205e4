from decimal import Decimal

import pytest

from billing.errors import ValidationError
from billing.services.totals import LineInput, compute_totals, round2, to_lines


def _lines(*specs):
    return [
        LineInput(item_id=i, quantity=Decimal(q), unit_price=Decimal(p))
        for i, (q, p) in enumerate(specs, start=1)
    ]


def test_reference_example():
    totals = compute_totals(_lines(("2", "10.00"), ("1", "15.00")), Decimal("5.00"))

    assert totals.subtotal == Decimal("35.00")
    assert totals.tax_amount == Decimal("3.30")
    assert totals.total_amount == Decimal("33.30")
    assert totals.tax_rate == Decimal("0.1100")


@pytest.mark.parametrize(
    "specs, discount",
    [
        ((("3", "19.99"),), "0"),
        ((("1.5", "7.33"), ("4", "0.01")), "1.10"),
        ((("7", "12.34"), ("2", "99.99"), ("1", "0.05")), "20.00"),
    ],
)
def test_total_identity(specs, discount):
    totals = compute_totals(_lines(*specs), Decimal(discount))

    assert totals.total_amount == totals.subtotal - totals.discount + totals.tax_amount
    assert totals.tax_amount == round2((totals.subtotal - totals.discount) * Decimal("0.11"))
    assert totals.total_amount.as_tuple().exponent == -2


def test_tax_rounds_half_up():
    # 0.05 * 0.11 = 0.0055 -> 0.01
    totals = compute_totals(_lines(("1", "0.05")))
    assert totals.tax_amount == Decimal("0.01")


def test_discount_larger_than_subtotal_goes_negative():
    totals = compute_totals(_lines(("1", "10.00")), Decimal("20.00"))

    assert totals.subtotal == Decimal("10.00")
    assert totals.tax_amount == Decimal("-1.10")
    assert totals.total_amount == Decimal("-11.10")


def test_no_lines_is_zero():
    totals = compute_totals([], Decimal("0"))
    assert totals.subtotal == Decimal("0.00")
    assert totals.total_amount == Decimal("0.00")


def test_line_total_is_rounded_to_cents():
    line = LineInput(item_id=1, quantity=Decimal("1.5"), unit_price=Decimal("0.33"))
    assert line.line_total == Decimal("0.50")


def test_to_lines_rejects_non_positive_values():
    with pytest.raises(ValidationError, match="quantity"):
        to_lines([{"item_id": 1, "quantity": 0, "unit_price": "1.00"}])
    with pytest.raises(ValidationError, match="unit_price"):
        to_lines([{"item_id": 1, "quantity": 1, "unit_price": "-1.00"}])


def test_subtotal_is_sum_of_rounded_line_totals():
    # each line is 0.495 -> 0.50, so the subtotal is 1.00, not round2(0.99)
    lines = _lines(("1.5", "0.33"), ("1.5", "0.33"))
    totals = compute_totals(lines, Decimal("0"))

    assert totals.subtotal == sum(line.line_total for line in lines)
    assert totals.subtotal == Decimal("1.00")
    assert totals.tax_amount == Decimal("0.11")
    assert totals.total_amount == Decimal("1.11")
