from __future__ import annotations

from decimal import Decimal

import pytest

from pos_checkout.tax import compute_totals


def test_tax_on_discounted_subtotal() -> None:
    totals = compute_totals(Decimal("1000"), Decimal("150"), Decimal("0"), Decimal("16"))
    assert totals.discounted_subtotal == Decimal("850.00")
    assert totals.tax == Decimal("136.00")
    assert totals.total == Decimal("986.00")


def test_campaign_and_loyalty_discounts_combine() -> None:
    totals = compute_totals(Decimal("200"), Decimal("20"), Decimal("30"), Decimal("16"))
    assert totals.discount == Decimal("50.00")
    assert totals.tax == Decimal("24.00")
    assert totals.total == Decimal("174.00")


def test_discount_never_exceeds_subtotal() -> None:
    totals = compute_totals(Decimal("100"), Decimal("80"), Decimal("80"), Decimal("16"))
    assert totals.discount == Decimal("100.00")
    assert totals.tax == Decimal("0.00")
    assert totals.total == Decimal("0.00")


@pytest.mark.parametrize(
    ("subtotal", "campaign", "loyalty", "rate"),
    [
        ("0.01", "0", "0", "16"),
        ("33.33", "3.33", "0", "17"),
        ("999.99", "100.10", "12", "16"),
        ("12.345", "0", "0", "0"),
    ],
)
def test_total_equals_discounted_plus_tax(subtotal: str, campaign: str, loyalty: str, rate: str) -> None:
    totals = compute_totals(Decimal(subtotal), Decimal(campaign), Decimal(loyalty), Decimal(rate))
    assert totals.total == totals.subtotal - totals.discount + totals.tax
    assert totals.total >= 0
