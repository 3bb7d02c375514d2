from __future__ import annotations

from decimal import Decimal

from pos_checkout.loyalty import NO_REDEMPTION, compute_redemption, redeemable_points


def test_points_capped_by_remaining_amount() -> None:
    redemption = compute_redemption(500, Decimal("1000"), Decimal("850"), Decimal("1"), enabled=True)
    assert redemption.points == 150
    assert redemption.discount == Decimal("150.00")


def test_points_capped_by_balance() -> None:
    redemption = compute_redemption(40, Decimal("1000"), Decimal("0"), Decimal("1"), enabled=True)
    assert redemption.points == 40
    assert redemption.active


def test_remaining_amount_is_floored() -> None:
    assert redeemable_points(1000, Decimal("99.99"), Decimal("0")) == 99


def test_disabled_or_zero_subtotal_redeems_nothing() -> None:
    assert compute_redemption(100, Decimal("50"), Decimal("0"), Decimal("1"), enabled=False) is NO_REDEMPTION
    assert compute_redemption(100, Decimal("0"), Decimal("0"), Decimal("1"), enabled=True) is NO_REDEMPTION
    assert compute_redemption(100, Decimal("50"), Decimal("50"), Decimal("1"), enabled=True) is NO_REDEMPTION


def test_point_value_never_exceeds_amount_due() -> None:
    redemption = compute_redemption(100, Decimal("25"), Decimal("0"), Decimal("2"), enabled=True)
    assert redemption.discount <= Decimal("25")
    assert redemption.points == 12
    assert redemption.discount == Decimal("24.00")
