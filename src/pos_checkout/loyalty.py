from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal

from .money import ZERO, round2, to_decimal


@dataclass(frozen=True)
class LoyaltyRedemption:
    points: int
    discount: Decimal

    @property
    def active(self) -> bool:
        return self.points > 0


NO_REDEMPTION = LoyaltyRedemption(points=0, discount=ZERO)


def redeemable_points(customer_points: int, subtotal: Decimal, campaign_discount: Decimal) -> int:
    remaining = to_decimal(subtotal) - to_decimal(campaign_discount)
    if remaining <= 0:
        return 0
    eligible = int(remaining.to_integral_value(rounding=ROUND_FLOOR))
    return max(0, min(eligible, int(customer_points)))


def compute_redemption(
    customer_points: int,
    subtotal: Decimal,
    campaign_discount: Decimal,
    point_value: Decimal,
    *,
    enabled: bool,
) -> LoyaltyRedemption:
    """Points the customer would spend on this sale and what they are worth.

    The ledger is never touched here; the server re-checks the balance on
    commit and rejects the sale if it has changed in the meantime.
    """
    if not enabled or to_decimal(subtotal) <= 0:
        return NO_REDEMPTION
    points = redeemable_points(customer_points, subtotal, campaign_discount)
    if points <= 0:
        return NO_REDEMPTION
    discount = round2(Decimal(points) * to_decimal(point_value))
    # a point value above 1 must not push the discount past what is left to pay
    ceiling = round2(to_decimal(subtotal) - to_decimal(campaign_discount))
    if discount > ceiling:
        points = int((ceiling / to_decimal(point_value)).to_integral_value(rounding=ROUND_FLOOR))
        discount = round2(Decimal(points) * to_decimal(point_value))
    return LoyaltyRedemption(points=points, discount=discount)
