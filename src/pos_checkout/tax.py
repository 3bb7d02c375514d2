from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .money import ZERO, round2, to_decimal

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: Decimal
    campaign_discount: Decimal
    loyalty_discount: Decimal
    discount: Decimal
    discounted_subtotal: Decimal
    tax: Decimal
    total: Decimal


def compute_totals(
    subtotal: Decimal,
    campaign_discount: Decimal,
    loyalty_discount: Decimal,
    tax_rate_percent: Decimal,
) -> CheckoutTotals:
    """Tax is charged on what is left after every discount, never on the gross."""
    gross = round2(subtotal)
    campaign = round2(campaign_discount)
    loyalty = round2(loyalty_discount)
    discount = min(max(campaign + loyalty, ZERO), max(gross, ZERO))
    discounted = max(ZERO, gross - discount)
    rate = to_decimal(tax_rate_percent) / HUNDRED
    tax = round2(discounted * rate)
    return CheckoutTotals(
        subtotal=gross,
        campaign_discount=campaign,
        loyalty_discount=loyalty,
        discount=discount,
        discounted_subtotal=discounted,
        tax=tax,
        total=round2(discounted + tax),
    )
