"""Automatic campaign discounts.

Every live, eligible campaign without a promo code applies at the same time
and the discounts add up. There is no aggregate cap across campaigns: each
campaign is only bounded by its own ``max_discount_amount``. Promo-code
campaigns are never picked up here; they enter through ``promo_codes``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Literal, Sequence

from .models import Campaign
from .money import ZERO, round2, to_decimal

CampaignSource = Literal["automatic", "code"]


@dataclass(frozen=True)
class AppliedCampaign:
    campaign_id: str
    campaign_name: str
    discount_type: str
    discount_value: Decimal
    calculated_discount: Decimal
    code: str | None = None
    source: CampaignSource = "automatic"


@dataclass(frozen=True)
class CampaignEvaluation:
    applied: tuple[AppliedCampaign, ...]

    @property
    def total_discount(self) -> Decimal:
        return total_discount(self.applied)


def total_discount(applied: Iterable[AppliedCampaign]) -> Decimal:
    return sum((entry.calculated_discount for entry in applied), ZERO)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def in_validity_window(campaign: Campaign, now: datetime | None = None) -> bool:
    if campaign.status.lower() != "active":
        return False
    moment = _as_utc(now or datetime.now(timezone.utc))
    return _as_utc(campaign.start_date) <= moment <= _as_utc(campaign.end_date)


def total_uses_exhausted(campaign: Campaign) -> bool:
    return bool(campaign.max_total_uses) and campaign.current_uses >= campaign.max_total_uses


def customer_uses_exhausted(campaign: Campaign, customer_id: str | None) -> bool:
    if not customer_id or not campaign.max_uses_per_customer:
        return False
    return campaign.customer_uses.get(customer_id, 0) >= campaign.max_uses_per_customer


def is_campaign_live(campaign: Campaign, now: datetime | None = None, customer_id: str | None = None) -> bool:
    return (
        in_validity_window(campaign, now)
        and not total_uses_exhausted(campaign)
        and not customer_uses_exhausted(campaign, customer_id)
    )


def customer_is_eligible(campaign: Campaign, customer_id: str | None) -> bool:
    audience = campaign.target_audience
    if audience.all_customers:
        return True
    # segmented campaigns need someone to match against
    if customer_id is None:
        return False
    if customer_id in audience.exclude_customer_ids:
        return False
    if audience.include_customer_ids and customer_id not in audience.include_customer_ids:
        return False
    return True


def campaign_discount(campaign: Campaign, subtotal: Decimal | float | str) -> Decimal:
    amount = to_decimal(subtotal)
    if campaign.min_purchase_amount and amount < campaign.min_purchase_amount:
        return ZERO
    if campaign.discount_type == "percentage":
        discount = amount * campaign.discount_value / Decimal("100")
    elif campaign.discount_type == "fixed":
        discount = to_decimal(campaign.discount_value)
    else:
        # free_shipping and buy_x_get_y are resolved outside the cart total
        discount = ZERO
    if campaign.max_discount_amount and discount > campaign.max_discount_amount:
        discount = to_decimal(campaign.max_discount_amount)
    return round2(max(discount, ZERO))


def applied_from_campaign(
    campaign: Campaign,
    discount: Decimal,
    source: CampaignSource = "automatic",
) -> AppliedCampaign:
    return AppliedCampaign(
        campaign_id=campaign.id,
        campaign_name=campaign.name,
        discount_type=campaign.discount_type,
        discount_value=campaign.discount_value,
        calculated_discount=discount,
        code=campaign.code if source == "code" else None,
        source=source,
    )


def evaluate_campaigns(
    subtotal: Decimal,
    customer_id: str | None,
    campaigns: Sequence[Campaign],
    now: datetime | None = None,
) -> CampaignEvaluation:
    if subtotal <= 0:
        return CampaignEvaluation(applied=())
    applied: list[AppliedCampaign] = []
    for campaign in campaigns:
        if campaign.is_code_campaign:
            continue
        if not is_campaign_live(campaign, now, customer_id):
            continue
        if not customer_is_eligible(campaign, customer_id):
            continue
        discount = campaign_discount(campaign, subtotal)
        if discount > 0:
            applied.append(applied_from_campaign(campaign, discount))
    return CampaignEvaluation(applied=tuple(applied))


def merge_with_codes(
    evaluation: CampaignEvaluation,
    current: Iterable[AppliedCampaign],
) -> tuple[AppliedCampaign, ...]:
    """Replace the automatic entries, keep whatever came from a promo code."""
    kept = [entry for entry in current if entry.source == "code"]
    code_ids = {entry.campaign_id for entry in kept}
    automatic = [entry for entry in evaluation.applied if entry.campaign_id not in code_ids]
    return tuple(automatic + kept)
