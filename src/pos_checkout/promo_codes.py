from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from .campaign_engine import (
    AppliedCampaign,
    applied_from_campaign,
    campaign_discount,
    customer_uses_exhausted,
    in_validity_window,
    total_uses_exhausted,
)
from .exceptions import DuplicatePromoCodeError
from .models import Campaign
from .money import round2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromoCodeResult:
    success: bool
    message: str
    campaign: AppliedCampaign | None = None


def normalize_code(code: str | None) -> str:
    return (code or "").strip().lower()


def find_code_campaign(code: str, campaigns: Sequence[Campaign]) -> Campaign | None:
    wanted = normalize_code(code)
    for campaign in campaigns:
        if campaign.code and normalize_code(campaign.code) == wanted:
            return campaign
    return None


def apply_code(
    code: str,
    subtotal: Decimal,
    campaigns: Sequence[Campaign],
    *,
    customer_id: str | None = None,
    now: datetime | None = None,
) -> PromoCodeResult:
    """Check a typed promo code against the local catalog.

    Does not look at what is already applied; callers reject duplicates with
    ``add_code_campaign``.
    """
    if not normalize_code(code):
        return PromoCodeResult(success=False, message="Enter a promo code")

    campaign = find_code_campaign(code, campaigns)
    if campaign is None or not in_validity_window(campaign, now):
        return PromoCodeResult(success=False, message="Invalid or expired promo code")

    if campaign.min_purchase_amount and subtotal < campaign.min_purchase_amount:
        return PromoCodeResult(
            success=False,
            message=f"Minimum purchase of {round2(campaign.min_purchase_amount)} required",
        )

    if total_uses_exhausted(campaign):
        return PromoCodeResult(success=False, message="This code has reached its usage limit")

    if customer_uses_exhausted(campaign, customer_id):
        return PromoCodeResult(success=False, message="This customer has already used this code")

    discount = campaign_discount(campaign, subtotal)
    if discount <= 0:
        return PromoCodeResult(success=False, message="This code gives no discount for this amount")

    return PromoCodeResult(
        success=True,
        message=f'Code "{campaign.code}" applied. Discount of {discount}',
        campaign=applied_from_campaign(campaign, discount, source="code"),
    )


def add_code_campaign(
    applied: Iterable[AppliedCampaign],
    entry: AppliedCampaign,
) -> tuple[AppliedCampaign, ...]:
    current = tuple(applied)
    # keyed on the campaign, so a re-typed or differently cased code still collides
    if any(existing.campaign_id == entry.campaign_id for existing in current):
        raise DuplicatePromoCodeError(entry.campaign_id)
    return current + (entry,)


def remove_code(applied: Iterable[AppliedCampaign], code: str) -> tuple[AppliedCampaign, ...]:
    wanted = normalize_code(code)
    return tuple(
        entry
        for entry in applied
        if not (entry.source == "code" and normalize_code(entry.code) == wanted)
    )


def reprice_code_entries(
    applied: Iterable[AppliedCampaign],
    campaigns: Sequence[Campaign],
    subtotal: Decimal,
) -> tuple[AppliedCampaign, ...]:
    by_id = {campaign.id: campaign for campaign in campaigns}
    repriced: list[AppliedCampaign] = []
    for entry in applied:
        campaign = by_id.get(entry.campaign_id)
        if entry.source != "code" or campaign is None:
            repriced.append(entry)
            continue
        discount = campaign_discount(campaign, subtotal)
        if discount != entry.calculated_discount:
            logger.debug("repriced code %s: %s -> %s", entry.code, entry.calculated_discount, discount)
        repriced.append(replace(entry, calculated_discount=discount))
    return tuple(repriced)
