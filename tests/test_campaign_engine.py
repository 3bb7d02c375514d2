from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from checkout_helpers import NOW, make_campaign
from pos_checkout.campaign_engine import (
    AppliedCampaign,
    campaign_discount,
    customer_is_eligible,
    evaluate_campaigns,
    is_campaign_live,
    merge_with_codes,
)


def test_percentage_and_fixed_discounts_stack() -> None:
    campaigns = [
        make_campaign("pct", discountType="percentage", discountValue="10"),
        make_campaign("fix", discountType="fixed", discountValue="50"),
    ]
    evaluation = evaluate_campaigns(Decimal("1000"), None, campaigns, NOW)
    assert [entry.campaign_id for entry in evaluation.applied] == ["pct", "fix"]
    assert evaluation.total_discount == Decimal("150.00")


def test_max_discount_and_minimum_purchase() -> None:
    capped = make_campaign(discountValue="50", maxDiscountAmount="100")
    assert campaign_discount(capped, Decimal("1000")) == Decimal("100.00")
    gated = make_campaign(minPurchaseAmount="500")
    assert campaign_discount(gated, Decimal("499.99")) == Decimal("0.00")


def test_non_monetary_types_give_no_discount() -> None:
    assert campaign_discount(make_campaign(discountType="free_shipping"), Decimal("100")) == Decimal("0.00")
    assert campaign_discount(make_campaign(discountType="buy_x_get_y"), Decimal("100")) == Decimal("0.00")


def test_discount_rounds_half_up() -> None:
    campaign = make_campaign(discountValue="12.5")
    assert campaign_discount(campaign, Decimal("0.99")) == Decimal("0.12")
    assert campaign_discount(campaign, Decimal("1.00")) == Decimal("0.13")


def test_expired_inactive_and_exhausted_campaigns_skipped() -> None:
    campaigns = [
        make_campaign("old", endDate="2025-03-01T00:00:00Z"),
        make_campaign("paused", status="paused"),
        make_campaign("spent", maxTotalUses=10, currentUses=10),
        make_campaign("once", maxUsesPerCustomer=1, customerUses={"c-1": 1}),
    ]
    evaluation = evaluate_campaigns(Decimal("100"), "c-1", campaigns, NOW)
    assert evaluation.applied == ()
    assert is_campaign_live(campaigns[3], NOW, "c-2") is True


def test_naive_dates_are_treated_as_utc() -> None:
    campaign = make_campaign(startDate="2025-06-15T11:00:00", endDate="2025-06-15T13:00:00")
    assert is_campaign_live(campaign, NOW)
    assert not is_campaign_live(campaign, datetime(2025, 6, 15, 14, 0, tzinfo=timezone.utc))


def test_audience_rules() -> None:
    segmented = make_campaign(targetAudience={"allCustomers": False, "includeCustomerIds": ["c-1"]})
    assert customer_is_eligible(segmented, "c-1")
    assert not customer_is_eligible(segmented, "c-2")
    assert not customer_is_eligible(segmented, None)
    excluded = make_campaign(targetAudience={"allCustomers": False, "excludeCustomerIds": ["c-1"]})
    assert not customer_is_eligible(excluded, "c-1")
    assert customer_is_eligible(excluded, "c-2")


def test_code_campaigns_are_not_applied_automatically() -> None:
    campaigns = [make_campaign("code", code="SAVE10")]
    assert evaluate_campaigns(Decimal("1000"), None, campaigns, NOW).applied == ()


def test_zero_subtotal_applies_nothing() -> None:
    assert evaluate_campaigns(Decimal("0"), None, [make_campaign()], NOW).applied == ()


def test_merge_keeps_code_entries() -> None:
    code_entry = AppliedCampaign(
        campaign_id="code",
        campaign_name="Save",
        discount_type="fixed",
        discount_value=Decimal("100"),
        calculated_discount=Decimal("100.00"),
        code="SAVE10",
        source="code",
    )
    stale_auto = AppliedCampaign(
        campaign_id="gone",
        campaign_name="Gone",
        discount_type="fixed",
        discount_value=Decimal("5"),
        calculated_discount=Decimal("5.00"),
    )
    evaluation = evaluate_campaigns(Decimal("1000"), None, [make_campaign("pct")], NOW)
    merged = merge_with_codes(evaluation, (stale_auto, code_entry))
    assert [entry.campaign_id for entry in merged] == ["pct", "code"]
