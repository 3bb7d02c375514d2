from __future__ import annotations

from decimal import Decimal

import pytest

from checkout_helpers import NOW, make_campaign
from pos_checkout.exceptions import DuplicatePromoCodeError
from pos_checkout.promo_codes import add_code_campaign, apply_code, remove_code, reprice_code_entries


def _save10(**overrides):
    return make_campaign("camp-save", code="SAVE10", discountType="fixed", discountValue="100", **overrides)


def test_apply_code_is_case_insensitive() -> None:
    result = apply_code(" save10 ", Decimal("1000"), [_save10()], now=NOW)
    assert result.success is True
    assert result.campaign is not None
    assert result.campaign.calculated_discount == Decimal("100.00")
    assert result.campaign.source == "code"
    assert result.campaign.code == "SAVE10"
    assert "SAVE10" in result.message


@pytest.mark.parametrize(
    ("code", "campaign", "subtotal", "message"),
    [
        ("", _save10(), "1000", "Enter a promo code"),
        ("NOPE", _save10(), "1000", "Invalid or expired promo code"),
        ("SAVE10", _save10(endDate="2025-01-02T00:00:00Z"), "1000", "Invalid or expired promo code"),
        ("SAVE10", _save10(minPurchaseAmount="2000"), "1000", "Minimum purchase of 2000.00 required"),
        ("SAVE10", _save10(maxTotalUses=5, currentUses=5), "1000", "This code has reached its usage limit"),
    ],
)
def test_apply_code_rejections(code: str, campaign, subtotal: str, message: str) -> None:
    result = apply_code(code, Decimal(subtotal), [campaign], now=NOW)
    assert result.success is False
    assert result.campaign is None
    assert result.message == message


def test_apply_code_per_customer_limit() -> None:
    campaign = _save10(maxUsesPerCustomer=1, customerUses={"c-1": 1})
    assert apply_code("SAVE10", Decimal("1000"), [campaign], customer_id="c-1", now=NOW).success is False
    assert apply_code("SAVE10", Decimal("1000"), [campaign], customer_id="c-2", now=NOW).success is True


def test_duplicate_code_rejected_and_list_unchanged() -> None:
    entry = apply_code("SAVE10", Decimal("1000"), [_save10()], now=NOW).campaign
    assert entry is not None
    applied = add_code_campaign((), entry)
    with pytest.raises(DuplicatePromoCodeError, match="already been applied"):
        add_code_campaign(applied, entry)
    assert len(applied) == 1


def test_remove_code_only_drops_code_entries() -> None:
    entry = apply_code("SAVE10", Decimal("1000"), [_save10()], now=NOW).campaign
    assert entry is not None
    assert remove_code((entry,), "save10") == ()


def test_reprice_follows_subtotal() -> None:
    campaign = make_campaign("camp-pct", code="PCT", discountValue="10")
    entry = apply_code("PCT", Decimal("1000"), [campaign], now=NOW).campaign
    assert entry is not None
    (repriced,) = reprice_code_entries((entry,), [campaign], Decimal("500"))
    assert repriced.calculated_discount == Decimal("50.00")
