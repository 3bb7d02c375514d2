from __future__ import annotations

from decimal import Decimal

import pytest

from checkout_helpers import make_product
from pos_checkout.cart import Cart
from pos_checkout.exceptions import InsufficientStockError
from pos_checkout.stock_validation import (
    ensure_cart_in_stock,
    format_stock_issues,
    snapshot_stock,
    validate_cart_stock,
)


def test_reports_line_above_fresh_stock() -> None:
    cart = Cart()
    cart.add_line(make_product("p-1", name="Rice", stock="10"), 5)
    issues = validate_cart_stock(cart, snapshot_stock([make_product("p-1", name="Rice", stock="2")]))
    assert len(issues) == 1
    assert issues[0].available == Decimal("2")
    assert issues[0].requested == Decimal("5")
    assert format_stock_issues(issues) == "Insufficient stock:\nRice: requested 5, available 2"


def test_every_offending_line_is_listed() -> None:
    cart = Cart()
    cart.add_line(make_product("p-1", name="Rice", stock="10"), 3)
    cart.add_line(make_product("p-2", name="Beans", stock="10"), 1)
    cart.add_line(make_product("p-3", name="Oil", stock="10"), 4)
    fresh = [
        make_product("p-1", name="Rice", stock="1"),
        make_product("p-2", name="Beans", stock="9"),
    ]
    issues = validate_cart_stock(cart, snapshot_stock(fresh))
    assert [issue.product_id for issue in issues] == ["p-1", "p-3"]
    assert issues[1].removed is True
    assert issues[1].available == Decimal("0.00")


def test_weight_quantities_formatted_without_trailing_zeros() -> None:
    cart = Cart()
    cart.add_line(make_product("p-1", name="Beef", unit="kg", stock="5"), "1.5")
    issues = validate_cart_stock(cart, snapshot_stock([make_product("p-1", name="Beef", unit="kg", stock="0.75")]))
    assert "requested 1.5, available 0.75" in format_stock_issues(issues)


def test_ensure_raises_with_all_issues() -> None:
    cart = Cart()
    cart.add_line(make_product("p-1", stock="10"), 2)
    with pytest.raises(InsufficientStockError) as excinfo:
        ensure_cart_in_stock(cart, {})
    assert len(excinfo.value.issues) == 1
    ensure_cart_in_stock(cart, snapshot_stock([make_product("p-1", stock="2")]))
