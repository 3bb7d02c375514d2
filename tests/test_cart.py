from __future__ import annotations

from decimal import Decimal

import pytest

from checkout_helpers import make_product
from pos_checkout.cart import Cart, normalize_quantity
from pos_checkout.exceptions import CartStockError


def test_add_merges_into_existing_line() -> None:
    cart = Cart()
    product = make_product(price="500", stock="5")
    first = cart.add_line(product)
    second = cart.add_line(product, 2)
    assert first is second
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == Decimal("3")
    assert cart.subtotal == Decimal("1500")


def test_add_rejects_more_than_cached_stock() -> None:
    cart = Cart()
    product = make_product(name="Sugar", stock="2")
    cart.add_line(product, 2)
    with pytest.raises(CartStockError, match="Sugar"):
        cart.add_line(product)
    assert cart.lines[0].quantity == Decimal("2")


def test_weight_units_keep_three_decimals() -> None:
    cart = Cart()
    line = cart.add_line(make_product(unit="kg", price="80", stock="3"), "1.2345")
    assert line.quantity == Decimal("1.235")


@pytest.mark.parametrize("value", ["0", "-1", "1.5", "nan"])
def test_countable_quantity_rejected(value: str) -> None:
    with pytest.raises(ValueError):
        normalize_quantity(value, by_weight=False)


def test_update_quantity_below_one_removes_line() -> None:
    cart = Cart()
    line = cart.add_line(make_product())
    assert cart.update_quantity(line.line_id, 0) is None
    assert cart.is_empty


def test_update_quantity_sets_value() -> None:
    cart = Cart()
    line = cart.add_line(make_product(price="10"))
    cart.update_quantity(line.line_id, 4)
    assert cart.subtotal == Decimal("40")


def test_update_unknown_line_raises() -> None:
    with pytest.raises(KeyError):
        Cart().update_quantity("missing", 2)


def test_remove_and_clear() -> None:
    cart = Cart()
    a = cart.add_line(make_product("p-1"))
    cart.add_line(make_product("p-2"))
    cart.remove_line(a.line_id)
    assert [line.product_id for line in cart.lines] == ["p-2"]
    cart.clear()
    assert cart.is_empty
    assert cart.subtotal == Decimal("0")
