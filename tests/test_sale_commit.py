from __future__ import annotations

from decimal import Decimal

import pytest

from checkout_helpers import FakeSales, make_customer, make_product
from pos_checkout.cart import Cart
from pos_checkout.error_mapper import map_error
from pos_checkout.exceptions import CheckoutErrorKind, CommitFailure
from pos_checkout.sale_commit import SaleCommitter, build_notes, build_sale_input
from pos_checkout.tax import compute_totals


def _sale(**kwargs):
    cart = Cart()
    cart.add_line(make_product(price="500", stock="5"), 2)
    totals = compute_totals(cart.subtotal, Decimal("150"), Decimal("0"), Decimal("16"))
    params = {"payment_method": "cash", "amount_paid": Decimal("1000"), "redeem_points": 0}
    params.update(kwargs)
    return build_sale_input(cart=cart, totals=totals, **params)


def test_build_sale_input_totals_and_change() -> None:
    sale = _sale()
    assert sale.subtotal == Decimal("1000.00")
    assert sale.discount == Decimal("150.00")
    assert sale.tax == Decimal("136.00")
    assert sale.total == Decimal("986.00")
    assert sale.change == Decimal("14.00")
    assert sale.items[0].total == Decimal("1000.00")
    assert sale.customer_id is None
    assert sale.notes is None


def test_notes_priority() -> None:
    customer = make_customer(name="Ana")
    assert build_notes(mobile_phone="841234567", customer=customer) == "Mobile payment: 841234567"
    assert build_notes(customer=customer, walk_in_name="Rui") == "Customer: Ana"
    assert build_notes(walk_in_name="  Rui ") == "Customer: Rui"
    assert build_notes() is None


def test_committer_uses_fresh_keys_per_attempt() -> None:
    writer = FakeSales()
    committer = SaleCommitter(writer)
    first = committer.submit(_sale())
    second = committer.submit(_sale())
    assert first.response.id == "sale-1"
    assert first.keys.idempotency_key != second.keys.idempotency_key
    assert writer.calls[0][1] == first.keys


def test_committer_classifies_failures_without_retrying() -> None:
    writer = FakeSales(error=map_error(400, {"error": "Pontos insuficientes"}, None))
    with pytest.raises(CommitFailure) as excinfo:
        SaleCommitter(writer).submit(_sale(redeem_points=10))
    assert excinfo.value.kind is CheckoutErrorKind.INSUFFICIENT_POINTS
    assert len(writer.calls) == 1
