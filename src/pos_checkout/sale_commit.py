from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from .cart import Cart
from .error_mapper import classify_commit_error
from .idempotency import CommitKeys, new_commit_keys
from .models import Customer
from .models_sales import SaleInput, SaleItemInput, SaleResponse
from .money import round2
from .tax import CheckoutTotals

logger = logging.getLogger(__name__)


class SaleWriter(Protocol):
    def create_sale(self, payload: SaleInput, keys: CommitKeys | None = None) -> SaleResponse: ...


@dataclass(frozen=True)
class CommitOutcome:
    sale: SaleInput
    response: SaleResponse
    keys: CommitKeys


def build_notes(
    *,
    mobile_phone: str | None = None,
    customer: Customer | None = None,
    walk_in_name: str | None = None,
) -> str | None:
    if mobile_phone:
        return f"Mobile payment: {mobile_phone}"
    if customer is not None:
        return f"Customer: {customer.name}"
    if walk_in_name and walk_in_name.strip():
        return f"Customer: {walk_in_name.strip()}"
    return None


def build_sale_input(
    *,
    cart: Cart,
    totals: CheckoutTotals,
    payment_method: str,
    amount_paid: Decimal,
    redeem_points: int,
    customer: Customer | None = None,
    mobile_phone: str | None = None,
    walk_in_name: str | None = None,
) -> SaleInput:
    items = tuple(
        SaleItemInput(
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=round2(line.unit_price),
            discount=round2(line.line_discount),
            total=round2(line.line_total),
        )
        for line in cart.lines
    )
    paid = round2(amount_paid)
    return SaleInput(
        customer_id=customer.id if customer else None,
        items=items,
        subtotal=totals.subtotal,
        discount=totals.discount,
        tax=totals.tax,
        total=totals.total,
        payment_method=payment_method,
        amount_paid=paid,
        change=max(paid - totals.total, Decimal("0.00")),
        redeem_points=redeem_points,
        notes=build_notes(mobile_phone=mobile_phone, customer=customer, walk_in_name=walk_in_name),
    )


@dataclass
class SaleCommitter:
    """Single write boundary: one ``create_sale`` call per attempt, no retries."""

    writer: SaleWriter

    def submit(self, sale: SaleInput) -> CommitOutcome:
        keys = new_commit_keys()
        try:
            response = self.writer.create_sale(sale, keys=keys)
        except Exception as exc:
            failure = classify_commit_error(exc)
            logger.warning("sale commit %s failed: %s", keys.attempt_id, failure)
            raise failure from exc
        logger.info("sale committed id=%s total=%s", response.id, sale.total)
        return CommitOutcome(sale=sale, response=response, keys=keys)
