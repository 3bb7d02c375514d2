from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from .cart import Cart
from .exceptions import InsufficientStockError
from .models import Product
from .money import ZERO


@dataclass(frozen=True)
class ProductStockSnapshot:
    product_id: str
    product_name: str
    current_stock: Decimal


@dataclass(frozen=True)
class StockIssue:
    product_id: str
    product_name: str
    available: Decimal
    requested: Decimal
    removed: bool = False


def snapshot_stock(products: Iterable[Product]) -> dict[str, ProductStockSnapshot]:
    return {
        product.id: ProductStockSnapshot(
            product_id=product.id,
            product_name=product.name,
            current_stock=product.current_stock,
        )
        for product in products
    }


def validate_cart_stock(cart: Cart, snapshot: Mapping[str, ProductStockSnapshot]) -> list[StockIssue]:
    """Compare every cart line against a fresh stock read.

    A product missing from the read counts as zero available. The result
    lists every offending line, in cart order.
    """
    issues: list[StockIssue] = []
    for line in cart.lines:
        current = snapshot.get(line.product_id)
        if current is None:
            issues.append(
                StockIssue(
                    product_id=line.product_id,
                    product_name=line.product_name or "Unknown product",
                    available=ZERO,
                    requested=line.quantity,
                    removed=True,
                )
            )
        elif current.current_stock < line.quantity:
            issues.append(
                StockIssue(
                    product_id=line.product_id,
                    product_name=current.product_name,
                    available=current.current_stock,
                    requested=line.quantity,
                )
            )
    return issues


def format_stock_issues(issues: Iterable[StockIssue]) -> str:
    rows = [
        f"{issue.product_name}: requested {_fmt(issue.requested)}, available {_fmt(issue.available)}"
        + (" (no longer in the catalog)" if issue.removed else "")
        for issue in issues
    ]
    if not rows:
        return ""
    return "Insufficient stock:\n" + "\n".join(rows)


def ensure_cart_in_stock(cart: Cart, snapshot: Mapping[str, ProductStockSnapshot]) -> None:
    issues = validate_cart_stock(cart, snapshot)
    if issues:
        raise InsufficientStockError(issues, format_stock_issues(issues))


def _fmt(value: Decimal) -> str:
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal("1")))
    return format(normalized, "f")
