from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from .exceptions import CartStockError
from .models import WEIGHT_UNITS, Product
from .money import MILLI, ZERO, to_decimal


@dataclass
class CartLine:
    line_id: str
    product_id: str
    product_name: str
    unit: str
    quantity: Decimal
    unit_price: Decimal
    line_discount: Decimal = ZERO

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price - self.line_discount


def normalize_quantity(quantity: Decimal | float | int | str, *, by_weight: bool) -> Decimal:
    """Validate a quantity for the unit it is sold in.

    Weight-sold units keep three decimals; countable units must be whole.
    """
    value = to_decimal(quantity)
    if not value.is_finite() or value <= 0:
        raise ValueError("The quantity must be a positive number.")
    if by_weight:
        value = value.quantize(MILLI, rounding=ROUND_HALF_UP)
        if value <= 0:
            raise ValueError("The quantity must be a positive number.")
        return value
    if value != value.to_integral_value():
        raise ValueError("Countable products need a whole quantity.")
    return value.quantize(Decimal("1"))


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), ZERO)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def get_line(self, line_id: str) -> CartLine | None:
        for line in self.lines:
            if line.line_id == line_id:
                return line
        return None

    def line_for_product(self, product_id: str) -> CartLine | None:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def add_line(self, product: Product, quantity: Decimal | float | int | str = 1) -> CartLine:
        """Add a product, merging into its existing line when there is one.

        The cached stock figure is checked here as a first guard only; the
        authoritative check happens right before commit.
        """
        qty = normalize_quantity(quantity, by_weight=product.sold_by_weight)
        existing = self.line_for_product(product.id)
        new_qty = qty + (existing.quantity if existing else ZERO)
        if new_qty > product.current_stock:
            raise CartStockError(product.name, product.current_stock)
        if existing is not None:
            existing.quantity = new_qty
            return existing
        line = CartLine(
            line_id=str(uuid.uuid4()),
            product_id=product.id,
            product_name=product.name,
            unit=product.unit,
            quantity=qty,
            unit_price=to_decimal(product.price),
        )
        self.lines.append(line)
        return line

    def update_quantity(self, line_id: str, quantity: Decimal | float | int | str) -> CartLine | None:
        line = self.get_line(line_id)
        if line is None:
            raise KeyError(line_id)
        value = to_decimal(quantity)
        if value < 1:
            self.remove_line(line_id)
            return None
        line.quantity = normalize_quantity(value, by_weight=line.unit.lower() in WEIGHT_UNITS)
        return line

    def remove_line(self, line_id: str) -> None:
        self.lines = [line for line in self.lines if line.line_id != line_id]

    def clear(self) -> None:
        self.lines.clear()
