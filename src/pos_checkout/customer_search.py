from __future__ import annotations

from typing import Sequence

from .models import Customer, Product


def search_customers(query: str, customers: Sequence[Customer], limit: int = 10) -> list[Customer]:
    if not query:
        return []
    needle = query.lower()
    matches = [
        customer
        for customer in customers
        if customer.is_active
        and (
            needle in customer.name.lower()
            or needle in customer.code.lower()
            or query in customer.phone
            or (customer.email is not None and needle in customer.email.lower())
        )
    ]
    return matches[:limit]


def filter_products(query: str, products: Sequence[Product]) -> list[Product]:
    in_stock = [product for product in products if product.current_stock > 0]
    if not query:
        return in_stock
    needle = query.lower()
    return [
        product
        for product in in_stock
        if needle in product.code.lower()
        or needle in product.name.lower()
        or (product.barcode is not None and needle in product.barcode.lower())
    ]


def lookup_scan(scanned: str, products: Sequence[Product]) -> Product | None:
    """Exact match on barcode first, then on product code. Out-of-stock items are skipped."""
    wanted = scanned.strip().lower()
    if not wanted:
        return None
    for product in products:
        if product.barcode and product.barcode.lower() == wanted and product.current_stock > 0:
            return product
    for product in products:
        if product.code.lower() == wanted and product.current_stock > 0:
            return product
    return None
