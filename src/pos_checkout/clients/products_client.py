from __future__ import annotations

from dataclasses import dataclass

from ..models import Product
from .base import BaseClient, _rows


@dataclass
class ProductsClient(BaseClient):
    def list_products(self, *, search: str | None = None) -> list[Product]:
        params = {"search": search} if search else None
        data = self._request("GET", "/products", params=params, operation="products.list")
        return [Product.model_validate(row) for row in _rows(data, "products")]

    def refetch(self) -> list[Product]:
        """Authoritative read for stock checks; never served from the GET cache."""
        data = self._request("GET", "/products", use_get_cache=False, operation="products.refetch")
        return [Product.model_validate(row) for row in _rows(data, "products")]
