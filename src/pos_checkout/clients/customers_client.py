from __future__ import annotations

from dataclasses import dataclass

from ..models import Customer
from .base import BaseClient, _rows


@dataclass
class CustomersClient(BaseClient):
    def list_customers(self, *, search: str | None = None) -> list[Customer]:
        params = {"search": search} if search else None
        data = self._request("GET", "/customers", params=params, operation="customers.list")
        return [Customer.model_validate(row) for row in _rows(data, "customers")]

    def get_customer(self, customer_id: str) -> Customer:
        data = self._request("GET", f"/customers/{customer_id}", operation="customers.get")
        if not isinstance(data, dict):
            raise ValueError("Expected customer response to be a JSON object")
        return Customer.model_validate(data)
