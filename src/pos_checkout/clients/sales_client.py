from __future__ import annotations

from dataclasses import dataclass

from ..idempotency import CommitKeys, idempotency_headers, new_commit_keys
from ..models_sales import SaleInput, SaleResponse
from .base import BaseClient


@dataclass
class SalesClient(BaseClient):
    def create_sale(self, payload: SaleInput, keys: CommitKeys | None = None) -> SaleResponse:
        keys = keys or new_commit_keys()
        data = self._request(
            "POST",
            "/sales",
            json_body=payload.model_dump(mode="json", exclude_none=True),
            headers=idempotency_headers(keys),
            operation="sales.create",
            invalidate_paths=["/products", "/customers", "/campaigns"],
        )
        if not isinstance(data, dict):
            raise ValueError("Expected create sale response to be a JSON object")
        return SaleResponse.model_validate(data)
