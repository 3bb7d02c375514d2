from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..http_client import HttpClient


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None
    company_id: str | None = None

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.company_id:
            headers["X-Company-ID"] = self.company_id
        return headers

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        merged = {**self._auth_headers(), **headers}
        return self.http.request(method, path, headers=merged, **kwargs)


def _rows(data: Any, key: str) -> list[Any]:
    """Accept both a bare JSON array and an envelope like ``{"data": [...]}``."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for candidate in (key, "data", "rows", "items"):
            value = data.get(candidate)
            if isinstance(value, list):
                return value
    raise ValueError(f"Expected {key} response to be a JSON array")
