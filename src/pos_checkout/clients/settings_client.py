from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..models import TaxSettings
from .base import BaseClient


@dataclass
class SettingsClient(BaseClient):
    def get_tax_rate(self) -> Decimal | None:
        data = self._request("GET", "/settings/tax", operation="settings.tax_rate")
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ValueError("Expected tax settings response to be a JSON object")
        return TaxSettings.model_validate(data).tax_rate
