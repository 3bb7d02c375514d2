from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..exceptions import ApiError
from ..models import Campaign, CodeValidationResponse
from ..models_sales import CampaignUsageRecord
from .base import BaseClient, _rows


@dataclass
class CampaignsClient(BaseClient):
    def list_campaigns(self, *, status: str | None = "active") -> list[Campaign]:
        params = {"status": status} if status else None
        data = self._request("GET", "/campaigns", params=params, operation="campaigns.list")
        return [Campaign.model_validate(row) for row in _rows(data, "campaigns")]

    def validate_code(
        self,
        code: str,
        purchase_amount: Decimal,
        customer_id: str | None = None,
    ) -> CodeValidationResponse:
        body: dict[str, object] = {"code": code.strip().upper(), "cartTotal": str(purchase_amount)}
        if customer_id:
            body["customerId"] = customer_id
        try:
            data = self._request(
                "POST",
                "/campaigns/validate-code",
                json_body=body,
                operation="campaigns.validate_code",
            )
        except ApiError as exc:
            # 400/404 carry {"valid": false, "error": "..."}: a rejected code, not a fault
            if exc.status_code in {400, 404}:
                return CodeValidationResponse(valid=False, error=exc.message)
            raise
        if not isinstance(data, dict):
            raise ValueError("Expected code validation response to be a JSON object")
        return CodeValidationResponse.model_validate(data)

    def record_usage(self, campaign_id: str, usage: CampaignUsageRecord) -> None:
        self._request(
            "POST",
            f"/campaigns/{campaign_id}/use",
            json_body=usage.model_dump(mode="json", exclude_none=True),
            operation="campaigns.record_usage",
            invalidate_paths=["/campaigns"],
        )
