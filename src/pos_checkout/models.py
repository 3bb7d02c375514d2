from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

WEIGHT_UNITS = frozenset({"kg", "g"})

DiscountType = Literal["percentage", "fixed", "free_shipping", "buy_x_get_y"]


class Product(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    code: str = ""
    name: str
    price: Decimal
    current_stock: Decimal = Field(default=Decimal("0"), alias="currentStock")
    unit: str = "un"
    barcode: str | None = None

    @property
    def sold_by_weight(self) -> bool:
        return self.unit.lower() in WEIGHT_UNITS


class Customer(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    code: str = ""
    name: str
    phone: str = ""
    email: str | None = None
    loyalty_points: int = Field(default=0, ge=0, alias="loyaltyPoints")
    active_campaigns: int = Field(default=0, alias="activeCampaigns")
    is_active: bool = Field(default=True, alias="isActive")


class CampaignAudience(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    all_customers: bool = Field(default=True, alias="allCustomers")
    include_customer_ids: list[str] = Field(default_factory=list, alias="includeCustomerIds")
    exclude_customer_ids: list[str] = Field(default_factory=list, alias="excludeCustomerIds")


class Campaign(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    name: str
    code: str | None = None
    status: str = "active"
    start_date: datetime = Field(alias="startDate")
    end_date: datetime = Field(alias="endDate")
    discount_type: DiscountType = Field(alias="discountType")
    discount_value: Decimal = Field(alias="discountValue")
    min_purchase_amount: Decimal | None = Field(default=None, alias="minPurchaseAmount")
    max_discount_amount: Decimal | None = Field(default=None, alias="maxDiscountAmount")
    max_total_uses: int | None = Field(default=None, alias="maxTotalUses")
    max_uses_per_customer: int | None = Field(default=None, alias="maxUsesPerCustomer")
    current_uses: int = Field(default=0, alias="currentUses")
    customer_uses: dict[str, int] = Field(default_factory=dict, alias="customerUses")
    target_audience: CampaignAudience = Field(default_factory=CampaignAudience, alias="targetAudience")

    @property
    def is_code_campaign(self) -> bool:
        return bool(self.code and self.code.strip())


class CodeValidationCampaign(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    name: str
    discount_type: str | None = Field(default=None, alias="discountType")
    discount_value: Decimal | None = Field(default=None, alias="discountValue")


class CodeValidationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    valid: bool
    campaign: CodeValidationCampaign | None = None
    discount: Decimal = Decimal("0")
    error: str | None = None


class TaxSettings(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    tax_rate: Decimal | None = Field(default=None, alias="taxRate")
