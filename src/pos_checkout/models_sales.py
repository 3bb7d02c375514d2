from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PaymentMethod = Literal["cash", "card", "qr", "mpesa", "emola"]


class SaleItemInput(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    product_id: str
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal = Decimal("0")
    total: Decimal


class SaleInput(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    customer_id: str | None = None
    items: tuple[SaleItemInput, ...]
    subtotal: Decimal
    discount: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal
    payment_method: PaymentMethod
    amount_paid: Decimal
    change: Decimal = Decimal("0")
    redeem_points: int = Field(default=0, ge=0)
    notes: str | None = None


class SaleLine(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    product_id: str | None = Field(default=None, alias="productId")
    quantity: Decimal | None = None
    unit_price: Decimal | None = Field(default=None, alias="unitPrice")
    total: Decimal | None = None


class SaleResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    receipt_number: str | None = Field(default=None, alias="receiptNumber")
    customer_id: str | None = Field(default=None, alias="customerId")
    items: list[SaleLine] = Field(default_factory=list)
    subtotal: Decimal | None = None
    discount: Decimal | None = None
    tax: Decimal | None = None
    total: Decimal | None = None
    payment_method: str | None = Field(default=None, alias="paymentMethod")
    amount_paid: Decimal | None = Field(default=None, alias="amountPaid")
    change: Decimal | None = None
    notes: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")


class CampaignUsageRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    customer_id: str
    customer_name: str
    order_amount: Decimal
    discount_applied: Decimal
    order_id: str | None = None
