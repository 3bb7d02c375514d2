from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .stock_validation import StockIssue


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class UnauthorizedError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class CheckoutErrorKind(str, Enum):
    INSUFFICIENT_STOCK = "insufficient_stock"
    PRODUCT_REMOVED = "product_removed"
    INSUFFICIENT_POINTS = "insufficient_points"
    NETWORK_TIMEOUT = "network_timeout"
    VALIDATION_ERROR = "validation_error"
    GENERIC = "generic"
    # raised before anything reaches the server
    EMPTY_CART = "empty_cart"
    PAYMENT_INCOMPLETE = "payment_incomplete"
    DUPLICATE_SUBMISSION = "duplicate_submission"


class CartStockError(ValueError):
    def __init__(self, product_name: str, available: object) -> None:
        self.product_name = product_name
        self.available = available
        super().__init__(f"Insufficient stock for {product_name}. Available: {available}")


class DuplicatePromoCodeError(ValueError):
    def __init__(self, campaign_id: str) -> None:
        self.campaign_id = campaign_id
        super().__init__("This code has already been applied")


class PaymentStateError(RuntimeError):
    pass


class InsufficientStockError(ValueError):
    def __init__(self, issues: list[StockIssue], message: str) -> None:
        self.issues = issues
        super().__init__(message)


@dataclass
class CommitFailure(Exception):
    kind: CheckoutErrorKind
    message: str
    field_errors: list[tuple[str, str]] | None = None
    cause: Exception | None = None

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
