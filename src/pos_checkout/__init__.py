from .campaign_engine import AppliedCampaign, CampaignEvaluation, evaluate_campaigns
from .cart import Cart, CartLine
from .checkout import CheckoutResult, CheckoutSession
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    CartStockError,
    CheckoutErrorKind,
    CommitFailure,
    DuplicatePromoCodeError,
    ForbiddenError,
    NotFoundError,
    PaymentStateError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from .http_client import HttpClient, TraceContext
from .idempotency import CommitKeys, new_commit_keys
from .loyalty import LoyaltyRedemption, compute_redemption
from .models import Campaign, Customer, Product
from .models_sales import SaleInput, SaleItemInput, SaleResponse
from .payment_state import PaymentCoordinator, PaymentStage
from .promo_codes import PromoCodeResult, apply_code
from .session import ApiSession
from .stock_validation import StockIssue, validate_cart_stock
from .tax import CheckoutTotals, compute_totals
from .telemetry import TelemetryLogger
from .ui_errors import CheckoutFeedback, to_feedback

__all__ = [
    "ApiError",
    "ApiSession",
    "AppliedCampaign",
    "Campaign",
    "CampaignEvaluation",
    "Cart",
    "CartLine",
    "CartStockError",
    "CheckoutErrorKind",
    "CheckoutFeedback",
    "CheckoutResult",
    "CheckoutSession",
    "CheckoutTotals",
    "ClientConfig",
    "CommitFailure",
    "CommitKeys",
    "ConfigError",
    "Customer",
    "DuplicatePromoCodeError",
    "ForbiddenError",
    "HttpClient",
    "LoyaltyRedemption",
    "NotFoundError",
    "PaymentCoordinator",
    "PaymentStage",
    "PaymentStateError",
    "Product",
    "PromoCodeResult",
    "SaleInput",
    "SaleItemInput",
    "SaleResponse",
    "StockIssue",
    "TelemetryLogger",
    "TraceContext",
    "TransportError",
    "UnauthorizedError",
    "ValidationError",
    "apply_code",
    "compute_redemption",
    "compute_totals",
    "evaluate_campaigns",
    "load_config",
    "new_commit_keys",
    "to_feedback",
    "validate_cart_stock",
]
