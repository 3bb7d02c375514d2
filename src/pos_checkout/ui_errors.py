from __future__ import annotations

from dataclasses import dataclass, field

from .exceptions import ApiError, CheckoutErrorKind, CommitFailure


@dataclass(frozen=True)
class Recovery:
    refresh_products: bool = False
    disable_redemption: bool = False
    revalidate_stock: bool = False
    retryable: bool = False


@dataclass(frozen=True)
class CheckoutFeedback:
    kind: CheckoutErrorKind
    message: str
    details: list[str] = field(default_factory=list)
    recovery: Recovery = Recovery()
    trace_id: str | None = None

    @property
    def text(self) -> str:
        if not self.details:
            return self.message
        return "\n".join([self.message, *self.details])


_RECOVERY = {
    CheckoutErrorKind.INSUFFICIENT_STOCK: Recovery(refresh_products=True, revalidate_stock=True),
    CheckoutErrorKind.PRODUCT_REMOVED: Recovery(refresh_products=True),
    CheckoutErrorKind.INSUFFICIENT_POINTS: Recovery(disable_redemption=True, retryable=True),
    CheckoutErrorKind.NETWORK_TIMEOUT: Recovery(retryable=True),
    CheckoutErrorKind.VALIDATION_ERROR: Recovery(),
    CheckoutErrorKind.GENERIC: Recovery(retryable=True),
    CheckoutErrorKind.EMPTY_CART: Recovery(),
    CheckoutErrorKind.PAYMENT_INCOMPLETE: Recovery(),
    CheckoutErrorKind.DUPLICATE_SUBMISSION: Recovery(),
}


def recovery_for(kind: CheckoutErrorKind) -> Recovery:
    return _RECOVERY[kind]


def to_feedback(failure: CommitFailure) -> CheckoutFeedback:
    kind = failure.kind
    reason = failure.message.strip()
    details: list[str] = []
    if kind is CheckoutErrorKind.INSUFFICIENT_STOCK:
        message = "Insufficient stock. Adjust the quantities in the cart."
        details = [line for line in reason.splitlines() if line and not line.endswith(":")] or [reason]
    elif kind is CheckoutErrorKind.PRODUCT_REMOVED:
        message = "A product in the cart is no longer available. The product list was refreshed; add it again."
        details = [reason] if reason else []
    elif kind is CheckoutErrorKind.INSUFFICIENT_POINTS:
        message = "The customer does not have enough loyalty points. Points redemption was turned off; try again."
        details = [reason] if reason else []
    elif kind is CheckoutErrorKind.NETWORK_TIMEOUT:
        message = "Connection problem. Check the network and try again; the cart was kept."
    elif kind is CheckoutErrorKind.VALIDATION_ERROR:
        message = "The sale was rejected by validation. Check the data and try again."
        details = [f"{name}: {text}" for name, text in failure.field_errors or []] or ([reason] if reason else [])
    elif kind is CheckoutErrorKind.EMPTY_CART:
        message = "The cart is empty."
    elif kind is CheckoutErrorKind.PAYMENT_INCOMPLETE:
        message = "Payment is not complete."
        details = [reason] if reason else []
    elif kind is CheckoutErrorKind.DUPLICATE_SUBMISSION:
        message = "This sale is already being submitted."
    else:
        message = f"Could not process the sale: {reason or 'unknown error'}"
    trace_id = failure.cause.trace_id if isinstance(failure.cause, ApiError) else None
    return CheckoutFeedback(
        kind=kind,
        message=message,
        details=details,
        recovery=recovery_for(kind),
        trace_id=trace_id,
    )
