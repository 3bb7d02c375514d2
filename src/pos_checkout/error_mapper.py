from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    CheckoutErrorKind,
    CommitFailure,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)

# The sales backend answers with free-text reasons (Portuguese in production),
# so stock and points rejections are recognised by code first, text second.
_STOCK_MARKERS = ("stock insuficiente", "insufficient stock", "estoque insuficiente")
_POINTS_MARKERS = ("pontos insuficientes", "insufficient points")
_NOT_FOUND_MARKERS = ("não encontrado", "not found")
_TIMEOUT_MARKERS = ("timeout", "timed out")


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    code = str(payload.get("code") or "HTTP_ERROR")
    message = str(payload.get("message") or payload.get("error") or "Request failed")
    details = payload.get("details")
    payload_trace_id = payload.get("trace_id")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id
    mapped: type[ApiError]
    if status_code == 401:
        mapped = UnauthorizedError
    elif status_code == 403:
        mapped = ForbiddenError
    elif status_code == 404:
        mapped = NotFoundError
    elif status_code in {400, 422}:
        mapped = ValidationError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code == 429:
        mapped = RateLimitError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = ApiError
    return mapped(
        code=code,
        message=message,
        details=details,
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )


def field_errors_from_details(details: object | None) -> list[tuple[str, str]]:
    if not isinstance(details, list):
        return []
    errors: list[tuple[str, str]] = []
    for entry in details:
        if not isinstance(entry, Mapping):
            continue
        field = entry.get("field")
        if field is None and entry.get("loc") is not None:
            loc = entry.get("loc")
            field = ".".join(str(part) for part in loc) if isinstance(loc, (list, tuple)) else loc
        message = entry.get("message") or entry.get("msg") or "invalid value"
        errors.append((str(field or "payload"), str(message)))
    return errors


def classify_commit_error(exc: Exception) -> CommitFailure:
    """Map anything raised while submitting a sale onto a checkout failure kind."""
    if isinstance(exc, CommitFailure):
        return exc
    if isinstance(exc, TransportError):
        return CommitFailure(kind=CheckoutErrorKind.NETWORK_TIMEOUT, message=exc.message, cause=exc)
    if not isinstance(exc, ApiError):
        return CommitFailure(
            kind=CheckoutErrorKind.GENERIC,
            message=str(exc) or type(exc).__name__,
            cause=exc,
        )

    code = exc.code.upper()
    text = exc.message.lower()
    if code == "INSUFFICIENT_STOCK" or any(marker in text for marker in _STOCK_MARKERS):
        kind = CheckoutErrorKind.INSUFFICIENT_STOCK
    elif code == "INSUFFICIENT_POINTS" or any(marker in text for marker in _POINTS_MARKERS):
        kind = CheckoutErrorKind.INSUFFICIENT_POINTS
    elif (
        isinstance(exc, NotFoundError)
        or code == "PRODUCT_NOT_FOUND"
        or any(marker in text for marker in _NOT_FOUND_MARKERS)
    ):
        kind = CheckoutErrorKind.PRODUCT_REMOVED
    elif exc.status_code in {408, 504} or any(marker in text for marker in _TIMEOUT_MARKERS):
        kind = CheckoutErrorKind.NETWORK_TIMEOUT
    elif isinstance(exc, ValidationError):
        return CommitFailure(
            kind=CheckoutErrorKind.VALIDATION_ERROR,
            message=exc.message,
            field_errors=field_errors_from_details(exc.details),
            cause=exc,
        )
    else:
        kind = CheckoutErrorKind.GENERIC
    return CommitFailure(kind=kind, message=exc.message, cause=exc)
