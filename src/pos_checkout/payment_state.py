from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from .exceptions import PaymentStateError
from .money import ZERO, round2, to_decimal

DIRECT_METHODS = frozenset({"cash", "card", "qr"})
MOBILE_PROVIDERS = frozenset({"mpesa", "emola"})
PAYMENT_METHODS = DIRECT_METHODS | MOBILE_PROVIDERS

# Mozambican operator prefixes accepted by each mobile wallet
PROVIDER_PREFIXES = {
    "mpesa": ("84", "85"),
    "emola": ("86", "87"),
}

_NON_DIGITS = re.compile(r"\D")


class PaymentStage(str, Enum):
    UNSELECTED = "unselected"
    AWAITING_MOBILE_CONFIRMATION = "awaiting_mobile_confirmation"
    READY = "ready"


@dataclass(frozen=True)
class PaymentValidationIssue:
    field: str
    reason: str


@dataclass(frozen=True)
class TenderResult:
    ok: bool
    amount_paid: Decimal
    change: Decimal
    issues: list[PaymentValidationIssue]


def validate_phone(phone: str, provider: str) -> str | None:
    digits = _NON_DIGITS.sub("", phone or "")
    if len(digits) != 9:
        return "The number must have 9 digits"
    prefixes = PROVIDER_PREFIXES.get(provider, ())
    if prefixes and digits[:2] not in prefixes:
        return f"Use a number starting with {' or '.join(prefixes)} for {provider}"
    return None


def validate_tender(method: str | None, amount_paid: Decimal | float | str | None, total: Decimal) -> TenderResult:
    issues: list[PaymentValidationIssue] = []
    if method not in PAYMENT_METHODS:
        issues.append(PaymentValidationIssue(field="payment_method", reason="select a payment method"))
    try:
        amount = round2(amount_paid) if amount_paid is not None else ZERO
    except ArithmeticError:
        amount = ZERO
        issues.append(PaymentValidationIssue(field="amount_paid", reason="amount is not a number"))
    due = round2(total)
    if amount < due:
        issues.append(PaymentValidationIssue(field="amount_paid", reason="amount paid does not cover the total"))
    change = max(amount - due, ZERO)
    if change > 0 and method != "cash":
        issues.append(
            PaymentValidationIssue(field="amount_paid", reason="change can only be given against cash")
        )
    return TenderResult(ok=not issues, amount_paid=amount, change=change, issues=issues)


@dataclass
class PaymentCoordinator:
    """Gates commit on the fields each payment method needs.

    ``cash``, ``card`` and ``qr`` are ready as soon as they are picked. The
    mobile wallets block in ``AWAITING_MOBILE_CONFIRMATION`` until a phone
    number is confirmed or the flow is cancelled.
    """

    stage: PaymentStage = PaymentStage.UNSELECTED
    method: str | None = None
    amount_paid: Decimal | None = None
    phone: str | None = None

    def select(self, method: str, total: Decimal) -> PaymentStage:
        method = (method or "").strip().lower()
        if method not in PAYMENT_METHODS:
            raise PaymentStateError(f"Unknown payment method: {method!r}")
        self.method = method
        self.phone = None
        if method in MOBILE_PROVIDERS:
            self.amount_paid = None
            self.stage = PaymentStage.AWAITING_MOBILE_CONFIRMATION
        else:
            self.amount_paid = round2(total)
            self.stage = PaymentStage.READY
        return self.stage

    def confirm_mobile(self, phone: str, total: Decimal) -> PaymentStage:
        if self.stage is not PaymentStage.AWAITING_MOBILE_CONFIRMATION or self.method is None:
            raise PaymentStateError("No mobile payment is waiting for confirmation")
        problem = validate_phone(phone, self.method)
        if problem:
            raise PaymentStateError(problem)
        self.phone = phone.strip()
        self.amount_paid = round2(total)
        self.stage = PaymentStage.READY
        return self.stage

    def cancel(self) -> PaymentStage:
        self.reset()
        return self.stage

    def set_amount_tendered(self, amount: Decimal | float | str) -> None:
        if self.stage is not PaymentStage.READY:
            raise PaymentStateError("Select a payment method first")
        self.amount_paid = round2(to_decimal(amount))

    def can_commit(self, total: Decimal) -> bool:
        if self.stage is not PaymentStage.READY:
            return False
        return validate_tender(self.method, self.amount_paid, total).ok

    def reset(self) -> None:
        self.stage = PaymentStage.UNSELECTED
        self.method = None
        self.amount_paid = None
        self.phone = None
