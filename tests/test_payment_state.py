from __future__ import annotations

from decimal import Decimal

import pytest

from pos_checkout.exceptions import PaymentStateError
from pos_checkout.payment_state import PaymentCoordinator, PaymentStage, validate_phone, validate_tender


@pytest.mark.parametrize("method", ["cash", "card", "qr"])
def test_direct_methods_are_ready_immediately(method: str) -> None:
    payment = PaymentCoordinator()
    assert payment.select(method, Decimal("986")) is PaymentStage.READY
    assert payment.amount_paid == Decimal("986.00")
    assert payment.can_commit(Decimal("986"))


def test_mobile_blocks_until_confirmed() -> None:
    payment = PaymentCoordinator()
    assert payment.select("mpesa", Decimal("50")) is PaymentStage.AWAITING_MOBILE_CONFIRMATION
    assert not payment.can_commit(Decimal("50"))
    assert payment.confirm_mobile("84 123 4567", Decimal("50")) is PaymentStage.READY
    assert payment.phone == "84 123 4567"
    assert payment.can_commit(Decimal("50"))


def test_mobile_confirmation_rejects_bad_phone() -> None:
    payment = PaymentCoordinator()
    payment.select("emola", Decimal("50"))
    with pytest.raises(PaymentStateError, match="9 digits"):
        payment.confirm_mobile("8612345", Decimal("50"))
    with pytest.raises(PaymentStateError, match="86 or 87"):
        payment.confirm_mobile("841234567", Decimal("50"))
    assert payment.stage is PaymentStage.AWAITING_MOBILE_CONFIRMATION


def test_cancel_returns_to_unselected() -> None:
    payment = PaymentCoordinator()
    payment.select("mpesa", Decimal("50"))
    assert payment.cancel() is PaymentStage.UNSELECTED
    assert payment.method is None
    with pytest.raises(PaymentStateError):
        payment.confirm_mobile("841234567", Decimal("50"))


def test_unknown_method_rejected() -> None:
    with pytest.raises(PaymentStateError):
        PaymentCoordinator().select("cheque", Decimal("1"))


def test_validate_phone() -> None:
    assert validate_phone("851234567", "mpesa") is None
    assert validate_phone("871234567", "emola") is None
    assert validate_phone("861234567", "mpesa") is not None


def test_change_only_from_cash() -> None:
    cash = validate_tender("cash", Decimal("1000"), Decimal("986"))
    assert cash.ok
    assert cash.change == Decimal("14.00")
    card = validate_tender("card", Decimal("1000"), Decimal("986"))
    assert not card.ok
    assert any("cash" in issue.reason for issue in card.issues)


def test_underpayment_rejected() -> None:
    payment = PaymentCoordinator()
    payment.select("cash", Decimal("100"))
    payment.set_amount_tendered("99.99")
    assert not payment.can_commit(Decimal("100"))
    result = validate_tender("cash", Decimal("99.99"), Decimal("100"))
    assert [issue.field for issue in result.issues] == ["amount_paid"]
