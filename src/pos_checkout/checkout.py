from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Protocol

from .campaign_engine import AppliedCampaign, evaluate_campaigns, merge_with_codes, total_discount
from .cart import Cart, CartLine
from .config import ClientConfig
from .customer_search import lookup_scan
from .error_mapper import classify_commit_error
from .exceptions import (
    ApiError,
    CheckoutErrorKind,
    CommitFailure,
    DuplicatePromoCodeError,
    InsufficientStockError,
)
from .loyalty import NO_REDEMPTION, LoyaltyRedemption, compute_redemption
from .models import Campaign, CodeValidationResponse, Customer, Product
from .models_sales import CampaignUsageRecord, SaleInput, SaleResponse
from .money import ZERO, round2
from .payment_state import PaymentCoordinator, PaymentStage, validate_tender
from .promo_codes import (
    PromoCodeResult,
    add_code_campaign,
    apply_code,
    normalize_code,
    remove_code,
    reprice_code_entries,
)
from .sale_commit import SaleCommitter, SaleWriter, build_sale_input
from .session import ApiSession
from .stock_validation import (
    StockIssue,
    ensure_cart_in_stock,
    format_stock_issues,
    snapshot_stock,
    validate_cart_stock,
)
from .tax import CheckoutTotals, compute_totals
from .telemetry import TelemetryLogger, build_event
from .ui_errors import CheckoutFeedback, to_feedback

logger = logging.getLogger(__name__)

ANONYMOUS_CUSTOMER_ID = "anonymous"
WALK_IN_CUSTOMER_NAME = "Walk-in customer"


class ProductReader(Protocol):
    def list_products(self, *, search: str | None = None) -> list[Product]: ...

    def refetch(self) -> list[Product]: ...


class CampaignService(Protocol):
    def list_campaigns(self, *, status: str | None = "active") -> list[Campaign]: ...

    def validate_code(
        self, code: str, purchase_amount: Decimal, customer_id: str | None = None
    ) -> CodeValidationResponse: ...

    def record_usage(self, campaign_id: str, usage: CampaignUsageRecord) -> None: ...


@dataclass(frozen=True)
class CheckoutResult:
    ok: bool
    sale: SaleInput | None = None
    response: SaleResponse | None = None
    feedback: CheckoutFeedback | None = None
    stock_issues: list[StockIssue] = field(default_factory=list)


@dataclass
class CheckoutSession:
    """One cashier's checkout: owns the cart and every transient choice around it.

    Derived figures (campaigns, redemption, totals) are recomputed explicitly
    by :meth:`recompute`, which every mutating method calls before returning.
    Only a successful :meth:`commit` clears the session.
    """

    products: ProductReader
    sales: SaleWriter
    tax_rate: Decimal
    campaign_service: CampaignService | None = None
    point_value: Decimal = Decimal("1")
    campaigns: list[Campaign] = field(default_factory=list)
    catalog: list[Product] = field(default_factory=list)
    telemetry: TelemetryLogger | None = None
    clock: Callable[[], datetime] | None = None

    cart: Cart = field(default_factory=Cart)
    customer: Customer | None = None
    walk_in_name: str | None = None
    applied_campaigns: tuple[AppliedCampaign, ...] = ()
    promo_code: str | None = None
    redeem_points: bool = False
    payment: PaymentCoordinator = field(default_factory=PaymentCoordinator)
    is_submitting: bool = False
    redemption: LoyaltyRedemption = NO_REDEMPTION
    totals: CheckoutTotals | None = None
    last_stock_issues: list[StockIssue] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.recompute()

    @classmethod
    def open(
        cls,
        api: ApiSession,
        *,
        config: ClientConfig | None = None,
        telemetry: TelemetryLogger | None = None,
    ) -> CheckoutSession:
        cfg = config or api.config
        tax_rate = api.settings_client().get_tax_rate()
        if tax_rate is None:
            logger.warning("no tax rate configured, using default %s%%", cfg.default_tax_rate)
            tax_rate = cfg.default_tax_rate
        products = api.products_client()
        campaigns = api.campaigns_client()
        return cls(
            products=products,
            sales=api.sales_client(),
            tax_rate=tax_rate,
            campaign_service=campaigns,
            point_value=cfg.point_value,
            campaigns=campaigns.list_campaigns(status="active"),
            catalog=products.list_products(),
            telemetry=telemetry,
        )

    @property
    def subtotal(self) -> Decimal:
        return self.cart.subtotal

    @property
    def campaign_discount(self) -> Decimal:
        return total_discount(self.applied_campaigns)

    @property
    def total(self) -> Decimal:
        return self.totals.total if self.totals else ZERO

    @property
    def can_commit(self) -> bool:
        return not self.cart.is_empty and not self.is_submitting and self.payment.can_commit(self.total)

    def _now(self) -> datetime | None:
        return self.clock() if self.clock else None

    def recompute(self) -> CheckoutTotals:
        subtotal = self.cart.subtotal
        if subtotal <= 0:
            self.applied_campaigns = ()
            self.promo_code = None
            self.redeem_points = False
        else:
            evaluation = evaluate_campaigns(
                subtotal,
                self.customer.id if self.customer else None,
                self.campaigns,
                self._now(),
            )
            codes = reprice_code_entries(self.applied_campaigns, self.campaigns, subtotal)
            self.applied_campaigns = merge_with_codes(evaluation, codes)

        campaign_discount = self.campaign_discount
        self.redemption = compute_redemption(
            self.customer.loyalty_points if self.customer else 0,
            subtotal,
            campaign_discount,
            self.point_value,
            enabled=self.redeem_points and self.customer is not None,
        )
        self.totals = compute_totals(subtotal, campaign_discount, self.redemption.discount, self.tax_rate)
        if self.payment.stage is PaymentStage.READY and self.payment.method != "cash":
            self.payment.amount_paid = self.totals.total
        return self.totals

    def add_product(self, product: Product, quantity: Decimal | float | int | str = 1) -> CartLine:
        line = self.cart.add_line(product, quantity)
        self.recompute()
        return line

    def scan(self, scanned: str, quantity: Decimal | float | int | str = 1) -> CartLine | None:
        product = lookup_scan(scanned, self.catalog)
        if product is None:
            return None
        return self.add_product(product, quantity)

    def update_quantity(self, line_id: str, quantity: Decimal | float | int | str) -> CartLine | None:
        line = self.cart.update_quantity(line_id, quantity)
        self.recompute()
        return line

    def remove_line(self, line_id: str) -> None:
        self.cart.remove_line(line_id)
        self.recompute()

    def clear_cart(self) -> None:
        self.cart.clear()
        self.recompute()

    def select_customer(self, customer: Customer) -> None:
        self.customer = customer
        self.redeem_points = False
        self.recompute()

    def clear_customer(self) -> None:
        self.customer = None
        self.redeem_points = False
        self.recompute()

    def set_walk_in_name(self, name: str | None) -> None:
        self.walk_in_name = (name or "").strip() or None

    def set_redeem_points(self, enabled: bool) -> bool:
        allowed = (
            self.customer is not None
            and self.customer.loyalty_points > 0
            and self.cart.subtotal > 0
        )
        self.redeem_points = bool(enabled) and allowed
        self.recompute()
        return self.redeem_points

    def apply_promo_code(self, code: str) -> PromoCodeResult:
        subtotal = self.cart.subtotal
        if subtotal <= 0:
            return PromoCodeResult(success=False, message="Add products before applying a code")
        if self.promo_code and normalize_code(self.promo_code) != normalize_code(code):
            return PromoCodeResult(success=False, message="Remove the current code before applying another")
        customer_id = self.customer.id if self.customer else None
        result = apply_code(code, subtotal, self.campaigns, customer_id=customer_id, now=self._now())
        if result.success and result.campaign is not None and self.campaign_service is not None:
            result = self._confirm_with_server(code, subtotal, customer_id, result)
        if not result.success or result.campaign is None:
            self._emit("promo_code", "promo_code.apply", success=False)
            return result
        try:
            self.applied_campaigns = add_code_campaign(self.applied_campaigns, result.campaign)
        except DuplicatePromoCodeError as exc:
            return PromoCodeResult(success=False, message=str(exc))
        self.promo_code = result.campaign.code
        self.recompute()
        self._emit("promo_code", "promo_code.apply", success=True)
        return result

    def _confirm_with_server(
        self,
        code: str,
        subtotal: Decimal,
        customer_id: str | None,
        local: PromoCodeResult,
    ) -> PromoCodeResult:
        assert self.campaign_service is not None and local.campaign is not None
        try:
            verdict = self.campaign_service.validate_code(code, subtotal, customer_id)
        except ApiError as exc:
            logger.warning("promo code check unavailable, keeping local result: %s", exc)
            return local
        if not verdict.valid:
            return PromoCodeResult(success=False, message=verdict.error or "Invalid or expired promo code")
        # the amount keeps following the cart; only the verdict comes from the server
        if round2(verdict.discount) != local.campaign.calculated_discount:
            logger.info(
                "server priced code %s at %s, local %s", code, verdict.discount, local.campaign.calculated_discount
            )
        return local

    def remove_promo_code(self) -> None:
        if self.promo_code:
            self.applied_campaigns = remove_code(self.applied_campaigns, self.promo_code)
        self.promo_code = None
        self.recompute()

    def select_payment(self, method: str) -> PaymentStage:
        return self.payment.select(method, self.total)

    def confirm_mobile_payment(self, phone: str) -> PaymentStage:
        return self.payment.confirm_mobile(phone, self.total)

    def cancel_payment(self) -> PaymentStage:
        return self.payment.cancel()

    def set_amount_tendered(self, amount: Decimal | float | str) -> None:
        self.payment.set_amount_tendered(amount)

    def commit(self) -> CheckoutResult:
        """Validate stock, submit the sale once, and report the outcome.

        Never raises: every failure comes back as feedback and leaves the
        cart exactly as it was.
        """
        if self.is_submitting:
            return self._fail(CommitFailure(CheckoutErrorKind.DUPLICATE_SUBMISSION, "submission in progress"))
        self.last_stock_issues = []
        if self.cart.is_empty:
            return self._fail(CommitFailure(CheckoutErrorKind.EMPTY_CART, "cart is empty"))

        totals = self.recompute()
        if self.payment.stage is not PaymentStage.READY:
            return self._fail(CommitFailure(CheckoutErrorKind.PAYMENT_INCOMPLETE, "select and confirm a payment method"))
        tender = validate_tender(self.payment.method, self.payment.amount_paid, totals.total)
        if not tender.ok:
            reason = "; ".join(issue.reason for issue in tender.issues)
            return self._fail(CommitFailure(CheckoutErrorKind.PAYMENT_INCOMPLETE, reason))

        self.is_submitting = True
        started = time.monotonic()
        try:
            return self._commit_locked(totals, tender.amount_paid, started)
        except Exception as exc:
            logger.exception("unexpected checkout failure")
            return self._fail(classify_commit_error(exc), started)
        finally:
            self.is_submitting = False

    def _commit_locked(self, totals: CheckoutTotals, amount_paid: Decimal, started: float) -> CheckoutResult:
        try:
            fresh = self.products.refetch()
        except Exception as exc:
            return self._fail(classify_commit_error(exc), started)
        self.catalog = fresh
        try:
            ensure_cart_in_stock(self.cart, snapshot_stock(fresh))
        except InsufficientStockError as exc:
            self.last_stock_issues = exc.issues
            return self._fail(CommitFailure(CheckoutErrorKind.INSUFFICIENT_STOCK, str(exc)), started)

        sale = build_sale_input(
            cart=self.cart,
            totals=totals,
            payment_method=self.payment.method or "",
            amount_paid=amount_paid,
            redeem_points=self.redemption.points,
            customer=self.customer,
            mobile_phone=self.payment.phone,
            walk_in_name=self.walk_in_name,
        )
        try:
            outcome = SaleCommitter(self.sales).submit(sale)
        except CommitFailure as failure:
            self._recover(failure)
            return self._fail(failure, started)

        applied = self.applied_campaigns
        customer = self.customer
        walk_in_name = self.walk_in_name
        self.reset()
        self._record_campaign_usage(outcome.response, outcome.sale, applied, customer, walk_in_name)
        self._emit(
            "commit_result",
            "sale.commit",
            success=True,
            duration_ms=int((time.monotonic() - started) * 1000),
            context={"lines": len(outcome.sale.items), "payment_method": outcome.sale.payment_method},
        )
        self._refresh_catalog()
        return CheckoutResult(ok=True, sale=outcome.sale, response=outcome.response)

    def _recover(self, failure: CommitFailure) -> None:
        kind = failure.kind
        if kind is CheckoutErrorKind.INSUFFICIENT_POINTS:
            self.redeem_points = False
            self.recompute()
        elif kind in {CheckoutErrorKind.INSUFFICIENT_STOCK, CheckoutErrorKind.PRODUCT_REMOVED}:
            # re-run the local check against a fresh read
            if self._refresh_catalog(authoritative=True):
                self.last_stock_issues = validate_cart_stock(self.cart, snapshot_stock(self.catalog))

    def _refresh_catalog(self, *, authoritative: bool = False) -> bool:
        try:
            self.catalog = self.products.refetch() if authoritative else self.products.list_products()
        except Exception as exc:
            logger.warning("product list refresh failed: %s", exc)
            return False
        return True

    def _record_campaign_usage(
        self,
        response: SaleResponse,
        sale: SaleInput,
        applied: tuple[AppliedCampaign, ...],
        customer: Customer | None,
        walk_in_name: str | None,
    ) -> None:
        if not applied or self.campaign_service is None:
            return
        total = response.total if response.total is not None else sale.total
        for entry in applied:
            usage = CampaignUsageRecord(
                customer_id=customer.id if customer else ANONYMOUS_CUSTOMER_ID,
                customer_name=customer.name if customer else (walk_in_name or WALK_IN_CUSTOMER_NAME),
                order_amount=total,
                discount_applied=entry.calculated_discount,
                order_id=response.id,
            )
            try:
                self.campaign_service.record_usage(entry.campaign_id, usage)
            except Exception as exc:
                logger.warning("campaign usage for %s not recorded: %s", entry.campaign_id, exc)

    def reset(self) -> None:
        self.cart.clear()
        self.customer = None
        self.walk_in_name = None
        self.applied_campaigns = ()
        self.promo_code = None
        self.redeem_points = False
        self.payment.reset()
        self.last_stock_issues = []
        self.recompute()

    def _fail(self, failure: CommitFailure, started: float | None = None) -> CheckoutResult:
        feedback = to_feedback(failure)
        if failure.kind is CheckoutErrorKind.INSUFFICIENT_STOCK and failure.cause is not None and self.last_stock_issues:
            extra = format_stock_issues(self.last_stock_issues).splitlines()[1:]
            feedback = replace(feedback, details=[*feedback.details, *extra])
        self._emit(
            "commit_result",
            "sale.commit",
            success=False,
            error_code=failure.kind.value,
            duration_ms=int((time.monotonic() - started) * 1000) if started is not None else None,
        )
        return CheckoutResult(ok=False, feedback=feedback, stock_issues=list(self.last_stock_issues))

    def _emit(self, category: str, name: str, **fields) -> None:
        if self.telemetry is None:
            return
        event = build_event(category, name, **fields)
        try:
            self.telemetry.emit(event)
        except OSError as exc:
            logger.warning("telemetry event %s not written: %s", name, exc)
