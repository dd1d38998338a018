from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Tuple

import structlog
from returns.pipeline import flow
from returns.pointfree import bind
from returns.result import Failure, Result, Success

from checkout_api.core.domain.model.checkout import (
    CheckoutLine,
    OrderDocument,
    OrderId,
    PricingConfig,
    Totals,
    new_idempotency_key,
)
from checkout_api.core.domain.model.errors import (
    CheckoutError,
    MalformedRequest,
)
from checkout_api.core.domain.model.price_book import PriceAuthority
from checkout_api.core.domain.service.assemble import assemble_order
from checkout_api.core.domain.service.sanitize import sanitize_cart
from checkout_api.core.domain.service.totals import compute_totals
from checkout_api.core.ports.inbound.checkout import (
    CheckoutCommand,
    CheckoutReceipt,
    CheckoutUseCase,
)
from checkout_api.core.ports.outbound.commerce import (
    OrderGateway,
    PaymentGateway,
    PaymentRequest,
)

logger = structlog.get_logger(__name__)

MIN_PHONE_LENGTH = 7


class CheckoutStage(str, Enum):
    RECEIVED = "received"
    SANITIZED = "sanitized"
    TOTALED = "totaled"
    ORDER_ASSEMBLED = "order_assembled"
    ORDER_CREATED = "order_created"
    PAYMENT_CAPTURED = "payment_captured"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class CheckoutDeps:
    prices: PriceAuthority
    orders: OrderGateway
    payments: PaymentGateway
    pricing: PricingConfig
    new_key: Callable[[], str] = new_idempotency_key


@dataclass(frozen=True)
class SanitizedCheckout:
    command: CheckoutCommand
    lines: Tuple[CheckoutLine, ...]


@dataclass(frozen=True)
class PricedCheckout:
    command: CheckoutCommand
    totals: Totals
    order: OrderDocument


@dataclass(frozen=True)
class CreatedCheckout:
    priced: PricedCheckout
    order_id: OrderId


@dataclass(frozen=True)
class CheckoutService(CheckoutUseCase):
    deps: CheckoutDeps

    def checkout(
        self, command: CheckoutCommand
    ) -> Result[CheckoutReceipt, CheckoutError]:
        logger.info(
            "checkout.stage", stage=CheckoutStage.RECEIVED.value, lines=len(command.cart)
        )
        result = flow(
            command,
            _validate_command,
            bind(self._sanitize),
            bind(self._price_and_assemble),
            bind(self._create_order),
            bind(self._capture_payment),
        )

        if isinstance(result, Success):
            receipt = result.unwrap()
            logger.info(
                "checkout.stage",
                stage=CheckoutStage.SUCCEEDED.value,
                order_id=receipt.order_id.value,
                payment_id=receipt.payment_id.value,
                total_cents=receipt.totals.total_cents,
            )
        else:
            err = result.failure()
            logger.warning(
                "checkout.stage",
                stage=CheckoutStage.FAILED.value,
                error_type=type(err).__name__,
                error=str(err),
            )
        return result

    def _sanitize(
        self, cmd: CheckoutCommand
    ) -> Result[SanitizedCheckout, CheckoutError]:
        # one snapshot per request so a concurrent reload can't mix tables
        prices = self.deps.prices.snapshot()
        return sanitize_cart(cmd.cart, prices).map(
            lambda lines: _log_stage(
                CheckoutStage.SANITIZED, SanitizedCheckout(cmd, lines)
            )
        )

    def _price_and_assemble(
        self, ctx: SanitizedCheckout
    ) -> Result[PricedCheckout, CheckoutError]:
        cmd = ctx.command
        totals = compute_totals(ctx.lines, cmd.fulfillment, self.deps.pricing)
        _log_stage(CheckoutStage.TOTALED, totals, total_cents=totals.total_cents)
        return assemble_order(
            ctx.lines, cmd.contact, cmd.fulfillment, self.deps.pricing
        ).map(
            lambda order: _log_stage(
                CheckoutStage.ORDER_ASSEMBLED, PricedCheckout(cmd, totals, order)
            )
        )

    def _create_order(
        self, ctx: PricedCheckout
    ) -> Result[CreatedCheckout, CheckoutError]:
        return self.deps.orders.create_order(
            ctx.order, idempotency_key=self.deps.new_key()
        ).map(
            lambda order_id: _log_stage(
                CheckoutStage.ORDER_CREATED,
                CreatedCheckout(ctx, order_id),
                order_id=order_id.value,
            )
        )

    def _capture_payment(
        self, ctx: CreatedCheckout
    ) -> Result[CheckoutReceipt, CheckoutError]:
        req = PaymentRequest(
            order_id=ctx.order_id,
            amount_cents=ctx.priced.totals.total_cents,
            source_token=ctx.priced.command.payment_token,
            idempotency_key=self.deps.new_key(),
        )
        result = self.deps.payments.capture(req)
        if isinstance(result, Failure):
            # No compensation: the upstream order stays open and has to be
            # reconciled by hand.
            logger.error(
                "checkout.orphaned_order",
                order_id=ctx.order_id.value,
                amount_cents=req.amount_cents,
                error=str(result.failure()),
            )
            return result
        return result.map(
            lambda payment_id: _log_stage(
                CheckoutStage.PAYMENT_CAPTURED,
                CheckoutReceipt(
                    order_id=ctx.order_id,
                    payment_id=payment_id,
                    totals=ctx.priced.totals,
                ),
                payment_id=payment_id.value,
            )
        )


# ---- pure helpers ----------------------------------------------------------


def _validate_command(
    cmd: CheckoutCommand,
) -> Result[CheckoutCommand, CheckoutError]:
    if not cmd.cart:
        return Failure(MalformedRequest("cart must contain at least one item"))
    if not cmd.payment_token.strip():
        return Failure(MalformedRequest("paymentToken is required"))
    if not cmd.contact.name.strip():
        return Failure(MalformedRequest("contact.name is required"))
    if len(cmd.contact.phone) < MIN_PHONE_LENGTH:
        return Failure(
            MalformedRequest(
                f"contact.phone must be at least {MIN_PHONE_LENGTH} characters"
            )
        )
    for i, item in enumerate(cmd.cart):
        if not item.name:
            return Failure(MalformedRequest(f"cart[{i}].name is required"))
    return Success(cmd)


def _log_stage(stage: CheckoutStage, value, **context):
    logger.debug("checkout.stage", stage=stage.value, **context)
    return value
