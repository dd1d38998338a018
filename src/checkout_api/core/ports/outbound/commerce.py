from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from returns.result import Result

from checkout_api.core.domain.model.checkout import OrderDocument, OrderId, PaymentId
from checkout_api.core.domain.model.errors import CheckoutError


@dataclass(frozen=True)
class PaymentRequest:
    order_id: OrderId
    amount_cents: int
    source_token: str
    idempotency_key: str


class OrderGateway(Protocol):
    def create_order(
        self, order: OrderDocument, idempotency_key: str
    ) -> Result[OrderId, CheckoutError]:
        """Create the order upstream; fails with OrderCreationFailed or ProviderUnavailable."""
        ...


class PaymentGateway(Protocol):
    def capture(self, request: PaymentRequest) -> Result[PaymentId, CheckoutError]:
        """Capture payment for a created order; fails with PaymentCaptureFailed or ProviderUnavailable."""
        ...
