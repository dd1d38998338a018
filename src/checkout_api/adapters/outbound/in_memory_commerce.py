from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field

from returns.result import Failure, Result, Success

from checkout_api.core.domain.model.checkout import OrderDocument, OrderId, PaymentId
from checkout_api.core.domain.model.errors import (
    CheckoutError,
    OrderCreationFailed,
    PaymentCaptureFailed,
)
from checkout_api.core.ports.outbound.commerce import (
    OrderGateway,
    PaymentGateway,
    PaymentRequest,
)


@dataclass(frozen=True)
class RecordedOrder:
    order_id: OrderId
    idempotency_key: str
    order: OrderDocument


@dataclass
class InMemoryCommerce(OrderGateway, PaymentGateway):
    """Local stand-in for the remote order/payment service.

    Orders are rejected while ``reject_orders`` is set; payments are declined
    for tokens in ``decline_tokens`` or amounts above ``max_amount_cents``.
    A repeated idempotency key returns the original result, like the real
    service does.
    """

    decline_tokens: set[str] = field(default_factory=set)
    max_amount_cents: int = 100_000_000
    reject_orders: bool = False
    orders: dict[str, RecordedOrder] = field(default_factory=dict)
    payments: dict[str, PaymentId] = field(default_factory=dict)
    order_calls: list[str] = field(default_factory=list)
    payment_calls: list[PaymentRequest] = field(default_factory=list)
    _seq: itertools.count = field(default_factory=lambda: itertools.count(1))
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def create_order(
        self, order: OrderDocument, idempotency_key: str
    ) -> Result[OrderId, CheckoutError]:
        with self._lock:
            self.order_calls.append(idempotency_key)
            if self.reject_orders:
                return Failure(OrderCreationFailed("order rejected"))
            for rec in self.orders.values():
                if rec.idempotency_key == idempotency_key:
                    return Success(rec.order_id)
            order_id = OrderId(f"order-{next(self._seq)}")
            self.orders[order_id.value] = RecordedOrder(order_id, idempotency_key, order)
            return Success(order_id)

    def capture(self, request: PaymentRequest) -> Result[PaymentId, CheckoutError]:
        with self._lock:
            self.payment_calls.append(request)
            if request.order_id.value not in self.orders:
                return Failure(
                    PaymentCaptureFailed(
                        message="unknown order", order_id=request.order_id.value
                    )
                )
            if request.source_token in self.decline_tokens:
                return Failure(
                    PaymentCaptureFailed(
                        message="card declined", order_id=request.order_id.value
                    )
                )
            if request.amount_cents > self.max_amount_cents:
                return Failure(
                    PaymentCaptureFailed(
                        message="amount too large", order_id=request.order_id.value
                    )
                )
            if request.idempotency_key not in self.payments:
                self.payments[request.idempotency_key] = PaymentId(
                    f"payment-{next(self._seq)}"
                )
            return Success(self.payments[request.idempotency_key])
