from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from returns.result import Result

from checkout_api.core.domain.model.checkout import (
    ContactInfo,
    Fulfillment,
    OrderId,
    PaymentId,
    Pickup,
    Totals,
)
from checkout_api.core.domain.model.errors import CheckoutError


@dataclass(frozen=True)
class CartItem:
    name: str
    # loosely typed on purpose: the sanitizer decides whether it is a valid quantity
    qty: Any = None


@dataclass(frozen=True)
class CheckoutCommand:
    cart: Sequence[CartItem]
    contact: ContactInfo
    payment_token: str
    fulfillment: Fulfillment = field(default_factory=Pickup)


@dataclass(frozen=True)
class CheckoutReceipt:
    order_id: OrderId
    payment_id: PaymentId
    totals: Totals


class CheckoutUseCase(Protocol):
    def checkout(
        self, command: CheckoutCommand
    ) -> Result[CheckoutReceipt, CheckoutError]: ...
