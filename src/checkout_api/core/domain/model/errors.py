from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CheckoutError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class MalformedRequest(CheckoutError):
    pass


@dataclass(frozen=True)
class UnknownItem(CheckoutError):
    name: str


@dataclass(frozen=True)
class InvalidQuantity(CheckoutError):
    name: str


@dataclass(frozen=True)
class MissingDeliveryAddress(CheckoutError):
    pass


@dataclass(frozen=True)
class OrderCreationFailed(CheckoutError):
    pass


@dataclass(frozen=True)
class PaymentCaptureFailed(CheckoutError):
    order_id: str


@dataclass(frozen=True)
class ProviderUnavailable(CheckoutError):
    operation: str


@dataclass(frozen=True)
class ConfigurationError(CheckoutError):
    pass
