from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Tuple, Union
from uuid import uuid4

DELIVERY_FEE_LINE = "Delivery Fee"
DEFAULT_COUNTRY = "US"


@dataclass(frozen=True)
class OrderId:
    value: str


@dataclass(frozen=True)
class PaymentId:
    value: str


def new_idempotency_key() -> str:
    return str(uuid4())


@dataclass(frozen=True)
class CheckoutLine:
    """A cart line after sanitization; ``unit_price_cents`` comes from the price book."""

    name: str
    quantity: int
    unit_price_cents: int

    def subtotal_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass(frozen=True)
class ContactInfo:
    name: str
    phone: str
    email: str | None = None


@dataclass(frozen=True)
class StructuredAddress:
    line1: str
    locality: str | None = None
    region: str | None = None
    postal_code: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class Pickup:
    pickup_time: str | None = None


@dataclass(frozen=True)
class Delivery:
    address: str | StructuredAddress | None = None


Fulfillment = Union[Pickup, Delivery]


@dataclass(frozen=True)
class PricingConfig:
    tax_rate_percent: Decimal = Decimal("8.0")
    delivery_fee_cents: int = 0
    currency: str = "USD"


@dataclass(frozen=True)
class Totals:
    subtotal_cents: int
    delivery_fee_cents: int
    tax_cents: int
    total_cents: int

    @property
    def taxable_base_cents(self) -> int:
        return self.subtotal_cents + self.delivery_fee_cents


# ---- order document ----------------------------------------------------------


class ScheduleType(str, Enum):
    ASAP = "ASAP"
    SCHEDULED = "SCHEDULED"


@dataclass(frozen=True)
class OrderLineEntry:
    name: str
    quantity: int
    unit_price_cents: int


@dataclass(frozen=True)
class TaxDeclaration:
    name: str
    percentage: str


@dataclass(frozen=True)
class Recipient:
    display_name: str
    phone_number: str
    email_address: str | None = None


@dataclass(frozen=True)
class PickupDetails:
    recipient: Recipient
    schedule_type: ScheduleType
    pickup_at: str | None = None


@dataclass(frozen=True)
class DeliveryDetails:
    recipient: Recipient
    address: StructuredAddress
    schedule_type: ScheduleType = ScheduleType.ASAP


@dataclass(frozen=True)
class OrderDocument:
    line_items: Tuple[OrderLineEntry, ...]
    taxes: Tuple[TaxDeclaration, ...]
    fulfillment: PickupDetails | DeliveryDetails

    @property
    def is_delivery(self) -> bool:
        return isinstance(self.fulfillment, DeliveryDetails)
