from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from returns.result import Failure, Result, Success

from checkout_api.core.domain.model.checkout import (
    DEFAULT_COUNTRY,
    CheckoutLine,
    ContactInfo,
    Delivery,
    DeliveryDetails,
    Fulfillment,
    OrderDocument,
    OrderLineEntry,
    PickupDetails,
    PricingConfig,
    Recipient,
    ScheduleType,
    StructuredAddress,
    TaxDeclaration,
)
from checkout_api.core.domain.model.errors import (
    CheckoutError,
    MissingDeliveryAddress,
)
from checkout_api.core.domain.service.totals import priced_lines

SALES_TAX = "Sales Tax"


def format_percentage(rate: Decimal) -> str:
    """``Decimal("8.0") -> "8"``, ``Decimal("8.875") -> "8.875"``."""
    return format(Decimal(rate).normalize(), "f")


def normalize_address(address: str | StructuredAddress) -> StructuredAddress:
    if isinstance(address, str):
        return StructuredAddress(line1=address, country=DEFAULT_COUNTRY)
    return StructuredAddress(
        line1=address.line1,
        locality=address.locality,
        region=address.region,
        postal_code=address.postal_code,
        country=address.country or DEFAULT_COUNTRY,
    )


def _recipient(contact: ContactInfo) -> Recipient:
    return Recipient(
        display_name=contact.name,
        phone_number=contact.phone,
        email_address=contact.email,
    )


def _fulfillment_block(
    contact: ContactInfo, fulfillment: Fulfillment
) -> Result[PickupDetails | DeliveryDetails, CheckoutError]:
    if isinstance(fulfillment, Delivery):
        address = fulfillment.address
        if address is None or (isinstance(address, str) and not address.strip()):
            return Failure(
                MissingDeliveryAddress("Delivery address is required for delivery orders")
            )
        return Success(
            DeliveryDetails(
                recipient=_recipient(contact),
                address=normalize_address(address),
                schedule_type=ScheduleType.ASAP,
            )
        )

    if fulfillment.pickup_time:
        return Success(
            PickupDetails(
                recipient=_recipient(contact),
                schedule_type=ScheduleType.SCHEDULED,
                pickup_at=fulfillment.pickup_time,
            )
        )
    return Success(
        PickupDetails(recipient=_recipient(contact), schedule_type=ScheduleType.ASAP)
    )


def assemble_order(
    lines: Sequence[CheckoutLine],
    contact: ContactInfo,
    fulfillment: Fulfillment,
    config: PricingConfig,
) -> Result[OrderDocument, CheckoutError]:
    entries = tuple(
        OrderLineEntry(ln.name, ln.quantity, ln.unit_price_cents)
        for ln in priced_lines(lines, fulfillment, config)
    )
    taxes = (
        (TaxDeclaration(SALES_TAX, format_percentage(config.tax_rate_percent)),)
        if config.tax_rate_percent > 0
        else ()
    )
    return _fulfillment_block(contact, fulfillment).map(
        lambda block: OrderDocument(line_items=entries, taxes=taxes, fulfillment=block)
    )
