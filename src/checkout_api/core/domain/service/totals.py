from __future__ import annotations

import math
from decimal import Decimal
from typing import Sequence, Tuple

from checkout_api.core.domain.model.checkout import (
    DELIVERY_FEE_LINE,
    CheckoutLine,
    Delivery,
    Fulfillment,
    PricingConfig,
    Totals,
)


def delivery_fee_cents(fulfillment: Fulfillment, config: PricingConfig) -> int:
    if isinstance(fulfillment, Delivery) and config.delivery_fee_cents > 0:
        return config.delivery_fee_cents
    return 0


def priced_lines(
    lines: Sequence[CheckoutLine], fulfillment: Fulfillment, config: PricingConfig
) -> Tuple[CheckoutLine, ...]:
    """Item lines plus the delivery fee as its own line when one applies."""
    fee = delivery_fee_cents(fulfillment, config)
    if fee:
        return (*lines, CheckoutLine(DELIVERY_FEE_LINE, 1, fee))
    return tuple(lines)


def tax_cents(taxable_base_cents: int, tax_rate_percent: Decimal) -> int:
    """Tax on the base in binary floating point, rounded half up.

    The float product is rounded as is, so 200 cents at 7.25% (14.4999...)
    yields 14, matching the amounts the storefront has always charged.
    """
    if tax_rate_percent <= 0:
        return 0
    return math.floor(taxable_base_cents * (float(tax_rate_percent) / 100) + 0.5)


def compute_totals(
    lines: Sequence[CheckoutLine], fulfillment: Fulfillment, config: PricingConfig
) -> Totals:
    subtotal = sum(line.subtotal_cents() for line in lines)
    fee = delivery_fee_cents(fulfillment, config)
    tax = tax_cents(subtotal + fee, config.tax_rate_percent)
    return Totals(
        subtotal_cents=subtotal,
        delivery_fee_cents=fee,
        tax_cents=tax,
        total_cents=subtotal + fee + tax,
    )
