from decimal import Decimal

import pytest

from checkout_api.core.domain.model.checkout import (
    CheckoutLine,
    Delivery,
    Pickup,
    PricingConfig,
    Totals,
)
from checkout_api.core.domain.service.totals import (
    compute_totals,
    priced_lines,
    tax_cents,
)

FRIES_X2 = (CheckoutLine("Small Fries", 2, 299),)


def test_pickup_example():
    config = PricingConfig(tax_rate_percent=Decimal("8"), delivery_fee_cents=300)

    totals = compute_totals(FRIES_X2, Pickup(), config)

    assert totals == Totals(
        subtotal_cents=598, delivery_fee_cents=0, tax_cents=48, total_cents=646
    )


def test_delivery_example_taxes_the_fee():
    config = PricingConfig(tax_rate_percent=Decimal("8"), delivery_fee_cents=300)

    totals = compute_totals(FRIES_X2, Delivery("123 Main St"), config)

    assert totals.taxable_base_cents == 898
    assert totals.tax_cents == 72
    assert totals.total_cents == 970
    assert (
        totals.total_cents
        == totals.subtotal_cents + totals.delivery_fee_cents + totals.tax_cents
    )


def test_zero_rate_means_zero_tax():
    config = PricingConfig(tax_rate_percent=Decimal("0"), delivery_fee_cents=0)

    totals = compute_totals(FRIES_X2, Pickup(), config)

    assert totals.tax_cents == 0
    assert totals.total_cents == 598


@pytest.mark.parametrize(
    "base, rate, expected",
    [
        (50, Decimal("1"), 1),  # 0.5 rounds up
        (150, Decimal("1"), 2),  # 1.5 rounds up
        (250, Decimal("1"), 3),  # 2.5 rounds up, not to even
        (149, Decimal("1"), 1),
        (1000, Decimal("8.875"), 89),  # 88.75
        (200, Decimal("7.25"), 14),  # 14.499999999999998 in floating point
    ],
)
def test_tax_rounds_half_up(base, rate, expected):
    assert tax_cents(base, rate) == expected


def test_priced_lines_add_fee_only_for_delivery():
    config = PricingConfig(tax_rate_percent=Decimal("8"), delivery_fee_cents=300)

    assert priced_lines(FRIES_X2, Pickup(), config) == FRIES_X2
    assert priced_lines(FRIES_X2, Delivery("x"), config) == (
        *FRIES_X2,
        CheckoutLine("Delivery Fee", 1, 300),
    )


def test_zero_fee_adds_no_line():
    config = PricingConfig(tax_rate_percent=Decimal("8"), delivery_fee_cents=0)
    assert priced_lines(FRIES_X2, Delivery("x"), config) == FRIES_X2
    assert compute_totals(FRIES_X2, Delivery("x"), config).delivery_fee_cents == 0


def test_tax_rounds_the_float_product():
    config = PricingConfig(tax_rate_percent=Decimal("0.7"), delivery_fee_cents=0)
    lines = (CheckoutLine("Soda Can", 1, 500),)

    totals = compute_totals(lines, Pickup(), config)

    # 500 * 0.007 lands just below 3.5
    assert totals.tax_cents == 3
    assert totals.total_cents == 503
