from __future__ import annotations

from typing import Any, Sequence, Tuple

from returns.result import Failure, Result, Success

from checkout_api.core.domain.model.checkout import CheckoutLine
from checkout_api.core.domain.model.errors import (
    CheckoutError,
    InvalidQuantity,
    UnknownItem,
)
from checkout_api.core.domain.model.price_book import PriceBook
from checkout_api.core.ports.inbound.checkout import CartItem


def strict_quantity(qty: Any) -> int | None:
    """Return ``qty`` as a positive int, or None when it is not one.

    Integral floats (``2.0``) are accepted since JSON does not tell them apart.
    """
    if isinstance(qty, bool):
        return None
    if isinstance(qty, int):
        return qty if qty > 0 else None
    if isinstance(qty, float) and qty.is_integer() and qty > 0:
        return int(qty)
    return None


def sanitize_line(
    item: CartItem, prices: PriceBook
) -> Result[CheckoutLine, CheckoutError]:
    price = prices.lookup(item.name)
    if price is None:
        return Failure(UnknownItem(message=f"Unknown item: {item.name}", name=item.name))
    quantity = strict_quantity(item.qty)
    if quantity is None:
        return Failure(
            InvalidQuantity(message=f"Bad qty for {item.name}", name=item.name)
        )
    return Success(CheckoutLine(name=item.name, quantity=quantity, unit_price_cents=price))


def sanitize_cart(
    cart: Sequence[CartItem], prices: PriceBook
) -> Result[Tuple[CheckoutLine, ...], CheckoutError]:
    lines: list[CheckoutLine] = []
    for item in cart:
        result = sanitize_line(item, prices)
        if isinstance(result, Failure):
            return result
        lines.append(result.unwrap())
    return Success(tuple(lines))
