from __future__ import annotations

import json

from pydantic import ValidationError
from returns.result import Success

from checkout_api.adapters.inbound.web.fastapi_app import CheckoutRequest, to_command
from checkout_api.core.ports.inbound.checkout import CheckoutUseCase


def run_cli(usecase: CheckoutUseCase, raw: str) -> int:
    """
    raw: JSON string, same shape as the POST /api/checkout body.
    Example:
      {"cart":[{"name":"Small Fries","qty":2}],
       "contact":{"name":"Sam","phone":"5551234567"},
       "paymentToken":"cnon:card-nonce-ok"}
    """
    try:
        req = CheckoutRequest.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        print(f"invalid_input: {e}")
        return 2

    result = usecase.checkout(to_command(req))

    if isinstance(result, Success):
        receipt = result.unwrap()
        print(
            "[ok]",
            {
                "order_id": receipt.order_id.value,
                "payment_id": receipt.payment_id.value,
                "subtotal_cents": receipt.totals.subtotal_cents,
                "delivery_fee_cents": receipt.totals.delivery_fee_cents,
                "tax_cents": receipt.totals.tax_cents,
                "total_cents": receipt.totals.total_cents,
            },
        )
        return 0

    err = result.failure()
    print("[ng]", str(err))
    return 1
