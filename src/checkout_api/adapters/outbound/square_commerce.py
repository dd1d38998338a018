"""
Square-compatible order and payment gateways over httpx.

Both calls are plain blocking POSTs with a per-call timeout. A timeout or
transport error maps to ProviderUnavailable; a non-2xx answer maps to the
operation's failure type with the provider's first error detail.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable

import httpx
import structlog
from returns.result import Failure, Result, Success

from checkout_api.core.domain.model.checkout import (
    DeliveryDetails,
    OrderDocument,
    OrderId,
    PaymentId,
    PickupDetails,
    Recipient,
)
from checkout_api.core.domain.model.errors import (
    CheckoutError,
    OrderCreationFailed,
    PaymentCaptureFailed,
    ProviderUnavailable,
)
from checkout_api.core.ports.outbound.commerce import (
    OrderGateway,
    PaymentGateway,
    PaymentRequest,
)

logger = structlog.get_logger(__name__)

ORDERS_PATH = "/v2/orders"
PAYMENTS_PATH = "/v2/payments"


def _compact(obj: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None, recursively."""
    out: dict[str, Any] = {}
    for key, value in obj.items():
        if value is None:
            continue
        if isinstance(value, dict):
            value = _compact(value)
        elif isinstance(value, list):
            value = [_compact(v) if isinstance(v, dict) else v for v in value]
        out[key] = value
    return out


def _recipient_json(r: Recipient) -> dict[str, Any]:
    return {
        "display_name": r.display_name,
        "phone_number": r.phone_number,
        "email_address": r.email_address,
    }


def order_payload(
    order: OrderDocument, location_id: str | None, currency: str
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "location_id": location_id,
        "line_items": [
            {
                "name": li.name,
                "quantity": str(li.quantity),
                "base_price_money": {"amount": li.unit_price_cents, "currency": currency},
            }
            for li in order.line_items
        ],
    }
    if order.taxes:
        body["taxes"] = [
            {
                "name": t.name,
                "type": "ADDITIVE",
                "scope": "ORDER",
                "percentage": t.percentage,
            }
            for t in order.taxes
        ]

    block = order.fulfillment
    fulfillment: dict[str, Any] = {"state": "PROPOSED"}
    if isinstance(block, DeliveryDetails):
        addr = block.address
        fulfillment["type"] = "DELIVERY"
        fulfillment["delivery_details"] = {
            "recipient": _recipient_json(block.recipient),
            "schedule_type": block.schedule_type.value,
            "delivery_address": {
                "address_line_1": addr.line1,
                "locality": addr.locality,
                "administrative_district_level_1": addr.region,
                "postal_code": addr.postal_code,
                "country": addr.country,
            },
        }
    elif isinstance(block, PickupDetails):
        fulfillment["type"] = "PICKUP"
        fulfillment["pickup_details"] = {
            "recipient": _recipient_json(block.recipient),
            "schedule_type": block.schedule_type.value,
            "pickup_at": block.pickup_at,
        }
    body["fulfillments"] = [fulfillment]
    return _compact(body)


def payment_payload(
    request: PaymentRequest, location_id: str | None, currency: str
) -> dict[str, Any]:
    return _compact(
        {
            "idempotency_key": request.idempotency_key,
            "source_id": request.source_token,
            "location_id": location_id,
            "amount_money": {"amount": request.amount_cents, "currency": currency},
            "order_id": request.order_id.value,
        }
    )


def error_detail(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        detail = errors[0].get("detail")
        if detail:
            return str(detail)
    return None


@dataclass(frozen=True)
class SquareConfig:
    base_url: str
    access_token: str | None
    location_id: str | None
    square_version: str = "2024-06-20"
    currency: str = "USD"
    timeout_seconds: float = 10.0

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token or ''}",
            "Content-Type": "application/json",
            "Square-Version": self.square_version,
        }


@dataclass
class SquareCommerceClient(OrderGateway, PaymentGateway):
    config: SquareConfig
    client: httpx.Client | None = None

    def __post_init__(self) -> None:
        if self.client is None:
            self.client = httpx.Client(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
            )

    def close(self) -> None:
        self.client.close()

    def create_order(
        self, order: OrderDocument, idempotency_key: str
    ) -> Result[OrderId, CheckoutError]:
        payload = {
            "idempotency_key": idempotency_key,
            "order": order_payload(order, self.config.location_id, self.config.currency),
        }
        return self._post(
            ORDERS_PATH,
            payload,
            operation="create_order",
            on_ok=lambda body: OrderId(str(body["order"]["id"])),
            on_error=lambda detail: OrderCreationFailed(
                detail or "Square createOrder failed"
            ),
        )

    def capture(self, request: PaymentRequest) -> Result[PaymentId, CheckoutError]:
        payload = payment_payload(request, self.config.location_id, self.config.currency)
        return self._post(
            PAYMENTS_PATH,
            payload,
            operation="create_payment",
            on_ok=lambda body: PaymentId(str(body["payment"]["id"])),
            on_error=lambda detail: PaymentCaptureFailed(
                message=detail or "Square createPayment failed",
                order_id=request.order_id.value,
            ),
            order_id=request.order_id.value,
            amount_cents=request.amount_cents,
        )

    def _post(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        operation: str,
        on_ok: Callable[[dict[str, Any]], Any],
        on_error: Callable[[str | None], CheckoutError],
        **context: Any,
    ) -> Result[Any, CheckoutError]:
        try:
            resp = self.client.post(
                path,
                json=payload,
                headers=self.config.headers(),
                timeout=self.config.timeout_seconds,
            )
        except httpx.TimeoutException:
            logger.warning("square.timeout", operation=operation)
            return Failure(
                ProviderUnavailable(
                    message=f"{operation} timed out", operation=operation
                )
            )
        except httpx.TransportError as e:
            logger.warning("square.transport_error", operation=operation, error=str(e))
            return Failure(
                ProviderUnavailable(
                    message=f"{operation} unavailable", operation=operation
                )
            )

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not resp.is_success:
            detail = error_detail(body)
            logger.warning(
                "square.rejected",
                operation=operation,
                status=resp.status_code,
                detail=detail,
            )
            return Failure(on_error(detail))

        try:
            return Success(on_ok(body))
        except (KeyError, TypeError):
            # accepted upstream but no id came back; the call may have taken
            # effect, so it needs reconciling by hand
            logger.error(
                "square.unconfirmed_success",
                operation=operation,
                status=resp.status_code,
                **context,
            )
            return Failure(on_error(None))


def describe(config: SquareConfig) -> dict[str, Any]:
    data = asdict(config)
    data.pop("access_token", None)
    return data
