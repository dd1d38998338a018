import json
from decimal import Decimal

import httpx
import pytest
from returns.result import Failure
from structlog.testing import capture_logs

from checkout_api.adapters.outbound.square_commerce import (
    SquareCommerceClient,
    SquareConfig,
    order_payload,
)
from checkout_api.core.domain.model.checkout import (
    CheckoutLine,
    Delivery,
    OrderId,
    PaymentId,
    Pickup,
    PricingConfig,
)
from checkout_api.core.domain.model.errors import (
    OrderCreationFailed,
    PaymentCaptureFailed,
    ProviderUnavailable,
)
from checkout_api.core.domain.service.assemble import assemble_order
from checkout_api.core.ports.outbound.commerce import PaymentRequest

BASE = "https://connect.squareupsandbox.com"
CONFIG = SquareConfig(base_url=BASE, access_token="sq-token", location_id="LOC-1")
PRICING = PricingConfig(tax_rate_percent=Decimal("8"), delivery_fee_cents=300)
LINES = (CheckoutLine("Small Fries", 2, 299),)


def _client(handler):
    http = httpx.Client(base_url=BASE, transport=httpx.MockTransport(handler))
    return SquareCommerceClient(CONFIG, client=http)


@pytest.fixture()
def pickup_order(contact):
    return assemble_order(LINES, contact, Pickup(), PRICING).unwrap()


def test_create_order_posts_square_payload(pickup_order):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"order": {"id": "ORD-1"}})

    result = _client(handler).create_order(pickup_order, idempotency_key="k-1")

    assert result.unwrap() == OrderId("ORD-1")
    (req,) = seen
    assert req.url.path == "/v2/orders"
    assert req.headers["Authorization"] == "Bearer sq-token"
    assert req.headers["Square-Version"] == "2024-06-20"
    body = json.loads(req.content)
    assert body["idempotency_key"] == "k-1"
    order = body["order"]
    assert order["location_id"] == "LOC-1"
    assert order["line_items"] == [
        {
            "name": "Small Fries",
            "quantity": "2",
            "base_price_money": {"amount": 299, "currency": "USD"},
        }
    ]
    assert order["taxes"] == [
        {"name": "Sales Tax", "type": "ADDITIVE", "scope": "ORDER", "percentage": "8"}
    ]
    (fulfillment,) = order["fulfillments"]
    assert fulfillment["type"] == "PICKUP"
    assert fulfillment["state"] == "PROPOSED"
    assert fulfillment["pickup_details"]["schedule_type"] == "ASAP"
    assert "pickup_at" not in fulfillment["pickup_details"]
    assert "delivery_details" not in fulfillment


def test_delivery_payload(contact):
    order = assemble_order(LINES, contact, Delivery("123 Main St"), PRICING).unwrap()

    body = order_payload(order, "LOC-1", "USD")

    assert body["line_items"][-1] == {
        "name": "Delivery Fee",
        "quantity": "1",
        "base_price_money": {"amount": 300, "currency": "USD"},
    }
    (fulfillment,) = body["fulfillments"]
    assert fulfillment["type"] == "DELIVERY"
    details = fulfillment["delivery_details"]
    assert details["schedule_type"] == "ASAP"
    assert details["delivery_address"] == {"address_line_1": "123 Main St", "country": "US"}
    assert details["recipient"] == {
        "display_name": "Sam",
        "phone_number": "5551234567",
        "email_address": "sam@example.com",
    }


def test_create_order_error_detail(pickup_order):
    def handler(request):
        return httpx.Response(
            400, json={"errors": [{"code": "BAD_REQUEST", "detail": "Invalid location"}]}
        )

    result = _client(handler).create_order(pickup_order, idempotency_key="k")

    assert isinstance(result, Failure)
    err = result.failure()
    assert isinstance(err, OrderCreationFailed)
    assert str(err) == "Invalid location"


def test_create_order_generic_message_without_detail(pickup_order):
    result = _client(lambda r: httpx.Response(500, text="oops")).create_order(
        pickup_order, idempotency_key="k"
    )
    assert str(result.failure()) == "Square createOrder failed"


def test_timeout_is_provider_unavailable(pickup_order):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = _client(handler).create_order(pickup_order, idempotency_key="k")

    err = result.failure()
    assert isinstance(err, ProviderUnavailable)
    assert err.operation == "create_order"


def test_connect_error_is_provider_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    req = PaymentRequest(OrderId("ORD-1"), 646, "cnon:ok", "k-2")
    err = _client(handler).capture(req).failure()

    assert isinstance(err, ProviderUnavailable)
    assert err.operation == "create_payment"


def test_capture_payment():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"payment": {"id": "PAY-1", "status": "COMPLETED"}})

    req = PaymentRequest(OrderId("ORD-1"), 646, "cnon:ok", "k-2")
    result = _client(handler).capture(req)

    assert result.unwrap() == PaymentId("PAY-1")
    assert seen == [
        {
            "idempotency_key": "k-2",
            "source_id": "cnon:ok",
            "location_id": "LOC-1",
            "amount_money": {"amount": 646, "currency": "USD"},
            "order_id": "ORD-1",
        }
    ]


def test_capture_failure_carries_detail_and_order():
    def handler(request):
        return httpx.Response(402, json={"errors": [{"detail": "Card declined."}]})

    req = PaymentRequest(OrderId("ORD-1"), 646, "cnon:bad", "k-2")
    err = _client(handler).capture(req).failure()

    assert isinstance(err, PaymentCaptureFailed)
    assert str(err) == "Card declined."
    assert err.order_id == "ORD-1"


def test_success_without_order_id_is_a_failure(pickup_order):
    result = _client(lambda r: httpx.Response(200, json={})).create_order(
        pickup_order, idempotency_key="k"
    )
    assert isinstance(result.failure(), OrderCreationFailed)


def test_capture_accepted_without_payment_id_is_flagged_for_reconciliation():
    req = PaymentRequest(OrderId("ORD-1"), 646, "cnon:ok", "k-2")

    with capture_logs() as logs:
        err = _client(lambda r: httpx.Response(200, json={})).capture(req).failure()

    assert isinstance(err, PaymentCaptureFailed)
    assert err.order_id == "ORD-1"
    unconfirmed = [e for e in logs if e["event"] == "square.unconfirmed_success"]
    assert unconfirmed == [
        {
            "event": "square.unconfirmed_success",
            "log_level": "error",
            "operation": "create_payment",
            "status": 200,
            "order_id": "ORD-1",
            "amount_cents": 646,
        }
    ]


def test_close_closes_the_http_client():
    http = httpx.Client(base_url=BASE, transport=httpx.MockTransport(lambda r: None))
    gateway = SquareCommerceClient(CONFIG, client=http)

    gateway.close()

    assert http.is_closed
