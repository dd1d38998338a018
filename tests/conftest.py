from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient

from checkout_api.adapters.inbound.web.fastapi_app import create_app
from checkout_api.adapters.outbound.in_memory_commerce import InMemoryCommerce
from checkout_api.core.domain.model.checkout import ContactInfo, PricingConfig
from checkout_api.core.domain.model.price_book import PriceAuthority
from checkout_api.core.domain.service.checkout_service import (
    CheckoutDeps,
    CheckoutService,
)
from checkout_api.core.domain.service.selftest_service import (
    SelfTestDeps,
    SelfTestService,
)


@pytest.fixture()
def prices():
    return PriceAuthority()


@pytest.fixture()
def pricing():
    return PricingConfig(tax_rate_percent=Decimal("8"), delivery_fee_cents=300)


@pytest.fixture()
def commerce():
    return InMemoryCommerce(decline_tokens={"tok_declined"})


@pytest.fixture()
def contact():
    return ContactInfo(name="Sam", phone="5551234567", email="sam@example.com")


@pytest.fixture()
def key_factory():
    seq = count(1)
    return lambda: f"key-{next(seq)}"


@pytest.fixture()
def service(prices, pricing, commerce, key_factory):
    return CheckoutService(
        CheckoutDeps(
            prices=prices,
            orders=commerce,
            payments=commerce,
            pricing=pricing,
            new_key=key_factory,
        )
    )


@pytest.fixture()
def selftest_service(prices):
    return SelfTestService(
        SelfTestDeps(
            prices=prices,
            env="sandbox",
            application_id="sandbox-app-1",
            location_id="LOC-1",
            access_token="secret",
            required_price_keys=("Cheese Pizza (Small)", "Pizza Topping (Small)"),
        )
    )


@pytest.fixture()
def client(service, selftest_service):
    return TestClient(create_app(service, selftest_service))
