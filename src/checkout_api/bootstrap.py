from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import FastAPI

from checkout_api.adapters.inbound.web.fastapi_app import create_app
from checkout_api.adapters.outbound.in_memory_commerce import InMemoryCommerce
from checkout_api.adapters.outbound.price_file import PriceFileWatcher
from checkout_api.adapters.outbound.square_commerce import (
    SquareCommerceClient,
    SquareConfig,
    describe,
)
from checkout_api.config import Settings
from checkout_api.core.domain.model.price_book import PriceAuthority
from checkout_api.core.domain.service.checkout_service import (
    CheckoutDeps,
    CheckoutService,
)
from checkout_api.core.domain.service.selftest_service import (
    SelfTestDeps,
    SelfTestService,
)
from checkout_api.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UseCases:
    checkout: CheckoutService
    selftest: SelfTestService
    prices: PriceAuthority
    price_watcher: PriceFileWatcher
    commerce: SquareCommerceClient | InMemoryCommerce


def _build_commerce(settings: Settings) -> SquareCommerceClient | InMemoryCommerce:
    if settings.commerce_backend == "memory":
        logger.info("commerce.backend", backend="memory")
        return InMemoryCommerce(decline_tokens={"tok_declined"})

    config = SquareConfig(
        base_url=settings.base_url,
        access_token=settings.square_access_token,
        location_id=settings.square_location_id,
        square_version=settings.square_version,
        currency=settings.currency,
        timeout_seconds=settings.remote_timeout_seconds,
    )
    logger.info("commerce.backend", backend="square", **describe(config))
    return SquareCommerceClient(config)


def build_usecases(settings: Settings | None = None) -> UseCases:
    settings = settings or Settings()
    prices = PriceAuthority()
    watcher = PriceFileWatcher(
        path=settings.prices_path,
        authority=prices,
        interval_seconds=settings.prices_poll_seconds,
    )
    commerce = _build_commerce(settings)

    checkout = CheckoutService(
        CheckoutDeps(
            prices=prices,
            orders=commerce,
            payments=commerce,
            pricing=settings.pricing(),
        )
    )
    selftest = SelfTestService(
        SelfTestDeps(
            prices=prices,
            env=settings.square_env,
            application_id=settings.square_application_id,
            location_id=settings.square_location_id,
            access_token=settings.square_access_token,
            required_price_keys=tuple(settings.required_price_keys),
        )
    )
    return UseCases(
        checkout=checkout,
        selftest=selftest,
        prices=prices,
        price_watcher=watcher,
        commerce=commerce,
    )


def build_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level, as_json=settings.log_json)
    usecases = build_usecases(settings)
    closers = []
    if isinstance(usecases.commerce, SquareCommerceClient):
        closers.append(usecases.commerce.close)
    return create_app(
        usecases.checkout,
        usecases.selftest,
        price_watcher=usecases.price_watcher,
        on_shutdown=closers,
        cors_allow_origins=settings.cors_allow_origins,
    )


def create_asgi_app() -> FastAPI:
    return build_app()
