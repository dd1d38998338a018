from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from checkout_api.core.domain.model.price_book import PriceAuthority
from checkout_api.core.ports.inbound.selftest import (
    PublicConfigView,
    SelfTestReport,
    SelfTestUseCase,
)


@dataclass(frozen=True)
class SelfTestDeps:
    prices: PriceAuthority
    env: str
    application_id: str | None
    location_id: str | None
    access_token: str | None
    required_price_keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SelfTestService(SelfTestUseCase):
    deps: SelfTestDeps

    def public_config(self) -> PublicConfigView:
        return PublicConfigView(
            application_id=self.deps.application_id,
            location_id=self.deps.location_id,
            env=self.deps.env,
        )

    def selftest(self) -> SelfTestReport:
        problems: list[str] = []
        if not self.deps.application_id:
            problems.append("Missing SQUARE_APPLICATION_ID")
        if not self.deps.location_id:
            problems.append("Missing SQUARE_LOCATION_ID")
        if not self.deps.access_token:
            problems.append("Missing SQUARE_ACCESS_TOKEN")

        health = self.deps.prices.health_check(self.deps.required_price_keys)
        return SelfTestReport(
            ok=not problems and health.ok,
            problems=tuple(problems),
            missing_price_keys=health.missing_keys,
            env=self.deps.env,
        )
