from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple


@dataclass(frozen=True)
class PublicConfigView:
    application_id: str | None
    location_id: str | None
    env: str


@dataclass(frozen=True)
class SelfTestReport:
    ok: bool
    problems: Tuple[str, ...]
    missing_price_keys: Tuple[str, ...]
    env: str


class SelfTestUseCase(Protocol):
    def public_config(self) -> PublicConfigView: ...

    def selftest(self) -> SelfTestReport: ...
