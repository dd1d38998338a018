from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from checkout_api.core.domain.model.checkout import PricingConfig

SQUARE_BASE_URLS = {
    "production": "https://connect.squareup.com",
    "sandbox": "https://connect.squareupsandbox.com",
}


class Settings(BaseSettings):
    """Process configuration, read from the environment and an optional ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # remote commerce service
    square_env: Literal["sandbox", "production"] = "sandbox"
    square_access_token: str | None = None
    square_location_id: str | None = None
    square_application_id: str | None = None
    square_version: str = "2024-06-20"
    commerce_backend: Literal["square", "memory"] = "square"
    remote_timeout_seconds: float = Field(default=10.0, gt=0)

    # pricing
    tax_rate_percent: Decimal = Field(default=Decimal("8.0"), ge=0)
    delivery_fee_cents: int = Field(default=0, ge=0)
    currency: str = "USD"
    prices_path: Path = Path("data/prices.json")
    prices_poll_seconds: float = Field(default=1.0, gt=0)
    required_price_keys: list[str] = ["Cheese Pizza (Small)", "Pizza Topping (Small)"]

    # http
    host: str = "0.0.0.0"
    port: int = 4000
    cors_allow_origins: list[str] = ["*"]

    # logging
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("square_env", mode="before")
    @classmethod
    def _lower_env(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    @property
    def base_url(self) -> str:
        return SQUARE_BASE_URLS[self.square_env]

    def pricing(self) -> PricingConfig:
        return PricingConfig(
            tax_rate_percent=self.tax_rate_percent,
            delivery_fee_cents=self.delivery_fee_cents,
            currency=self.currency,
        )
