"""Configuration objects for the booking calculator."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PricingRates(BaseModel):
    """Fee percentages, conversion rates and thresholds used for pricing."""

    model_config = ConfigDict(frozen=True)

    service_fee_rate: Decimal = Field(Decimal("0.15"), ge=0)
    insurance_rate: Decimal = Field(Decimal("0.10"), ge=0)
    platform_commission_rate: Decimal = Field(Decimal("0.20"), ge=0, le=1)
    points_to_currency_rate: Decimal = Field(Decimal("0.10"), gt=0)
    max_points_fraction: Decimal = Field(Decimal("0.50"), ge=0, le=1)
    delivery_flat_fee: Decimal = Field(Decimal("20.00"), ge=0)
    weekly_rate_threshold_days: int = Field(7, gt=0)
    monthly_rate_threshold_days: int = Field(28, gt=0)
    min_booking_days: int = Field(1, ge=1)
    max_booking_days: int = Field(365, ge=1)
    max_advance_booking_days: int = Field(365, ge=0)
    currency: str = "AUD"


DEFAULT_RATES = PricingRates()


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    availability_base_url: HttpUrl = Field("http://localhost:3000/api")
    api_key: Optional[SecretStr] = None
    timeout_seconds: float = Field(15.0, gt=0)
    cache_ttl_seconds: float = Field(300.0, ge=0)
    fetch_attempts: int = Field(1, ge=1)
    window_days: int = Field(365, ge=1)
    environment: str = "production"
    log_level: str = "INFO"
    rates: PricingRates = Field(default_factory=PricingRates)

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_CALC_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, value: str) -> str:
        """Accept lower-case level names; reject names logging does not know."""
        level = str(value).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    def availability_url(self, listing_id: str) -> str:
        """Construct the availability endpoint for a listing."""
        return f"{str(self.availability_base_url).rstrip('/')}/listings/{listing_id}/availability"

    @property
    def request_headers(self) -> dict[str, str]:
        """Headers attached to every availability request."""
        headers = {"Accept": "application/json"}
        if self.api_key is not None:
            token = self.api_key.get_secret_value()
            headers["Authorization"] = f"Bearer {token}"
            headers["apikey"] = token
        return headers
