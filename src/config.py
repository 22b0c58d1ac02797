from __future__ import annotations

from functools import cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEMO_API_KEY = "demo"


class AppSettings(BaseSettings):
    market_data_provider: str = "yahoo"
    alpha_vantage_api_key: str = DEMO_API_KEY
    price_freshness_minutes: int = 60
    price_request_timeout_seconds: float = 10.0
    database_url: str = "sqlite:///data/market_prices.db"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("alpha_vantage_api_key", mode="before")
    @classmethod
    def _default_blank_api_key(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEMO_API_KEY
        return value

    @field_validator("price_freshness_minutes", "price_request_timeout_seconds")
    @classmethod
    def _require_positive(cls, value: float) -> float:
        if value <= 0:
            msg = "must be greater than 0"
            raise ValueError(msg)
        return value


@cache
def config() -> AppSettings:
    return AppSettings()
