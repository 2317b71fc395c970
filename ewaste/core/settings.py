from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven configuration for the lifecycle engine."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")
    TZ: str = "Asia/Kolkata"

    DB_URL: str = Field(
        default="sqlite:///data/ewaste.db",
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
    )

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Monday=0 ... Sunday=6; collections run on Fridays.
    COLLECTION_WEEKDAY: int = Field(default=4, ge=0, le=6)

    MARKET_RATES: dict[str, float] = Field(default_factory=dict)
    REFURBISH_MULTIPLIER: float = Field(default=2.5, ge=0)
    MIN_BASE_RATE: float = Field(default=5.0, ge=0)
    CURRENCY_SYMBOL: str = "₹"

    RESOURCE_ID_PREFIX: str = "RES"
    RESOURCE_ID_MAX_ATTEMPTS: int = Field(default=5, ge=1)

    STRICT_TRANSITIONS: bool = True
    OPTIMISTIC_LOCKING: bool = True
    TRANSITION_MAX_RETRIES: int = Field(default=3, ge=1)

    SYSTEM_ACTOR: str = "System AI"
    MARKETPLACE_ACTOR: str = "Marketplace Engine"

    @field_validator("MARKET_RATES", mode="before")
    @classmethod
    def parse_market_rates(cls, value: Any) -> dict[str, float]:
        if value in (None, "", {}):
            return {}
        if isinstance(value, str):
            value = json.loads(value)
        if isinstance(value, dict):
            return value
        raise TypeError("MARKET_RATES must be a JSON object or a mapping")

    @field_validator("MARKET_RATES")
    @classmethod
    def reject_negative_rates(cls, value: dict[str, float]) -> dict[str, float]:
        for name, amount in value.items():
            if amount < 0:
                raise ValueError(f"market rate for {name} must be non-negative")
        return value

    @field_validator("RESOURCE_ID_PREFIX")
    @classmethod
    def normalize_prefix(cls, value: str) -> str:
        prefix = value.strip().upper()
        if not prefix or not prefix.isalnum():
            raise ValueError("RESOURCE_ID_PREFIX must be a non-empty alphanumeric string")
        return prefix

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if settings.DB_URL.startswith("sqlite:///") and not settings.DB_URL.startswith("sqlite:///:memory:"):
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
