"""Application configuration using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HKB_",
        extra="ignore",
    )

    environment: Literal["local", "test", "staging", "production"] = Field(
        default="local",
        validation_alias=AliasChoices("HKB_ENVIRONMENT", "env"),
    )
    service_name: str = Field(default="homekrypto-booking")
    database_url: str = Field(default="sqlite:///./data/homekrypto.db")
    sql_echo: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)
    cors_origins: List[str] | str = Field(default_factory=list)
    admin_token: str | None = Field(default=None)
    seed_demo_data: bool = Field(default=True)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    minimum_nights: int = Field(default=7, ge=1)
    maximum_nights: int = Field(default=365, ge=1)
    cleaning_fee: float = Field(default=90.0, ge=0)

    hkt_contract_address: str = Field(default="0x0de50324B6960B15A5ceD3D076aE314ac174Da2e")
    price_feed_enabled: bool = Field(default=True)
    price_feed_interval_seconds: int = Field(default=300, ge=1)
    price_max_age_seconds: int = Field(default=900, ge=1)
    price_provider_timeout: float = Field(default=10.0)
    coingecko_url: str = Field(default="https://api.coingecko.com/api/v3")
    dexscreener_url: str = Field(default="https://api.dexscreener.com/latest/dex")
    etherscan_url: str = Field(default="https://api.etherscan.io/api")
    etherscan_api_key: str | None = Field(default=None)

    payment_retry_attempts: int = Field(default=3, ge=0)
    payment_retry_base_delay: float = Field(default=2.0, ge=0)
    payment_timeout_seconds: float = Field(default=30.0)

    email_sender: str | None = Field(default=None)
    ses_region: str | None = Field(default=None)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, value: str | List[str] | None) -> List[str]:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator(
        "admin_token",
        "etherscan_api_key",
        "email_sender",
        "ses_region",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value: str | None) -> str | None:
        if value == "":
            return None
        return value


@lru_cache
def get_settings() -> AppSettings:
    """Return cached application settings instance."""

    return AppSettings()
