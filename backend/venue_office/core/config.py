"""Application configuration via pydantic settings."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Venue Back Office"

    database_url: str = Field(..., alias="DATABASE_URL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    whole_centre_daily_rate: Decimal = Field(
        Decimal("1500"), alias="WHOLE_CENTRE_DAILY_RATE"
    )
    byo_linen_discount: Decimal = Field(Decimal("25"), alias="BYO_LINEN_DISCOUNT")
    percolated_coffee_price: Decimal = Field(
        Decimal("3"), alias="PERCOLATED_COFFEE_PRICE"
    )
    currency_symbol: str = Field("$", alias="CURRENCY_SYMBOL")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
