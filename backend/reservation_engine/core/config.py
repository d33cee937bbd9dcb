"""Application configuration via pydantic settings."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Area Reservation Engine"
    api_v1_prefix: str = "/api/v1"
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(
        "sqlite+aiosqlite:///./reservations.db", alias="DATABASE_URL"
    )
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    base_price: Decimal = Field(Decimal("5.00"), alias="BASE_PRICE", gt=0)
    increment_price: Decimal = Field(Decimal("2.50"), alias="INCREMENT_PRICE", ge=0)
    max_advance_days: int = Field(30, alias="MAX_ADVANCE_DAYS", ge=0)
    max_reservation_minutes: int = Field(1440, alias="MAX_RESERVATION_MINUTES", gt=0)
    expiry_grace_minutes: int = Field(0, alias="EXPIRY_GRACE_MINUTES", ge=0)

    reaper_enabled: bool = Field(True, alias="REAPER_ENABLED")
    reaper_interval_seconds: float = Field(60.0, alias="REAPER_INTERVAL_SECONDS", gt=0)

    lock_timeout_seconds: float = Field(5.0, alias="LOCK_TIMEOUT_SECONDS", gt=0)
    storage_retry_attempts: int = Field(3, alias="STORAGE_RETRY_ATTEMPTS", ge=1)
    storage_retry_backoff_seconds: float = Field(
        0.05, alias="STORAGE_RETRY_BACKOFF_SECONDS", ge=0
    )

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        alias="CORS_ALLOW_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
