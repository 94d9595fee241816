"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "DataBill"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Billing
    billing_lookback_days: int = 30
    megabytes_per_gigabyte: int = 1000

    @field_validator("billing_lookback_days")
    @classmethod
    def validate_lookback_days(cls, v: int) -> int:
        """Validate the lookback window covers at least one day."""
        if v < 1:
            raise ValueError("BILLING_LOOKBACK_DAYS must be at least 1.")
        return v

    @field_validator("megabytes_per_gigabyte")
    @classmethod
    def validate_megabytes_per_gigabyte(cls, v: int, info) -> int:
        """Validate the GB to MB conversion factor."""
        if v < 1:
            raise ValueError("MEGABYTES_PER_GIGABYTE must be positive.")
        app_env = info.data.get("app_env", "development")
        if app_env == "production" and v not in (1000, 1024):
            raise ValueError(
                "MEGABYTES_PER_GIGABYTE must be 1000 (decimal) or 1024 (binary) "
                "in production."
            )
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
