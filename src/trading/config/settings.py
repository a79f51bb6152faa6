"""Application settings and configuration."""

from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Stock Trading Backend"
    app_version: str = "0.1.0"

    database_url: str = "sqlite:///./trading.db"
    log_level: str = "INFO"

    # Vendor API (stub vendor is used when no base URL is configured)
    vendor_api_base_url: Optional[str] = None
    vendor_api_key: str = ""
    api_retry_attempts: int = 3
    api_retry_delay: int = 1000  # milliseconds between attempts
    vendor_timeout_seconds: float = 10.0
    listing_max_pages: int = 100

    # Price cache and purchase gate
    price_freshness_seconds: int = 300
    price_tolerance: Decimal = Decimal("0.02")
    serve_stale_prices_on_refresh_failure: bool = False

    # Reporting
    report_timezone: str = "US/Eastern"

    @property
    def api_retry_delay_seconds(self) -> float:
        return self.api_retry_delay / 1000


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
