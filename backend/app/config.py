"""
Application configuration using Pydantic settings.
"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Ledgerwise"
    log_level: str = "INFO"
    default_currency: str = "USD"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Auto-realize defaults (copied into the persisted app_settings row on first use)
    auto_realize_default_enabled: bool = False
    auto_realize_default_lookback_days: int = 30

    # Reconciliation matching defaults
    match_date_tolerance_days: int = 7
    match_amount_tolerance_percent: Decimal = Decimal("0.10")
    match_amount_tolerance_absolute: Decimal = Decimal("10.00")
    match_description_similarity_threshold: Decimal = Decimal("0.6")
    auto_match_threshold: Decimal = Decimal("0.85")

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
