"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Completion provider
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-3.5-turbo"
    openai_temperature: float = 0.7
    openai_timeout_seconds: float = 30.0

    # Sessions
    session_ttl_hours: int = 24
    session_sweep_interval_seconds: int = 3600

    # Context snapshots
    context_expiry_hours: int = 24
    context_storage_key: str = "weather-app-context"

    # Cache / durable keyed storage
    redis_url: str | None = None

    # External APIs (Open-Meteo, keyless)
    weather_forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    weather_archive_url: str = "https://archive-api.open-meteo.com/v1/archive"
    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    http_timeout_seconds: float = 4.0

    # Localization
    default_language: str = "en"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
