"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Cache policy
    cache_ttl_minutes: float = 5
    max_cached_reports: int = 2000
    refresh_interval_minutes: float = 5
    serve_stale_on_error: bool = False

    # Which column of the reports table feeds Report.urgency_score
    urgency_score_column: Literal["urgency_score", "priority_level"] = "urgency_score"

    # Record store selection
    record_store: Literal["sql", "http", "memory"] = "sql"

    # Database
    database_url: str = "postgresql+asyncpg://localhost:5432/municipality"

    # Report-listing service API
    reports_api_base_url: str = "http://localhost:8080/api"
    reports_api_token: str | None = None
    http_max_retries: int = 3
    http_timeout_seconds: float = 30.0

    # Environment
    log_level: str = "INFO"
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
