import logging
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leave Engine"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://leave_engine:leave_engine@db:5432/leave_engine"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"

    # Entitlement rules
    carry_forward_cap: int = 10  # hard ceiling for annual carry-forward, independent of rule settings
    balance_retention_years: int = 3
    holiday_buffer_days: int = 5
    conflict_retry_attempts: int = 3
    enforce_window_validation: bool = True

    # Worker
    rollover_month: int = 1
    rollover_day: int = 1
    worker_interval_seconds: int = 86400  # longest single sleep between rollover checks


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging once per process (API or worker)."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    if settings.debug:
        logging.getLogger("leave_engine").setLevel(logging.DEBUG)
