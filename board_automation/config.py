"""Application configuration settings."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./board_automation.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level for the process",
    )
    automation_scheduler_enabled: bool = Field(
        default=True,
        description="Whether the time-based scheduler is started with the application",
    )
    automation_scan_interval_seconds: float = Field(
        default=60.0,
        description="Seconds between two scans of the time-based rules",
        gt=0,
    )
    automation_scan_card_limit: int = Field(
        default=500,
        description="Maximum number of cards a single time-based rule may act on per scan",
        gt=0,
    )
    automation_dispatch_workers: int = Field(
        default=2,
        description="Worker threads used to run event-triggered rules off the request path",
        gt=0,
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure the root logger using the level from ``settings``."""

    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


__all__ = ["Settings", "configure_logging", "get_settings", "reset_settings_cache"]
