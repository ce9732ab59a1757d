"""
Treewatch Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def load_env_file(directory: str | os.PathLike[str] | None = None) -> bool:
    """
    Load ``.env`` from ``directory`` (the working directory by default).

    Values already in the environment win. Nested settings classes only
    read ``os.environ``, so this runs once at import time.

    Returns:
        True if a file was found and loaded
    """
    env_file = Path(directory if directory is not None else Path.cwd()) / ".env"
    if not env_file.is_file():
        return False
    return load_dotenv(env_file)


load_env_file()


class WatcherSettings(BaseSettings):
    """File watcher configuration settings."""

    model_config = SettingsConfigDict(env_prefix="WATCHER_")

    debounce_delay_ms: int = Field(
        default=500,
        ge=1,
        le=60_000,
        description="Quiet period before a changed path is reported",
    )
    use_polling: bool = Field(
        default=False,
        description="Use the stat-polling observer instead of native OS notifications",
    )
    polling_interval_s: float = Field(default=1.0, gt=0.0, le=60.0)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: Literal["json", "console"] = Field(default="json")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept level names in any case."""
        return v.strip().upper()


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="treewatch")
    app_version: str = Field(default="0.1.0")

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings. Call
    ``get_settings.cache_clear()`` after changing the environment.
    """
    return Settings()
