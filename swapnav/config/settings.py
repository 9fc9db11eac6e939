"""Runtime settings via Pydantic BaseSettings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from swapnav.constants import (
    DEFAULT_ASSET_LOAD_TIMEOUT_S,
    DEFAULT_BASE_URL,
    DEFAULT_FETCH_RETRIES,
    DEFAULT_FETCH_TIMEOUT_S,
    DEFAULT_PARTIALS_PATH,
)
from swapnav.exceptions import ConfigError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SWAPNAV_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Partial fetching
    base_url: str = DEFAULT_BASE_URL
    partials_path: str = DEFAULT_PARTIALS_PATH
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_S
    fetch_retries: int = DEFAULT_FETCH_RETRIES

    # Assets (None waits forever)
    asset_load_timeout: float | None = DEFAULT_ASSET_LOAD_TIMEOUT_S

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Optional YAML route table
    routes_file: str | None = None


def validate_settings(settings: Settings) -> Settings:
    """Reject settings the navigation core cannot run with."""
    if settings.asset_load_timeout is not None and settings.asset_load_timeout <= 0:
        msg = "SWAPNAV_ASSET_LOAD_TIMEOUT must be positive (unset it to wait forever)"
        raise ConfigError(msg)
    if settings.fetch_timeout <= 0:
        msg = "SWAPNAV_FETCH_TIMEOUT must be positive"
        raise ConfigError(msg)
    if settings.fetch_retries < 1:
        msg = "SWAPNAV_FETCH_RETRIES must be at least 1"
        raise ConfigError(msg)
    return settings


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return validate_settings(Settings())
