"""Configuration management for console-service using pydantic-settings.

Settings come from environment variables only; there is no config file.

Environment variables use the format: CONSOLE_SERVICE_<SECTION>__<FIELD>
Example: CONSOLE_SERVICE_LOG__LEVEL=100000
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Single app-level constant
APP_NAME = "console-service"


class LogConfig(BaseModel):
    """Service log file configuration section."""

    level: int | None = None  # None = build-profile default
    directory: Path | None = None  # None = system temp directory
    rollover: bool = True
    echo_console: bool = True  # mirror the log on stderr in debug mode

    @field_validator('directory', mode='before')
    @classmethod
    def directory_must_not_be_empty(cls, v):
        """Treat an empty directory setting as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


# Module-level singleton cache
_settings_cache: "Settings | None" = None


class Settings(BaseSettings):
    """Root configuration model.

    Loads configuration from (in priority order):
    1. Environment variables with CONSOLE_SERVICE_ prefix
    2. Default values
    """

    log: LogConfig = Field(default_factory=LogConfig)

    model_config = SettingsConfigDict(
        env_prefix="CONSOLE_SERVICE_",
        env_nested_delimiter="__",
    )


def get_settings(*, _force_reload: bool = False) -> Settings:
    """Load settings from environment variables.

    Implements singleton pattern - returns cached settings unless _force_reload=True.

    Args:
        _force_reload: If True, bypasses cache and creates fresh Settings instance

    Returns:
        Settings instance
    """
    global _settings_cache

    if _settings_cache is not None and not _force_reload:
        return _settings_cache

    _settings_cache = Settings()
    return _settings_cache
