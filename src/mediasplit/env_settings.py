"""Environment-based settings using pydantic-settings.

Environment variables are loaded automatically; command-line flags override
them, and they override the built-in defaults.

Usage:
    from mediasplit.env_settings import get_env_settings

    env = get_env_settings()
    print(env.split.concurrency)  # From MEDIASPLIT_CONCURRENCY env var

Environment Variables:
    Transcoder:
        MEDIASPLIT_FFMPEG - ffmpeg binary path or command name (default: auto)
        MEDIASPLIT_FFMPEG_TIMEOUT - Per-section timeout in seconds (default: none)

    Splitting:
        MEDIASPLIT_CONCURRENCY - Max concurrent ffmpeg processes (default: 3)
        MEDIASPLIT_FORMAT - Output format/extension (default: "mp3")
        MEDIASPLIT_CACHE_DIR - Where remote sources are cached (default: output dir)

    Network:
        MEDIASPLIT_HTTP_TIMEOUT - HTTP timeout in seconds (default: 30)
        MEDIASPLIT_HTTP_RETRIES - Retries for transient HTTP errors (default: 3)

    Application:
        LOG_LEVEL - Logging level (default: "INFO")
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class TranscoderEnvSettings(BaseSettings):
    """ffmpeg settings from environment variables.

    Reads from MEDIASPLIT_FFMPEG, MEDIASPLIT_FFMPEG_TIMEOUT env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDIASPLIT_",
        extra="ignore",
    )

    ffmpeg: str | None = Field(default=None, description="ffmpeg binary path or command")
    ffmpeg_timeout: float | None = Field(
        default=None, gt=0, description="Per-section timeout in seconds"
    )

    @field_validator("ffmpeg", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat an empty variable as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SplitEnvSettings(BaseSettings):
    """Splitting defaults from environment variables.

    Reads from MEDIASPLIT_CONCURRENCY, MEDIASPLIT_FORMAT, MEDIASPLIT_CACHE_DIR.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDIASPLIT_",
        extra="ignore",
    )

    concurrency: int = Field(default=3, ge=1, description="Max concurrent jobs")
    format: str = Field(default="mp3", description="Output format/extension")
    cache_dir: Path | None = Field(default=None, description="Remote source cache")

    @field_validator("format")
    @classmethod
    def normalize_format(cls, v: str) -> str:
        cleaned = v.strip().lstrip(".").lower()
        if not cleaned:
            raise ValueError("MEDIASPLIT_FORMAT must not be empty")
        return cleaned


class NetworkEnvSettings(BaseSettings):
    """HTTP settings used for remote sources.

    Reads from MEDIASPLIT_HTTP_TIMEOUT, MEDIASPLIT_HTTP_RETRIES env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDIASPLIT_",
        extra="ignore",
    )

    http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout (seconds)")
    http_retries: int = Field(default=3, ge=0, description="Retries on transient errors")


class AppEnvSettings(BaseSettings):
    """Application-level settings from environment variables.

    Reads from LOG_LEVEL env var.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got: {v}")
        return upper


class EnvSettings(BaseSettings):
    """Combined environment settings.

    Use get_env_settings() to get a cached instance.

    Example:
        env = get_env_settings()
        print(env.transcoder.ffmpeg)
        print(env.network.http_timeout)
    """

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    transcoder: TranscoderEnvSettings = Field(default_factory=TranscoderEnvSettings)
    split: SplitEnvSettings = Field(default_factory=SplitEnvSettings)
    network: NetworkEnvSettings = Field(default_factory=NetworkEnvSettings)
    app: AppEnvSettings = Field(default_factory=AppEnvSettings)


@lru_cache(maxsize=1)
def get_env_settings() -> EnvSettings:
    """Get cached environment settings.

    The cache is populated on first call; see clear_env_settings_cache().
    """
    return EnvSettings()


def clear_env_settings_cache() -> None:
    """Clear the cached environment settings.

    Useful for testing to ensure fresh settings are loaded.
    """
    get_env_settings.cache_clear()


def load_env_settings_from_file(env_file: Path) -> EnvSettings:
    """Load environment settings from a specific .env file.

    Values from the file override variables already set in the environment.

    Args:
        env_file: Path to .env file to load.

    Returns:
        EnvSettings instance with configuration from the file.
    """
    from dotenv import load_dotenv

    if not load_dotenv(env_file, override=True):
        logger.warning("No settings found in %s", env_file)

    clear_env_settings_cache()
    return get_env_settings()
