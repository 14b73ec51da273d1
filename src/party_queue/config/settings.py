"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/party_queue.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: int = Field(
        default=5000,
        ge=1000,
        le=30000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: int = Field(
        default=10,
        ge=1,
        le=60,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith("sqlite://") and v != ":memory:":
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class QueueDefaultsSettings(BaseModel):
    """Defaults used the first time the queue settings singleton is created."""

    model_config = SettingsConfigDict(frozen=True)

    max_queue_size: int = Field(default=50, ge=1, le=1000)
    allow_duplicates: bool = False
    duplicate_threshold_minutes: int | None = Field(default=30, ge=1)
    auto_skip_threshold: int | None = Field(default=3, ge=1)
    max_song_duration_ms: int | None = Field(default=600_000, ge=1)
    default_history_limit: int = Field(default=50, ge=1, le=500)


class ReconciliationSettings(BaseModel):
    """Playback-source polling configuration."""

    model_config = SettingsConfigDict(frozen=True)

    poll_interval_seconds: float = Field(default=30.0, gt=0.0)
    min_poll_interval_seconds: float = Field(default=5.0, ge=0.0)
    forward_to_source: bool = True


class SpotifySettings(BaseModel):
    """Spotify Web API configuration for the playback source."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    access_token: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("access_token", "token", "spotify_token"),
    )
    api_base_url: str = "https://api.spotify.com/v1"
    timeout_seconds: float = Field(default=10.0, gt=0.0, le=60.0)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DATABASE__URL, DATABASE__BUSY_TIMEOUT_MS
    - QUEUE__MAX_QUEUE_SIZE, QUEUE__ALLOW_DUPLICATES, ...
    - RECONCILIATION__POLL_INTERVAL_SECONDS, RECONCILIATION__MIN_POLL_INTERVAL_SECONDS
    - SPOTIFY__ACCESS_TOKEN, SPOTIFY__API_BASE_URL
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    queue: QueueDefaultsSettings = Field(default_factory=QueueDefaultsSettings)
    reconciliation: ReconciliationSettings = Field(default_factory=ReconciliationSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
