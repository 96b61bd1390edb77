"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.constants import DatabaseURLSchemes, LimitConstants, TimeConstants
from ..domain.shared.messages import ErrorMessages
from ..domain.shared.validators import validate_discord_snowflake


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/bot.db",
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
        if v != DatabaseURLSchemes.MEMORY and not v.startswith(DatabaseURLSchemes.SQLITE):
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=LimitConstants.MIN_COMMAND_PREFIX_LENGTH,
        max_length=LimitConstants.MAX_COMMAND_PREFIX_LENGTH,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    owner_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("owner_ids", "owners")
    )
    test_guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("test_guild_ids", "test_guilds")
    )
    sync_on_startup: bool = False

    @field_validator("owner_ids", "test_guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: Any) -> tuple[int, ...]:
        """Validate Discord snowflake IDs; accepts a list, a tuple or a comma-separated string."""
        if isinstance(v, str):
            v = [part for part in v.split(",") if part.strip()]
        ids = tuple(int(snowflake) for snowflake in v)
        for snowflake in ids:
            validate_discord_snowflake(snowflake)
        return ids


class LavalinkSettings(BaseModel):
    """Lavalink node configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    uri: str = Field(default="http://localhost:2333", validation_alias=AliasChoices("uri", "url", "host"))
    password: SecretStr = Field(default=SecretStr("youshallnotpass"))
    identifier: str = Field(default="main", min_length=1)
    retries: int | None = Field(default=None, ge=0)
    search_source: str = Field(default="ytsearch", min_length=1)
    resolve_timeout_s: float = Field(
        default=TimeConstants.RESOLVE_TIMEOUT,
        ge=1.0,
        le=60.0,
        validation_alias=AliasChoices("resolve_timeout_s", "resolve_timeout"),
    )
    connect_timeout: float = Field(default=TimeConstants.VOICE_CONNECT_TIMEOUT, gt=0.0, le=60.0)
    track_cache_size: int = Field(default=500, ge=10, le=10000)

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, v: str) -> str:
        if not v.startswith(("http://", "https://", "ws://", "wss://")):
            raise ValueError(ErrorMessages.INVALID_LAVALINK_URI)
        return v.rstrip("/")


class PlaybackSettings(BaseModel):
    """Playback defaults."""

    model_config = SettingsConfigDict(frozen=True)

    default_volume: int = Field(default=LimitConstants.DEFAULT_VOLUME, ge=0, le=100)
    volume_step: int = Field(default=LimitConstants.VOLUME_STEP, ge=1, le=100)
    button_volume_floor: int = Field(default=LimitConstants.BUTTON_VOLUME_FLOOR, ge=0, le=100)
    takeover_delay_s: float = Field(default=TimeConstants.TAKEOVER_SETTLE_DELAY, ge=0.0, le=10.0)


class CentralSettings(BaseModel):
    """Central channel message path."""

    model_config = SettingsConfigDict(frozen=True)

    spam_threshold: int = Field(default=3, ge=1, le=50)
    spam_window_s: float = Field(default=TimeConstants.SPAM_WINDOW, gt=0.0, le=300.0)
    sweep_interval_minutes: int = Field(default=TimeConstants.SPAM_SWEEP_INTERVAL_MINUTES, ge=1)
    feedback_delete_after_s: float = Field(default=TimeConstants.CENTRAL_FEEDBACK_DELETE_AFTER, ge=0.0)
    usage_delete_after_s: float = Field(default=TimeConstants.CENTRAL_USAGE_DELETE_AFTER, ge=0.0)
    max_query_length: int = Field(default=LimitConstants.MAX_QUERY_LENGTH, ge=10, le=2000)


class PresenceSettings(BaseModel):
    model_config = SettingsConfigDict(frozen=True)

    refresh_interval_s: float = Field(default=TimeConstants.PRESENCE_REFRESH_INTERVAL, ge=5.0)


class LinkSettings(BaseModel):
    model_config = SettingsConfigDict(frozen=True)

    support_server_url: str = "https://discord.gg/xQF9f9yUEM"
    website_url: str = "https://glaceyt.com"


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, LAVALINK__URI, CENTRAL__SPAM_THRESHOLD, ... (nested, ``__`` delimiter)
    - DISCORD__OWNER_IDS (comma-separated integers or a JSON array)
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
    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    lavalink: LavalinkSettings = Field(default_factory=LavalinkSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    central: CentralSettings = Field(default_factory=CentralSettings)
    presence: PresenceSettings = Field(default_factory=PresenceSettings)
    links: LinkSettings = Field(default_factory=LinkSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=sorted(valid_levels)))
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
