"""Centralized constants for database schema, limits, and panel cosmetics.

This module provides reusable constants that reduce magic strings and improve maintainability.
"""

from __future__ import annotations


class DatabaseTables:
    """Database table names."""

    GUILD_CONFIGS = "guild_configs"


class SQLPragmas:
    """SQLite PRAGMA statements for database configuration.

    Applied to every new connection.
    """

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"


class DatabaseURLSchemes:
    """Valid database URL schemes for validation."""

    SQLITE = "sqlite://"
    SQLITE_PATH_PREFIX = "sqlite:///"

    # For in-memory testing
    MEMORY = ":memory:"
    MEMORY_SHARED_URI = "file:lavalink-music-bot?mode=memory&cache=shared"


class LimitConstants:
    """Numeric limits and constraints."""

    # Volume limits (percent)
    MIN_VOLUME = 0
    MAX_VOLUME = 100
    DEFAULT_VOLUME = 50
    BUTTON_VOLUME_FLOOR = 1
    VOLUME_STEP = 10

    # Song query filter
    MIN_QUERY_LENGTH = 2
    MAX_QUERY_LENGTH = 200

    # Queue listing
    QUEUE_PREVIEW_COUNT = 10
    QUEUE_TITLE_WIDTH = 40

    # Voice metadata
    MAX_CHANNEL_NAME_LENGTH = 100
    MAX_VOICE_STATUS_LENGTH = 500

    # Discord limits
    MAX_DISCORD_SNOWFLAKE = 2**64
    MIN_COMMAND_PREFIX_LENGTH = 1
    MAX_COMMAND_PREFIX_LENGTH = 5


class TimeConstants:
    """Time-related constants in seconds."""

    VOICE_CONNECT_TIMEOUT = 10.0
    RESOLVE_TIMEOUT = 12.0
    TAKEOVER_SETTLE_DELAY = 1.0
    CENTRAL_FEEDBACK_DELETE_AFTER = 4.0
    CENTRAL_USAGE_DELETE_AFTER = 10.0
    PRESENCE_REFRESH_INTERVAL = 30.0
    SPAM_WINDOW = 5.0
    SPAM_SWEEP_INTERVAL_MINUTES = 10


class PanelStyle:
    """Colours, emoji and artwork for the central panel."""

    COLOR_ACTIVE = 0x9966FF
    COLOR_PAUSED = 0xFFA500
    COLOR_IDLE = 0x9966FF

    ICON_URL = "https://cdn.discordapp.com/emojis/896724352949706762.gif"
    IDLE_IMAGE_URL = "https://i.ibb.co/DDSdKy31/ezgif-8aec7517f2146d.gif"
    ACTIVE_IMAGE_URL = "https://i.ibb.co/KzbPV8jd/aaa.gif"

    IDLE_TITLE = "Ultimate Music Control Center"
    FOOTER = "Ultimate Music Bot"

    STATUS_PLAYING = "▶️"
    STATUS_PAUSED = "⏸️"
    MUSIC_NOTE = "🎵"


class DiscordErrorCodes:
    """Discord JSON error codes that mean a central panel is gone for good."""

    MISSING_ACCESS = 50001
    UNKNOWN_CHANNEL = 10003
    MISSING_PERMISSIONS = 50013

    PANEL_GONE = frozenset({MISSING_ACCESS, UNKNOWN_CHANNEL, MISSING_PERMISSIONS})
