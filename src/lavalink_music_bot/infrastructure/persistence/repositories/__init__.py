"""SQLite repository implementations."""

from lavalink_music_bot.infrastructure.persistence.repositories.guild_config_repository import (
    SQLiteGuildConfigRepository,
)

__all__ = [
    "SQLiteGuildConfigRepository",
]
