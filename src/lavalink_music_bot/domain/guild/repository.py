"""
Guild Configuration Repository Interface

Abstract base class defining the contract for per-guild configuration persistence.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from lavalink_music_bot.domain.guild.entities import GuildConfig


class GuildConfigRepository(ABC):
    """Abstract key-value-by-guild store for GuildConfig documents.

    Writes are partial: callers send only the fields they change and the store
    merges them into the existing document. Concurrent writers to unrelated
    fields therefore never clobber each other.
    """

    @abstractmethod
    async def find_by_guild_id(self, guild_id: int) -> GuildConfig | None:
        """Retrieve a guild's configuration.

        Args:
            guild_id: The Discord guild ID.

        Returns:
            The configuration if one was ever stored, None otherwise.

        Raises:
            ConfigStoreUnavailable: If the backing store fails.
        """
        ...

    @abstractmethod
    async def upsert(self, guild_id: int, fields: Mapping[str, Any]) -> GuildConfig:
        """Merge ``fields`` into the guild's document, creating it with defaults if absent.

        Args:
            guild_id: The Discord guild ID.
            fields: Dotted paths (``"centralSetup.enabled"``) or nested mappings
                (``{"settings": {"autoplay": True}}``).

        Returns:
            The configuration after the merge.

        Raises:
            ConfigStoreUnavailable: If the backing store fails.
        """
        ...

    @abstractmethod
    async def find_enabled_central(self) -> list[GuildConfig]:
        """Return every configuration whose central system is enabled."""
        ...

    @abstractmethod
    async def delete(self, guild_id: int) -> bool:
        """Delete a guild's configuration.

        Returns:
            True if a document was deleted.
        """
        ...
