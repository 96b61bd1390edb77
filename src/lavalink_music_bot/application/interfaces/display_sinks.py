"""Port interfaces for the surfaces that mirror now-playing state."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from lavalink_music_bot.domain.shared.types import ChannelIdField, DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.entities import DisplayProjection


class PanelHealth(Enum):
    """Result of probing a stored central panel."""

    OK = "ok"
    MISSING_MESSAGE = "missing_message"
    GONE = "gone"
    NO_PERMISSION = "no_permission"


class CentralPanelSink(ABC):
    """The persistent, edit-in-place chat embed of a guild's central channel."""

    @abstractmethod
    async def render(self, guild_id: DiscordSnowflake, projection: DisplayProjection | None) -> None:
        """Edit the guild's panel: active controls for a projection, idle panel for None.

        Raises:
            SinkRenderFailure: If the panel could not be edited.
        """
        ...

    @abstractmethod
    async def publish(self, channel_id: ChannelIdField) -> int:
        """Send a fresh idle panel to ``channel_id`` and return its message id."""
        ...

    @abstractmethod
    async def remove(self, channel_id: ChannelIdField, message_id: int) -> None:
        """Delete a panel message best-effort."""
        ...

    @abstractmethod
    async def check(
        self, guild_id: DiscordSnowflake, channel_id: ChannelIdField, message_id: int | None
    ) -> PanelHealth:
        ...


class VoiceMetadataSink(ABC):
    """Best-effort annotation of the joined voice channel with the track title."""

    @abstractmethod
    async def annotate(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField, title: str) -> bool:
        """Returns True when a strategy succeeded.

        Raises:
            SinkRenderFailure: If every strategy failed.
        """
        ...

    @abstractmethod
    async def restore(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> bool:
        """Put back whatever was recorded before the first annotation.

        Returns False when nothing was recorded for ``channel_id``.
        """
        ...


class PresenceSink(ABC):
    """The bot's global activity text."""

    @abstractmethod
    async def show(self, title: str) -> None:
        ...

    @abstractmethod
    async def reset(self) -> None:
        ...
