"""Port interface for the external playback engine node."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from lavalink_music_bot.domain.music.entities import Track
from lavalink_music_bot.domain.shared.types import ChannelIdField, DiscordSnowflake


class LoadType(StrEnum):
    """Shape of a resolver answer."""

    TRACK = "track"
    PLAYLIST = "playlist"
    SEARCH = "search"
    EMPTY = "empty"


class ResolveResult(BaseModel):
    """Tracks produced by one resolver call."""

    model_config = ConfigDict(frozen=True)

    load_type: LoadType
    tracks: tuple[Track, ...] = ()
    playlist_name: str | None = None

    @property
    def is_playlist(self) -> bool:
        return self.load_type is LoadType.PLAYLIST


class AudioNode(ABC):
    """Interface for a Lavalink-compatible node and its per-guild players.

    Methods that need the node raise ``EngineUnavailable`` when it cannot be
    reached; ``resolve`` raises ``ResolverEmpty`` when nothing matched.
    """

    @abstractmethod
    async def start(self) -> None:
        """Open the node connection."""
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Whether at least one node is connected."""
        ...

    @abstractmethod
    async def connect(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> None:
        """Join a voice channel (self-deafened) and create the guild's player."""
        ...

    @abstractmethod
    async def move_to(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> None:
        """Move the existing player to another voice channel."""
        ...

    @abstractmethod
    async def disconnect(self, guild_id: DiscordSnowflake) -> None:
        """Destroy the guild's player and leave voice. Never raises if already gone."""
        ...

    @abstractmethod
    def is_connected(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def resolve(self, query: str) -> ResolveResult:
        """Resolve a free-text search or a direct URL."""
        ...

    @abstractmethod
    async def play(self, guild_id: DiscordSnowflake, track: Track, *, volume: int) -> None:
        ...

    @abstractmethod
    async def pause(self, guild_id: DiscordSnowflake, paused: bool) -> None:
        ...

    @abstractmethod
    async def stop(self, guild_id: DiscordSnowflake) -> None:
        """Stop the current track without advancing anything."""
        ...

    @abstractmethod
    async def set_volume(self, guild_id: DiscordSnowflake, volume: int) -> None:
        ...

    @abstractmethod
    async def seek(self, guild_id: DiscordSnowflake, position_ms: int) -> None:
        ...

    @abstractmethod
    def position(self, guild_id: DiscordSnowflake) -> int:
        """Current playback position in milliseconds (0 when unknown)."""
        ...

    @abstractmethod
    async def recommend(self, track: Track) -> Track | None:
        """Pick a related track to continue with when the queue runs dry."""
        ...
