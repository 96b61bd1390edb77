"""Query for retrieving the current queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from lavalink_music_bot.domain.music.entities import Track
from lavalink_music_bot.domain.music.value_objects import LoopMode
from lavalink_music_bot.domain.shared.types import DiscordSnowflake, NonNegativeInt

if TYPE_CHECKING:
    from ..services.playback_engine import PlaybackEngineAdapter


class GetQueueQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake


class QueueInfo(BaseModel):

    guild_id: DiscordSnowflake
    tracks: list[Track] = Field(default_factory=list)
    current_track: Track | None = None
    loop_mode: LoopMode = LoopMode.OFF
    volume: NonNegativeInt = 0
    paused: bool = False

    @property
    def length(self) -> int:
        return len(self.tracks)

    @property
    def is_empty(self) -> bool:
        return len(self.tracks) == 0

    @property
    def total_duration_ms(self) -> int:
        return sum(t.duration_ms for t in self.tracks if not t.is_stream)


class GetQueueHandler:

    def __init__(self, *, engine: PlaybackEngineAdapter) -> None:
        self._engine = engine

    def handle(self, query: GetQueueQuery) -> QueueInfo:
        session = self._engine.get_session(query.guild_id)

        if session is None:
            return QueueInfo(guild_id=query.guild_id)

        return QueueInfo(
            guild_id=query.guild_id,
            tracks=list(session.queue),
            current_track=session.current,
            loop_mode=session.transport.loop_mode,
            volume=session.transport.volume,
            paused=session.transport.paused,
        )
