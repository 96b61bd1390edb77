"""Core domain entities for the music bounded context."""

from __future__ import annotations

import random

from pydantic import BaseModel, ConfigDict, Field

from lavalink_music_bot.domain.music.value_objects import LoopMode, SessionOrigin, TransportState
from lavalink_music_bot.domain.shared.datetime_utils import utcnow
from lavalink_music_bot.domain.shared.exceptions import QueuePositionError
from lavalink_music_bot.domain.shared.types import (
    DiscordSnowflake,
    DurationMs,
    NonEmptyStr,
    NonNegativeInt,
    TrackTitleStr,
    UtcDatetimeField,
    VolumePercent,
)


class Track(BaseModel):
    """Immutable value object representing a resolved, playable track."""

    model_config = ConfigDict(frozen=True)

    title: TrackTitleStr
    author: str = "Unknown"
    duration_ms: DurationMs = 0
    thumbnail_url: str | None = None
    source_uri: str | None = None
    identifier: NonEmptyStr
    # Opaque handle the playback engine needs to replay this track.
    encoded: str | None = None
    is_stream: bool = False
    is_seekable: bool = True

    # Request metadata (set when queued)
    requester_id: DiscordSnowflake | None = None
    requester_name: str | None = None

    @property
    def duration_formatted(self) -> str:
        """Format duration as M:SS or H:MM:SS."""
        if self.is_stream:
            return "LIVE"
        total_seconds = self.duration_ms // 1000
        hours, remainder = divmod(total_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    def with_requester(self, user_id: int, user_name: str | None) -> Track:
        """Return a copy of this track with requester metadata populated."""
        return self.model_copy(update={"requester_id": user_id, "requester_name": user_name})


class GuildVoiceSession(BaseModel):
    """Aggregate root for a guild's live voice connection, queue and transport.

    Queue positions passed to the mutating methods are 1-based.
    """

    guild_id: DiscordSnowflake
    voice_channel_id: DiscordSnowflake
    text_channel_id: DiscordSnowflake | None = None
    origin: SessionOrigin = SessionOrigin.COMMAND
    queue: list[Track] = Field(default_factory=list)
    current: Track | None = None
    transport: TransportState = Field(default_factory=TransportState)
    created_at: UtcDatetimeField = Field(default_factory=utcnow)
    destroyed: bool = False

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def is_idle(self) -> bool:
        """Nothing is rendering and nothing is held paused."""
        return self.current is None and not self.transport.paused

    @property
    def loop_mode(self) -> LoopMode:
        return self.transport.loop_mode

    def _check_position(self, position: int, length: int | None = None) -> None:
        size = len(self.queue) if length is None else length
        if not 1 <= position <= size:
            raise QueuePositionError(position, size)

    def append(self, tracks: list[Track]) -> int:
        """Append tracks and return the 1-based position of the first one."""
        first_position = len(self.queue) + 1
        self.queue.extend(tracks)
        return first_position

    def advance(self, *, honour_track_loop: bool) -> Track | None:
        """Move to the next track according to the loop mode.

        With a track loop the current track repeats, but only when the caller
        says the previous track ended naturally. With a queue loop the outgoing
        track goes to the back of the queue.
        """
        outgoing = self.current
        if outgoing is not None and self.loop_mode is LoopMode.TRACK and honour_track_loop:
            return outgoing

        if outgoing is not None and self.loop_mode is LoopMode.QUEUE:
            self.queue.append(outgoing)

        self.current = self.queue.pop(0) if self.queue else None
        self.transport.position_ms = 0
        if self.current is None:
            self.transport.playing = False
            self.transport.paused = False
        return self.current

    def move_track(self, source: int, target: int) -> Track:
        """Cut the track at ``source`` and insert it at ``target`` of the shortened queue."""
        self._check_position(source)
        self._check_position(target)
        track = self.queue.pop(source - 1)
        self.queue.insert(target - 1, track)
        return track

    def remove_track(self, position: int) -> Track:
        self._check_position(position)
        return self.queue.pop(position - 1)

    def drop_before(self, position: int) -> Track:
        """Discard the ``position - 1`` tracks ahead of ``position`` and return the new head."""
        self._check_position(position)
        del self.queue[: position - 1]
        return self.queue[0]

    def clear_queue(self) -> int:
        count = len(self.queue)
        self.queue.clear()
        return count

    def shuffle_queue(self) -> int:
        random.shuffle(self.queue)
        return len(self.queue)

    def relocate(self, voice_channel_id: int, text_channel_id: int | None = None) -> None:
        """Point this same session at another voice channel."""
        self.voice_channel_id = voice_channel_id
        if text_channel_id is not None:
            self.text_channel_id = text_channel_id

    def reset(self) -> None:
        """Drop queue and current track; used on teardown."""
        self.queue.clear()
        self.current = None
        self.transport.playing = False
        self.transport.paused = False
        self.transport.position_ms = 0


class DisplayProjection(BaseModel):
    """What the now-playing surfaces should show for one guild."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    voice_channel_id: DiscordSnowflake | None = None
    title: TrackTitleStr
    author: str = "Unknown"
    duration_ms: DurationMs = 0
    position_ms: DurationMs = 0
    paused: bool = False
    volume: VolumePercent = 50
    loop_mode: LoopMode = LoopMode.OFF
    queue_length: NonNegativeInt = 0
    requester_id: DiscordSnowflake | None = None
    requester_name: str | None = None
    thumbnail_url: str | None = None
    source_uri: str | None = None
    is_stream: bool = False

    @property
    def duration_formatted(self) -> str:
        if self.is_stream:
            return "LIVE"
        minutes, seconds = divmod(self.duration_ms // 1000, 60)
        return f"{minutes}:{seconds:02d}"

    @classmethod
    def from_session(cls, session: GuildVoiceSession) -> DisplayProjection | None:
        """Project a session, or None when nothing is current (idle)."""
        track = session.current
        if track is None or session.destroyed:
            return None
        return cls(
            guild_id=session.guild_id,
            voice_channel_id=session.voice_channel_id,
            title=track.title,
            author=track.author,
            duration_ms=track.duration_ms,
            position_ms=session.transport.position_ms,
            paused=session.transport.paused,
            volume=session.transport.volume,
            loop_mode=session.transport.loop_mode,
            queue_length=session.queue_length,
            requester_id=track.requester_id,
            requester_name=track.requester_name,
            thumbnail_url=track.thumbnail_url,
            source_uri=track.source_uri,
            is_stream=track.is_stream,
        )
