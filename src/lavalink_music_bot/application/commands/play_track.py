"""Command and handler for playing a track from a query or URL."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from lavalink_music_bot.application.services.playback_models import EnqueueResult, EnqueueStatus
from lavalink_music_bot.domain.music.entities import Track
from lavalink_music_bot.domain.music.value_objects import SessionOrigin
from lavalink_music_bot.domain.policy.value_objects import DenialCode, PolicyAction, PolicyRequest
from lavalink_music_bot.domain.shared.constants import TimeConstants
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages, LogTemplates
from lavalink_music_bot.domain.shared.types import DiscordSnowflake, NonEmptyStr, NonNegativeInt

if TYPE_CHECKING:
    from ..services.playback_engine import PlaybackEngineAdapter
    from ..services.session_policy import SessionPolicyService

logger = logging.getLogger(__name__)


class PlayTrackStatus(Enum):
    """Status codes for play track results."""

    NOW_PLAYING = "now_playing"
    QUEUED = "queued"
    PLAYLIST_QUEUED = "playlist_queued"
    NOT_FOUND = "not_found"
    DENIED = "denied"


class PlayTrackCommand(BaseModel):
    """Request to resolve a query/URL, queue the result and start playback when idle."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    user_id: DiscordSnowflake
    user_name: str | None = None
    voice_channel_id: DiscordSnowflake | None = None
    text_channel_id: DiscordSnowflake | None = None
    query: NonEmptyStr
    role_ids: frozenset[int] = frozenset()

    from_central: bool = False
    bot_can_join: bool = True

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class PlayTrackResult(BaseModel):
    """Result of a play track command."""

    model_config = ConfigDict(frozen=True)

    status: PlayTrackStatus
    message: str
    track: Track | None = None
    track_count: NonNegativeInt = 0
    queue_position: NonNegativeInt = 0
    started_playing: bool = False
    denial_code: DenialCode | None = None

    @property
    def is_success(self) -> bool:
        return self.status in {
            PlayTrackStatus.NOW_PLAYING,
            PlayTrackStatus.QUEUED,
            PlayTrackStatus.PLAYLIST_QUEUED,
        }

    @classmethod
    def success(cls, enqueued: EnqueueResult) -> PlayTrackResult:
        track = enqueued.track
        assert track is not None
        if enqueued.status is EnqueueStatus.PLAYLIST:
            status = PlayTrackStatus.PLAYLIST_QUEUED
            message = DiscordUIMessages.PLAY_PLAYLIST_QUEUED.format(
                count=len(enqueued.tracks), playlist=enqueued.playlist_name
            )
        elif enqueued.started_playing:
            status = PlayTrackStatus.NOW_PLAYING
            message = DiscordUIMessages.PLAY_NOW_PLAYING.format(title=track.title)
        else:
            status = PlayTrackStatus.QUEUED
            message = DiscordUIMessages.PLAY_QUEUED.format(title=track.title, position=enqueued.position)

        return cls(
            status=status,
            message=message,
            track=track,
            track_count=len(enqueued.tracks),
            queue_position=enqueued.position,
            started_playing=enqueued.started_playing,
        )

    @classmethod
    def denied(cls, reason: str, code: DenialCode | None = None) -> PlayTrackResult:
        return cls(status=PlayTrackStatus.DENIED, message=reason, denial_code=code)

    @classmethod
    def error(cls, status: PlayTrackStatus, message: str) -> PlayTrackResult:
        return cls(status=status, message=message)


class PlayTrackHandler:
    """Checks the session policy, takes over or creates the session, then enqueues.

    Must run inside the guild's FIFO.
    """

    def __init__(
        self,
        *,
        policy: SessionPolicyService,
        engine: PlaybackEngineAdapter,
        takeover_delay: float = TimeConstants.TAKEOVER_SETTLE_DELAY,
    ) -> None:
        self._policy = policy
        self._engine = engine
        self._takeover_delay = takeover_delay

    async def handle(self, command: PlayTrackCommand) -> PlayTrackResult:
        decision = await self._policy.evaluate(
            PolicyRequest(
                guild_id=command.guild_id,
                requester_id=command.user_id,
                requester_voice_channel_id=command.voice_channel_id,
                requester_role_ids=command.role_ids,
                action=PolicyAction.ENQUEUE,
                from_central_channel=command.from_central,
                bot_can_join=command.bot_can_join,
            )
        )
        if not decision.allowed:
            return PlayTrackResult.denied(decision.reason or DiscordUIMessages.ERROR_GENERIC, decision.code)

        # Allowed implies a voice channel.
        assert command.voice_channel_id is not None

        if decision.is_takeover:
            await self._take_over(command)

        origin = SessionOrigin.CENTRAL if command.from_central else SessionOrigin.COMMAND
        session = await self._engine.ensure_session(
            command.guild_id, command.voice_channel_id, command.text_channel_id, origin=origin
        )
        enqueued = await self._engine.enqueue(session, command.query, command.user_id, command.user_name)

        if enqueued.status is EnqueueStatus.NOT_FOUND:
            return PlayTrackResult.error(PlayTrackStatus.NOT_FOUND, DiscordUIMessages.PLAY_NOT_FOUND)
        return PlayTrackResult.success(enqueued)

    async def _take_over(self, command: PlayTrackCommand) -> None:
        previous = self._engine.get_session(command.guild_id)
        if previous is not None:
            logger.info(
                LogTemplates.SESSION_TAKEOVER,
                command.guild_id,
                previous.origin.value,
                SessionOrigin.CENTRAL.value,
            )
        await self._engine.destroy_session(command.guild_id, "central takeover")
        # Let the gateway settle the old voice connection before reconnecting.
        await asyncio.sleep(self._takeover_delay)
