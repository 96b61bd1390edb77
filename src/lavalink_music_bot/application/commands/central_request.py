"""
Central Request Command

A message typed into the central channel: rate limited, filtered for song
queries and then played through the guild's FIFO like any other play request.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from lavalink_music_bot.application.commands.play_track import (
    PlayTrackCommand,
    PlayTrackResult,
    PlayTrackStatus,
)
from lavalink_music_bot.application.services.song_query import is_song_query
from lavalink_music_bot.domain.policy.value_objects import DenialCode
from lavalink_music_bot.domain.shared.constants import LimitConstants
from lavalink_music_bot.domain.shared.messages import LogTemplates
from lavalink_music_bot.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.guild_serializer import GuildSerializer
    from ..services.spam_limiter import SpamLimiter
    from .play_track import PlayTrackHandler

logger = logging.getLogger(__name__)


class CentralRequestStatus(Enum):
    RATE_LIMITED = "rate_limited"
    NOT_A_SONG = "not_a_song"
    FORBIDDEN = "forbidden"
    DENIED = "denied"
    NOT_FOUND = "not_found"
    PLAYED = "played"


class CentralRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    channel_id: DiscordSnowflake
    user_id: DiscordSnowflake
    user_name: str | None = None
    voice_channel_id: DiscordSnowflake | None = None
    role_ids: frozenset[int] = frozenset()
    content: str
    bot_can_join: bool = True


class CentralRequestResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: CentralRequestStatus
    message: str | None = None
    play: PlayTrackResult | None = None

    @property
    def is_success(self) -> bool:
        return self.status is CentralRequestStatus.PLAYED

    @property
    def is_silent(self) -> bool:
        """Dropped without any feedback to the user."""
        return self.status in (
            CentralRequestStatus.RATE_LIMITED,
            CentralRequestStatus.NOT_A_SONG,
            CentralRequestStatus.FORBIDDEN,
        )

    @classmethod
    def success(cls, play: PlayTrackResult) -> CentralRequestResult:
        return cls(status=CentralRequestStatus.PLAYED, message=play.message, play=play)

    @classmethod
    def dropped(cls, status: CentralRequestStatus) -> CentralRequestResult:
        return cls(status=status)

    @classmethod
    def error(cls, status: CentralRequestStatus, play: PlayTrackResult) -> CentralRequestResult:
        return cls(status=status, message=play.message, play=play)


class CentralRequestHandler:
    """Message path of the central channel, up to the play request."""

    def __init__(
        self,
        *,
        limiter: SpamLimiter,
        play_handler: PlayTrackHandler,
        serializer: GuildSerializer,
        max_query_length: int = LimitConstants.MAX_QUERY_LENGTH,
    ) -> None:
        self._limiter = limiter
        self._play_handler = play_handler
        self._serializer = serializer
        self._max_query_length = max_query_length

    @property
    def limiter(self) -> SpamLimiter:
        return self._limiter

    async def handle(self, request: CentralRequest) -> CentralRequestResult:
        if not self._limiter.allow(request.guild_id, request.user_id):
            return CentralRequestResult.dropped(CentralRequestStatus.RATE_LIMITED)

        if not is_song_query(request.content, max_length=self._max_query_length):
            return CentralRequestResult.dropped(CentralRequestStatus.NOT_A_SONG)

        logger.info(LogTemplates.CENTRAL_REQUEST, request.guild_id, request.user_id, request.content)
        command = PlayTrackCommand(
            guild_id=request.guild_id,
            user_id=request.user_id,
            user_name=request.user_name,
            voice_channel_id=request.voice_channel_id,
            text_channel_id=request.channel_id,
            query=request.content,
            role_ids=request.role_ids,
            from_central=True,
            bot_can_join=request.bot_can_join,
        )
        play = await self._serializer.run(request.guild_id, lambda: self._play_handler.handle(command))

        match play.status:
            case PlayTrackStatus.DENIED if play.denial_code is DenialCode.CENTRAL_FORBIDDEN:
                return CentralRequestResult.dropped(CentralRequestStatus.FORBIDDEN)
            case PlayTrackStatus.DENIED:
                return CentralRequestResult.error(CentralRequestStatus.DENIED, play)
            case PlayTrackStatus.NOT_FOUND:
                return CentralRequestResult.error(CentralRequestStatus.NOT_FOUND, play)
            case _:
                return CentralRequestResult.success(play)
