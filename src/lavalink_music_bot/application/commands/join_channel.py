"""Command and handler for moving the bot into the requester's voice channel."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from lavalink_music_bot.domain.policy.value_objects import PolicyAction, PolicyRequest
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from ..services.playback_engine import PlaybackEngineAdapter
    from ..services.session_policy import SessionPolicyService


class JoinStatus(Enum):
    JOINED = "joined"
    ALREADY_HERE = "already_here"
    DENIED = "denied"


@dataclass
class JoinChannelCommand:
    guild_id: int
    user_id: int
    voice_channel_id: int | None
    voice_channel_name: str = ""
    text_channel_id: int | None = None
    role_ids: frozenset[int] = frozenset()
    bot_can_join: bool = True

    def __post_init__(self) -> None:
        if self.guild_id <= 0:
            raise ValueError("Guild ID must be positive")
        if self.user_id <= 0:
            raise ValueError("User ID must be positive")


@dataclass
class JoinResult:
    status: JoinStatus
    message: str

    @property
    def is_success(self) -> bool:
        return self.status is not JoinStatus.DENIED

    @classmethod
    def success(cls, status: JoinStatus, message: str) -> JoinResult:
        return cls(status=status, message=message)

    @classmethod
    def denied(cls, reason: str) -> JoinResult:
        return cls(status=JoinStatus.DENIED, message=reason)


class JoinChannelHandler:

    def __init__(self, *, policy: SessionPolicyService, engine: PlaybackEngineAdapter) -> None:
        self._policy = policy
        self._engine = engine

    async def handle(self, command: JoinChannelCommand) -> JoinResult:
        decision = await self._policy.evaluate(
            PolicyRequest(
                guild_id=command.guild_id,
                requester_id=command.user_id,
                requester_voice_channel_id=command.voice_channel_id,
                requester_role_ids=command.role_ids,
                action=PolicyAction.JOIN,
                bot_can_join=command.bot_can_join,
            )
        )
        if not decision.allowed:
            return JoinResult.denied(decision.reason or DiscordUIMessages.ERROR_GENERIC)

        assert command.voice_channel_id is not None

        existing = self._engine.get_session(command.guild_id)
        if existing is not None and existing.voice_channel_id == command.voice_channel_id:
            return JoinResult.success(JoinStatus.ALREADY_HERE, DiscordUIMessages.JOIN_ALREADY_HERE)

        await self._engine.ensure_session(command.guild_id, command.voice_channel_id, command.text_channel_id)
        return JoinResult.success(
            JoinStatus.JOINED,
            DiscordUIMessages.JOIN_JOINED.format(channel=command.voice_channel_name or command.voice_channel_id),
        )
