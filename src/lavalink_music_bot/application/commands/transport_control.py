"""
Transport Control Command

Command and handler for pause/resume/skip/stop, volume, loop and queue edits,
whether typed as a command or pressed on the central panel.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from lavalink_music_bot.application.services.playback_models import TransportResult
from lavalink_music_bot.domain.music.value_objects import TransportOp
from lavalink_music_bot.domain.policy.value_objects import PolicyAction, PolicyRequest, SessionDecision
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages
from lavalink_music_bot.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.playback_engine import PlaybackEngineAdapter
    from ..services.session_policy import SessionPolicyService


class ControlRequest(BaseModel):
    """Who is asking to control the guild's session, and from where."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    user_id: DiscordSnowflake
    voice_channel_id: DiscordSnowflake | None = None
    role_ids: frozenset[int] = frozenset()
    via_button: bool = False

    @property
    def action(self) -> PolicyAction:
        return PolicyAction.VOICE_BUTTON if self.via_button else PolicyAction.TRANSPORT_CONTROL


class TransportCommand(ControlRequest):
    op: TransportOp


class TransportControlHandler:
    """Runs the policy check for a control action and applies it to the live session."""

    def __init__(self, *, policy: SessionPolicyService, engine: PlaybackEngineAdapter) -> None:
        self._policy = policy
        self._engine = engine

    async def authorize(self, request: ControlRequest) -> SessionDecision:
        return await self._policy.evaluate(
            PolicyRequest(
                guild_id=request.guild_id,
                requester_id=request.user_id,
                requester_voice_channel_id=request.voice_channel_id,
                requester_role_ids=request.role_ids,
                action=request.action,
            )
        )

    async def handle(self, command: TransportCommand) -> TransportResult:
        decision = await self.authorize(command)
        if not decision.allowed:
            return TransportResult.denied(command.op.kind, decision.reason or DiscordUIMessages.ERROR_GENERIC)

        session = self._engine.get_session(command.guild_id)
        if session is None:
            return TransportResult.denied(command.op.kind, DiscordUIMessages.POLICY_NOTHING_PLAYING)

        return await self._engine.apply_transport(session, command.op)
