"""
Session Policy Engine

Decides, per request, whether a guild's single voice session may be created,
reused, handed over to the central system, or must be refused.
"""

from __future__ import annotations

from lavalink_music_bot.domain.guild.entities import GuildConfig
from lavalink_music_bot.domain.music.entities import GuildVoiceSession
from lavalink_music_bot.domain.music.value_objects import SessionOrigin
from lavalink_music_bot.domain.policy.value_objects import (
    DenialCode,
    PolicyAction,
    PolicyRequest,
    SessionDecision,
)
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages


class SessionPolicyEngine:
    """Pure decision core; holds no state and performs no I/O.

    Rules are evaluated in order and the first match wins:

    1. Requester not in voice: deny.
    2. ``join``/``enqueue`` without Connect+Speak in the requester's channel: deny.
    3. Control actions without a session: deny (nothing to control).
    4. No session: allow.
    5. Session in the requester's channel: allow, or take over when the central
       system claims a session that a command created in the central voice channel.
    6. Session in another channel: the central system relocates it into the
       central voice channel; everyone else is denied, naming the central channel
       when the bot sits there.

    Allowed outcomes then pass two gates: the DJ role for control actions, and
    central role/voice-channel restrictions for central-channel enqueues.
    """

    @classmethod
    def evaluate(
        cls,
        request: PolicyRequest,
        *,
        session: GuildVoiceSession | None,
        config: GuildConfig | None,
    ) -> SessionDecision:
        config = config or GuildConfig.default(request.guild_id)

        decision = cls._channel_binding(request, session, config)
        if not decision.allowed:
            return decision
        return cls._apply_gates(request, config) or decision

    @classmethod
    def _channel_binding(
        cls, request: PolicyRequest, session: GuildVoiceSession | None, config: GuildConfig
    ) -> SessionDecision:
        requester_channel = request.requester_voice_channel_id
        if requester_channel is None:
            return SessionDecision.deny(DiscordUIMessages.POLICY_NOT_IN_VOICE, DenialCode.NOT_IN_VOICE)

        if request.action.needs_connection and not request.bot_can_join:
            return SessionDecision.deny(
                DiscordUIMessages.POLICY_NO_JOIN_PERMISSION, DenialCode.NO_JOIN_PERMISSION
            )

        if session is None or session.destroyed:
            if request.action.is_control:
                return SessionDecision.deny(
                    DiscordUIMessages.POLICY_NOTHING_PLAYING, DenialCode.NOTHING_PLAYING
                )
            return SessionDecision.allow()

        central = config.central_setup
        if session.voice_channel_id == requester_channel:
            if cls._central_claims(request, config) and session.origin is not SessionOrigin.CENTRAL:
                return SessionDecision.takeover()
            return SessionDecision.allow()

        bot_channel = session.voice_channel_id
        if cls._central_claims(request, config) and not central.is_central_voice(bot_channel):
            return SessionDecision.takeover()
        if central.is_central_voice(bot_channel):
            return SessionDecision.deny(
                DiscordUIMessages.POLICY_BUSY_IN_CENTRAL.format(channel_id=bot_channel),
                DenialCode.BUSY_IN_CENTRAL,
            )
        if request.action.is_control:
            return SessionDecision.deny(
                DiscordUIMessages.POLICY_WRONG_CHANNEL.format(channel_id=bot_channel),
                DenialCode.WRONG_CHANNEL,
            )
        return SessionDecision.deny(
            DiscordUIMessages.POLICY_BUSY_ELSEWHERE.format(channel_id=bot_channel),
            DenialCode.BUSY_ELSEWHERE,
        )

    @staticmethod
    def _central_claims(request: PolicyRequest, config: GuildConfig) -> bool:
        """The central channel asserts authority over its own voice channel."""
        return (
            request.action is PolicyAction.ENQUEUE
            and request.from_central_channel
            and config.central_setup.is_central_voice(request.requester_voice_channel_id)
        )

    @staticmethod
    def _apply_gates(request: PolicyRequest, config: GuildConfig) -> SessionDecision | None:
        if request.action.is_control and not config.settings.can_control(request.requester_role_ids):
            return SessionDecision.deny(DiscordUIMessages.POLICY_DJ_REQUIRED, DenialCode.DJ_REQUIRED)

        if request.action is PolicyAction.ENQUEUE and request.from_central_channel:
            central = config.central_setup
            if not central.permits(request.requester_role_ids):
                return SessionDecision.deny(
                    DiscordUIMessages.POLICY_CENTRAL_FORBIDDEN, DenialCode.CENTRAL_FORBIDDEN
                )
            vc_channel = central.vc_channel_id
            if vc_channel is not None and request.requester_voice_channel_id != vc_channel:
                return SessionDecision.deny(
                    DiscordUIMessages.POLICY_MUST_USE_CENTRAL_VC.format(channel_id=vc_channel),
                    DenialCode.MUST_USE_CENTRAL_VC,
                )
        return None
