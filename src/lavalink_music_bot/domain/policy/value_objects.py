"""Value objects for session policy decisions."""

from __future__ import annotations

from enum import Enum, StrEnum

from pydantic import BaseModel, ConfigDict

from lavalink_music_bot.domain.shared.types import DiscordSnowflake


class PolicyAction(StrEnum):
    """What a requester is trying to do."""

    JOIN = "join"
    ENQUEUE = "enqueue"
    TRANSPORT_CONTROL = "transport-control"
    VOICE_BUTTON = "voice-button"

    @property
    def needs_connection(self) -> bool:
        """Actions that may create a voice connection."""
        return self in (PolicyAction.JOIN, PolicyAction.ENQUEUE)

    @property
    def is_control(self) -> bool:
        """Actions that operate on an existing session."""
        return self in (PolicyAction.TRANSPORT_CONTROL, PolicyAction.VOICE_BUTTON)


class DecisionOutcome(Enum):
    ALLOW = "allow"
    DENY = "deny"
    TAKEOVER = "takeover"


class DenialCode(StrEnum):
    NOT_IN_VOICE = "not_in_voice"
    NO_JOIN_PERMISSION = "no_join_permission"
    NOTHING_PLAYING = "nothing_playing"
    BUSY_IN_CENTRAL = "busy_in_central"
    BUSY_ELSEWHERE = "busy_elsewhere"
    WRONG_CHANNEL = "wrong_channel"
    DJ_REQUIRED = "dj_required"
    CENTRAL_FORBIDDEN = "central_forbidden"
    MUST_USE_CENTRAL_VC = "must_use_central_vc"
    UNAVAILABLE = "policy_unavailable"


class SessionDecision(BaseModel):
    """Outcome of one policy evaluation. Never persisted."""

    model_config = ConfigDict(frozen=True)

    outcome: DecisionOutcome
    reason: str | None = None
    code: DenialCode | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome is not DecisionOutcome.DENY

    @property
    def is_takeover(self) -> bool:
        return self.outcome is DecisionOutcome.TAKEOVER

    @classmethod
    def allow(cls) -> SessionDecision:
        return cls(outcome=DecisionOutcome.ALLOW)

    @classmethod
    def takeover(cls) -> SessionDecision:
        return cls(outcome=DecisionOutcome.TAKEOVER)

    @classmethod
    def deny(cls, reason: str, code: DenialCode) -> SessionDecision:
        return cls(outcome=DecisionOutcome.DENY, reason=reason, code=code)


class PolicyRequest(BaseModel):
    """Everything the engine needs to know about the requester."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    requester_id: DiscordSnowflake
    requester_voice_channel_id: DiscordSnowflake | None = None
    requester_role_ids: frozenset[int] = frozenset()
    action: PolicyAction
    from_central_channel: bool = False
    # Connect and Speak in the requester's channel.
    bot_can_join: bool = True
