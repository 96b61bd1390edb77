"""
Policy Bounded Context

The session policy engine and its request/decision value objects.
"""

from lavalink_music_bot.domain.policy.services import SessionPolicyEngine
from lavalink_music_bot.domain.policy.value_objects import (
    DecisionOutcome,
    DenialCode,
    PolicyAction,
    PolicyRequest,
    SessionDecision,
)

__all__ = [
    "SessionPolicyEngine",
    "PolicyAction",
    "PolicyRequest",
    "SessionDecision",
    "DecisionOutcome",
    "DenialCode",
]
