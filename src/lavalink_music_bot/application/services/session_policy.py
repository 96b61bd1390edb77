"""Session policy service - feeds live session and stored config into the policy engine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.policy.services import SessionPolicyEngine
from ...domain.policy.value_objects import DenialCode, SessionDecision
from ...domain.shared.exceptions import ConfigStoreUnavailable
from ...domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ...domain.guild.repository import GuildConfigRepository
    from ...domain.policy.value_objects import PolicyRequest
    from .playback_engine import PlaybackEngineAdapter

logger = logging.getLogger(__name__)


class SessionPolicyService:
    """Evaluates a request against the guild's current session and configuration.

    A failing configuration store denies the request instead of guessing.
    """

    def __init__(
        self,
        *,
        config_repository: GuildConfigRepository,
        engine: PlaybackEngineAdapter,
    ) -> None:
        self._config_repo = config_repository
        self._engine = engine

    async def evaluate(self, request: PolicyRequest) -> SessionDecision:
        try:
            config = await self._config_repo.find_by_guild_id(request.guild_id)
        except ConfigStoreUnavailable:
            logger.error(LogTemplates.CONFIG_STORE_FAILED_POLICY, request.action.value, request.guild_id)
            return SessionDecision.deny(DiscordUIMessages.POLICY_UNAVAILABLE, DenialCode.UNAVAILABLE)

        session = self._engine.get_session(request.guild_id)
        decision = SessionPolicyEngine.evaluate(request, session=session, config=config)
        logger.debug(
            LogTemplates.POLICY_DECISION,
            decision.outcome.value,
            request.action.value,
            request.requester_id,
            request.guild_id,
            decision.code.value if decision.code else "-",
        )
        return decision
