"""Readiness guard consulted once at the dispatch boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from discord.ext import commands

from lavalink_music_bot.domain.shared.exceptions import EngineUnavailable
from lavalink_music_bot.domain.shared.messages import ErrorMessages

if TYPE_CHECKING:
    from ....application.commands.join_channel import JoinChannelHandler
    from ....application.commands.play_track import PlayTrackHandler
    from ....application.commands.transport_control import TransportControlHandler
    from ....application.queries.get_queue import GetQueueHandler
    from ....application.services.guild_serializer import GuildSerializer
    from ....application.services.playback_engine import PlaybackEngineAdapter
    from ....application.services.session_policy import SessionPolicyService


@dataclass(frozen=True)
class MusicCapabilities:
    """Everything a music entry point may use once the engine is ready."""

    policy: SessionPolicyService
    engine: PlaybackEngineAdapter
    serializer: GuildSerializer
    play: PlayTrackHandler
    join: JoinChannelHandler
    transport: TransportControlHandler
    queue: GetQueueHandler


class MusicUnavailable(commands.CheckFailure):
    """Check failure carrying the offline error for the command error hooks."""

    def __init__(self, error: EngineUnavailable) -> None:
        super().__init__(error.message)
        self.original = error


class ReadinessGuard:
    def __init__(self, capabilities: MusicCapabilities) -> None:
        self._capabilities = capabilities

    @property
    def is_ready(self) -> bool:
        return self._capabilities.engine.node_available

    def require(self) -> MusicCapabilities:
        """Return the capability bundle.

        Raises:
            EngineUnavailable: If no playback node is connected.
        """
        if not self.is_ready:
            raise EngineUnavailable(ErrorMessages.NO_CONNECTED_NODE)
        return self._capabilities

    def check(self) -> bool:
        """Same as :meth:`require`, shaped for ``cog_check``."""
        try:
            self.require()
        except EngineUnavailable as e:
            raise MusicUnavailable(e) from e
        return True
