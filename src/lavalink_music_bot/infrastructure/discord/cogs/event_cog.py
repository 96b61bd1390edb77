"""Discord and Lavalink event listeners feeding the playback engine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
import wavelink
from discord.ext import commands

from lavalink_music_bot.domain.music.events import PlayerDisconnected
from lavalink_music_bot.domain.shared.messages import ErrorMessages, LogTemplates
from lavalink_music_bot.infrastructure.lavalink.events import node_closed, track_ended, track_started, track_stuck

if TYPE_CHECKING:
    from ....config.container import Container
    from ....domain.music.events import LifecycleEvent

logger = logging.getLogger(__name__)


class EventCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        self._resumed_logged_once = False

    def _feed(self, event: LifecycleEvent | None) -> None:
        """Queue ``event`` behind any command already running for its guild."""
        serializer = self.container.serializer
        if event is None or serializer.closed:
            return
        engine = self.container.playback_engine
        serializer.submit(event.guild_id, lambda: engine.handle_event(event))

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_connect(self) -> None:
        logger.info("WebSocket connected")

    @commands.Cog.listener()
    async def on_disconnect(self) -> None:
        logger.warning("WebSocket disconnected")

    @commands.Cog.listener()
    async def on_resumed(self) -> None:
        if not self._resumed_logged_once:
            logger.info("WebSocket session resumed")
            self._resumed_logged_once = True

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info("Joined guild: %s (%s)", guild.name, guild.id)
        await self.container.presence.announce_servers()

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info("Left guild: %s (%s)", guild.name, guild.id)
        self._feed(PlayerDisconnected(guild_id=guild.id))

    # ─────────────────────────────────────────────────────────────────
    # Voice
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        if self.bot.user is None or member.id != self.bot.user.id:
            return
        if before.channel is None or after.channel is not None:
            return

        logger.info(LogTemplates.VOICE_BOT_LEFT, before.channel.id, member.guild.id)
        self._feed(PlayerDisconnected(guild_id=member.guild.id, channel_id=before.channel.id))

    # ─────────────────────────────────────────────────────────────────
    # Lavalink
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_wavelink_node_ready(self, payload: wavelink.NodeReadyEventPayload) -> None:
        logger.info(LogTemplates.NODE_READY, payload.node.identifier, payload.resumed, payload.session_id)

    @commands.Cog.listener()
    async def on_wavelink_node_closed(self, node: wavelink.Node, disconnected: list[wavelink.Player]) -> None:
        logger.warning(LogTemplates.NODE_CLOSED, node.identifier, len(disconnected))
        for event in node_closed(node, disconnected):
            self._feed(event)

    @commands.Cog.listener()
    async def on_wavelink_track_start(self, payload: wavelink.TrackStartEventPayload) -> None:
        self._feed(track_started(payload))

    @commands.Cog.listener()
    async def on_wavelink_track_end(self, payload: wavelink.TrackEndEventPayload) -> None:
        self._feed(track_ended(payload))

    @commands.Cog.listener()
    async def on_wavelink_track_stuck(self, payload: wavelink.TrackStuckEventPayload) -> None:
        event = track_stuck(payload)
        if event is not None:
            logger.warning(LogTemplates.TRACK_STUCK, event.guild_id, payload.threshold)
        self._feed(event)

    @commands.Cog.listener()
    async def on_wavelink_track_exception(self, payload: wavelink.TrackExceptionEventPayload) -> None:
        # An end event with reason loadFailed follows; it does the skipping.
        guild_id = payload.player.guild.id if payload.player and payload.player.guild else None
        logger.warning(LogTemplates.TRACK_EXCEPTION, guild_id, payload.exception)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(EventCog(bot, container))
