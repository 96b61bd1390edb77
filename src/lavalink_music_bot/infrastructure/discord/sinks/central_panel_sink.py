"""Central panel sink: the single edit-in-place embed of a guild's central channel."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from lavalink_music_bot.application.interfaces.display_sinks import CentralPanelSink, PanelHealth
from lavalink_music_bot.domain.shared.constants import DiscordErrorCodes
from lavalink_music_bot.domain.shared.exceptions import ConfigStoreUnavailable, SinkRenderFailure
from lavalink_music_bot.domain.shared.messages import LogTemplates
from lavalink_music_bot.infrastructure.discord.views.control_panel import (
    build_active_embed,
    build_idle_embed,
    build_panel_view,
)

if TYPE_CHECKING:
    from discord.ext import commands

    from ....domain.guild.repository import GuildConfigRepository
    from ....domain.music.entities import DisplayProjection

logger = logging.getLogger(__name__)

SINK_NAME = "central-panel"


def _describe(error: discord.HTTPException) -> str:
    return f"HTTP {error.status} (code {error.code}): {error.text}"


class DiscordCentralPanelSink(CentralPanelSink):
    """Renders the panel message whose id is stored in the guild's config.

    Guilds without an enabled central system are silently skipped.
    """

    def __init__(
        self,
        bot: commands.Bot,
        config_repository: GuildConfigRepository,
        *,
        support_url: str | None = None,
    ) -> None:
        self._bot = bot
        self._config_repo = config_repository
        self._support_url = support_url

    async def render(self, guild_id: int, projection: DisplayProjection | None) -> None:
        try:
            config = await self._config_repo.find_by_guild_id(guild_id)
        except ConfigStoreUnavailable as e:
            raise SinkRenderFailure(SINK_NAME, e.message) from e

        if config is None:
            return
        central = config.central_setup
        if not central.is_active or central.channel_id is None or central.embed_id is None:
            return

        message = self._bot.get_partial_messageable(central.channel_id).get_partial_message(central.embed_id)
        try:
            if projection is None:
                await message.edit(embed=build_idle_embed(self._support_url), view=None)
            else:
                await message.edit(
                    embed=build_active_embed(projection, self._support_url),
                    view=build_panel_view(projection, self._support_url),
                )
        except discord.HTTPException as e:
            raise SinkRenderFailure(SINK_NAME, _describe(e)) from e

    async def publish(self, channel_id: int) -> int:
        channel = self._bot.get_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            raise SinkRenderFailure(SINK_NAME, f"channel {channel_id} is not a text channel")

        try:
            message = await channel.send(embed=build_idle_embed(self._support_url))
        except discord.HTTPException as e:
            raise SinkRenderFailure(SINK_NAME, _describe(e)) from e
        return message.id

    async def remove(self, channel_id: int, message_id: int) -> None:
        message = self._bot.get_partial_messageable(channel_id).get_partial_message(message_id)
        try:
            await message.delete()
        except discord.HTTPException as e:
            logger.debug(LogTemplates.SINK_FAILED, SINK_NAME, channel_id, _describe(e))

    async def check(self, guild_id: int, channel_id: int, message_id: int | None) -> PanelHealth:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            return PanelHealth.GONE

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.TextChannel):
            return PanelHealth.GONE

        permissions = channel.permissions_for(guild.me)
        if not (permissions.send_messages and permissions.embed_links):
            return PanelHealth.NO_PERMISSION

        if message_id is None:
            return PanelHealth.MISSING_MESSAGE

        try:
            await channel.fetch_message(message_id)
        except discord.NotFound:
            return PanelHealth.MISSING_MESSAGE
        except discord.HTTPException as e:
            if e.code in DiscordErrorCodes.PANEL_GONE:
                return PanelHealth.GONE
            raise SinkRenderFailure(SINK_NAME, _describe(e)) from e
        return PanelHealth.OK
