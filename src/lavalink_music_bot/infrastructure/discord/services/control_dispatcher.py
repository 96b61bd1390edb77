"""Routes central panel button presses to the transport handler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from lavalink_music_bot.application.commands.transport_control import ControlRequest, TransportCommand
from lavalink_music_bot.application.queries.get_queue import GetQueueQuery
from lavalink_music_bot.domain.music.value_objects import TransportOp
from lavalink_music_bot.domain.shared.constants import LimitConstants
from lavalink_music_bot.domain.shared.exceptions import DomainError, PolicyDenied
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages, LogTemplates
from lavalink_music_bot.infrastructure.discord.guards.voice_guards import (
    get_member,
    role_ids_of,
    send_ephemeral,
    voice_channel_of,
)
from lavalink_music_bot.infrastructure.discord.views.control_panel import PanelAction, format_queue
from lavalink_music_bot.utils.reply import describe_error

if TYPE_CHECKING:
    from ..guards.readiness import MusicCapabilities, ReadinessGuard

logger = logging.getLogger(__name__)


class ControlDispatcher:
    """One entry point for every panel button; replies are always ephemeral."""

    def __init__(self, guard: ReadinessGuard, *, volume_step: int = LimitConstants.VOLUME_STEP) -> None:
        self._guard = guard
        self._volume_step = volume_step

    def op_for(self, action: PanelAction) -> TransportOp:
        match action:
            case PanelAction.PAUSE:
                return TransportOp.pause()
            case PanelAction.RESUME:
                return TransportOp.resume()
            case PanelAction.SKIP:
                return TransportOp.skip()
            case PanelAction.STOP:
                return TransportOp.stop()
            case PanelAction.CLEAR:
                return TransportOp.clear_queue()
            case PanelAction.LOOP:
                return TransportOp.cycle_loop()
            case PanelAction.VOLUME_UP:
                return TransportOp.adjust_volume(self._volume_step)
            case PanelAction.VOLUME_DOWN:
                return TransportOp.adjust_volume(-self._volume_step)
            case PanelAction.SHUFFLE:
                return TransportOp.shuffle_queue()
        raise ValueError(f"No transport operation for {action}")

    async def dispatch(self, interaction: discord.Interaction, action: PanelAction) -> None:
        member = await get_member(interaction)
        if member is None:
            return

        voice = voice_channel_of(member)
        request = ControlRequest(
            guild_id=member.guild.id,
            user_id=member.id,
            voice_channel_id=voice.id if voice else None,
            role_ids=role_ids_of(member),
            via_button=True,
        )

        try:
            music = self._guard.require()
            await interaction.response.defer(ephemeral=True)
            if action is PanelAction.QUEUE:
                message = await self._queue(music, request)
            else:
                message = await self._transport(music, request, action)
        except DomainError as e:
            level = logging.DEBUG if isinstance(e, PolicyDenied) else logging.WARNING
            logger.log(level, LogTemplates.BUTTON_FAILED, action.custom_id, request.guild_id, e.message)
            message = describe_error(e)
        except Exception:
            logger.exception(LogTemplates.BUTTON_UNEXPECTED_ERROR, action.custom_id, request.guild_id)
            message = DiscordUIMessages.ERROR_GENERIC

        try:
            await send_ephemeral(interaction, message)
        except discord.HTTPException as e:
            logger.debug(LogTemplates.CENTRAL_FEEDBACK_FAILED, request.guild_id, e)

    async def _queue(self, music: MusicCapabilities, request: ControlRequest) -> str:
        decision = await music.transport.authorize(request)
        if not decision.allowed:
            return decision.reason or DiscordUIMessages.ERROR_GENERIC
        return format_queue(music.queue.handle(GetQueueQuery(guild_id=request.guild_id)))

    async def _transport(self, music: MusicCapabilities, request: ControlRequest, action: PanelAction) -> str:
        command = TransportCommand(**request.model_dump(), op=self.op_for(action))
        result = await music.serializer.run(request.guild_id, lambda: music.transport.handle(command))
        return result.message
