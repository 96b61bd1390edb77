"""Hybrid music commands delegating to the application handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

import discord
from discord import app_commands
from discord.ext import commands

from lavalink_music_bot.application.commands.join_channel import JoinChannelCommand
from lavalink_music_bot.application.commands.play_track import PlayTrackCommand
from lavalink_music_bot.application.commands.transport_control import TransportCommand
from lavalink_music_bot.application.queries.get_queue import GetQueueQuery
from lavalink_music_bot.domain.music.entities import DisplayProjection
from lavalink_music_bot.domain.music.value_objects import LoopMode, TransportOp
from lavalink_music_bot.domain.shared.exceptions import DomainError, PolicyDenied, ResolverEmpty
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from lavalink_music_bot.infrastructure.discord.guards.voice_guards import (
    bot_can_join,
    role_ids_of,
    voice_channel_of,
)
from lavalink_music_bot.infrastructure.discord.views.control_panel import build_active_embed, format_queue
from lavalink_music_bot.utils.reply import describe_error, parse_timestamp, root_cause

if TYPE_CHECKING:
    from ....config.container import Container
    from ..guards.readiness import MusicCapabilities

logger = logging.getLogger(__name__)


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            raise commands.NoPrivateMessage()
        return self.container.readiness_guard.check()

    async def cog_command_error(self, ctx: commands.Context, error: Exception) -> None:
        original = root_cause(error)

        match original:
            case commands.NoPrivateMessage():
                message = DiscordUIMessages.ERROR_SERVER_ONLY
            case commands.MissingRequiredArgument():
                message = DiscordUIMessages.ERROR_MISSING_ARGUMENT.format(param_name=original.param.name)
            case commands.BadArgument() | app_commands.TransformerError():
                message = DiscordUIMessages.ERROR_INVALID_ARGUMENT
            case DomainError():
                level = logging.DEBUG if isinstance(original, PolicyDenied | ResolverEmpty) else logging.WARNING
                logger.log(
                    level,
                    LogTemplates.BOT_PREFIX_COMMAND_ERROR,
                    getattr(ctx.command, "qualified_name", "?"),
                    getattr(ctx.guild, "id", None),
                    original.message,
                )
                message = describe_error(original)
            case _:
                logger.error(
                    LogTemplates.BOT_PREFIX_COMMAND_ERROR,
                    getattr(ctx.command, "qualified_name", "?"),
                    getattr(ctx.guild, "id", None),
                    original,
                    exc_info=original,
                )
                message = DiscordUIMessages.ERROR_GENERIC

        try:
            await ctx.send(message, ephemeral=True)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @property
    def music(self) -> MusicCapabilities:
        return self.container.readiness_guard.require()

    @staticmethod
    def _member(ctx: commands.Context) -> discord.Member:
        assert isinstance(ctx.author, discord.Member)
        return ctx.author

    async def _transport(self, ctx: commands.Context, op: TransportOp) -> None:
        member = self._member(ctx)
        voice = voice_channel_of(member)
        command = TransportCommand(
            guild_id=member.guild.id,
            user_id=member.id,
            voice_channel_id=voice.id if voice else None,
            role_ids=role_ids_of(member),
            op=op,
        )
        music = self.music
        result = await music.serializer.run(member.guild.id, lambda: music.transport.handle(command))
        await ctx.send(result.message, ephemeral=not result.is_success)

    # ─────────────────────────────────────────────────────────────────
    # Connection and playback
    # ─────────────────────────────────────────────────────────────────

    @commands.hybrid_command(name="play", description="Play a song or playlist by name or URL.")
    @app_commands.describe(query="Song name, YouTube link or playlist URL")
    async def play(self, ctx: commands.Context, *, query: str) -> None:
        # Resolving can exceed the 3-second interaction deadline.
        await ctx.defer()

        member = self._member(ctx)
        voice = voice_channel_of(member)
        command = PlayTrackCommand(
            guild_id=member.guild.id,
            user_id=member.id,
            user_name=member.display_name,
            voice_channel_id=voice.id if voice else None,
            text_channel_id=ctx.channel.id,
            query=query,
            role_ids=role_ids_of(member),
            bot_can_join=bot_can_join(member),
        )
        music = self.music
        result = await music.serializer.run(member.guild.id, lambda: music.play.handle(command))
        await ctx.send(result.message, ephemeral=not result.is_success)

    @commands.hybrid_command(name="join", description="Join your voice channel.")
    async def join(self, ctx: commands.Context) -> None:
        member = self._member(ctx)
        voice = voice_channel_of(member)
        command = JoinChannelCommand(
            guild_id=member.guild.id,
            user_id=member.id,
            voice_channel_id=voice.id if voice else None,
            voice_channel_name=voice.name if voice else "",
            text_channel_id=ctx.channel.id,
            role_ids=role_ids_of(member),
            bot_can_join=bot_can_join(member),
        )
        music = self.music
        result = await music.serializer.run(member.guild.id, lambda: music.join.handle(command))
        await ctx.send(result.message, ephemeral=not result.is_success)

    @commands.hybrid_command(name="stop", description="Stop the music, clear the queue and leave.")
    async def stop(self, ctx: commands.Context) -> None:
        await self._transport(ctx, TransportOp.stop())

    @commands.hybrid_command(name="pause", description="Pause the current track.")
    async def pause(self, ctx: commands.Context) -> None:
        await self._transport(ctx, TransportOp.pause())

    @commands.hybrid_command(name="resume", description="Resume the paused track.")
    async def resume(self, ctx: commands.Context) -> None:
        await self._transport(ctx, TransportOp.resume())

    @commands.hybrid_command(name="skip", description="Skip the current track.")
    async def skip(self, ctx: commands.Context) -> None:
        await self._transport(ctx, TransportOp.skip())

    @commands.hybrid_command(name="volume", description="Set the playback volume.")
    @app_commands.describe(level="Volume from 0 to 100")
    async def volume(self, ctx: commands.Context, level: commands.Range[int, 0, 100]) -> None:
        await self._transport(ctx, TransportOp.set_volume(level))

    @commands.hybrid_command(name="loop", description="Set or cycle the loop mode.")
    @app_commands.describe(mode="off, track or queue; leave empty to cycle")
    async def loop(self, ctx: commands.Context, mode: Literal["off", "track", "queue"] | None = None) -> None:
        op = TransportOp.cycle_loop() if mode is None else TransportOp.set_loop(LoopMode(mode))
        await self._transport(ctx, op)

    @commands.hybrid_command(name="seek", description="Jump to a position in the current track.")
    @app_commands.describe(position="Timestamp like 90, 1:30 or 1:02:03")
    async def seek(self, ctx: commands.Context, position: str) -> None:
        position_ms = parse_timestamp(position)
        if position_ms is None:
            raise commands.BadArgument(position)
        await self._transport(ctx, TransportOp.seek(position_ms))

    # ─────────────────────────────────────────────────────────────────
    # Queue
    # ─────────────────────────────────────────────────────────────────

    @commands.hybrid_command(name="queue", description="Show the upcoming tracks.")
    async def queue(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        info = self.music.queue.handle(GetQueueQuery(guild_id=ctx.guild.id))
        await ctx.send(format_queue(info), ephemeral=True)

    @commands.hybrid_command(name="nowplaying", aliases=["np"], description="Show the current track.")
    async def nowplaying(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        session = self.music.engine.get_session(ctx.guild.id)
        projection = DisplayProjection.from_session(session) if session is not None else None
        if projection is None:
            await ctx.send(DiscordUIMessages.NOW_PLAYING_NONE, ephemeral=True)
            return
        await ctx.send(embed=build_active_embed(projection, self.container.settings.links.support_server_url))

    @commands.hybrid_command(name="shuffle", description="Shuffle the queue.")
    async def shuffle(self, ctx: commands.Context) -> None:
        await self._transport(ctx, TransportOp.shuffle_queue())

    @commands.hybrid_command(name="clear", description="Remove every queued track.")
    async def clear(self, ctx: commands.Context) -> None:
        await self._transport(ctx, TransportOp.clear_queue())

    @commands.hybrid_command(name="move", description="Move a queued track to another position.")
    @app_commands.describe(source="Current position", target="New position")
    async def move(self, ctx: commands.Context, source: int, target: int) -> None:
        await self._transport(ctx, TransportOp.move_track(source, target))

    @commands.hybrid_command(name="jump", description="Skip ahead to a queued track.")
    @app_commands.describe(position="Queue position to jump to")
    async def jump(self, ctx: commands.Context, position: int) -> None:
        await self._transport(ctx, TransportOp.jump_to(position))

    @commands.hybrid_command(name="remove", description="Remove a track from the queue.")
    @app_commands.describe(position="Queue position to remove")
    async def remove(self, ctx: commands.Context, position: int) -> None:
        await self._transport(ctx, TransportOp.remove_track(position))

    # ─────────────────────────────────────────────────────────────────
    # Settings
    # ─────────────────────────────────────────────────────────────────

    @commands.hybrid_command(name="autoplay", description="Keep playing related tracks when the queue ends.")
    @app_commands.describe(state="on or off")
    async def autoplay(self, ctx: commands.Context, state: Literal["on", "off"]) -> None:
        member = self._member(ctx)
        enabled = state == "on"
        await self.container.central_panel_service.set_autoplay(
            member.guild.id, enabled, role_ids=role_ids_of(member)
        )
        await ctx.send(
            DiscordUIMessages.AUTOPLAY_ENABLED if enabled else DiscordUIMessages.AUTOPLAY_DISABLED
        )


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
