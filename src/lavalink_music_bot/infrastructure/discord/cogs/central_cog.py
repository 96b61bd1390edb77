"""Central music channel: setup commands, the message request path and upkeep jobs."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands, tasks

from lavalink_music_bot.application.commands.central_request import CentralRequest, CentralRequestStatus
from lavalink_music_bot.domain.shared.constants import TimeConstants
from lavalink_music_bot.domain.shared.exceptions import (
    ConfigStoreUnavailable,
    DomainError,
    EngineUnavailable,
    SinkRenderFailure,
)
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from lavalink_music_bot.infrastructure.discord.guards.voice_guards import (
    bot_can_join,
    missing_central_permissions,
    role_ids_of,
    voice_channel_of,
)
from lavalink_music_bot.utils.reply import describe_error, root_cause

if TYPE_CHECKING:
    from ....config.container import Container
    from ....domain.guild.entities import GuildConfig

logger = logging.getLogger(__name__)

SUCCESS_REACTION = "✅"
FAILURE_REACTION = "❌"


class CentralCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        self._reset_done = False

        central = container.settings.central
        self._feedback_delay = central.feedback_delete_after_s
        self._usage_delay = central.usage_delete_after_s
        self.sweep_limiter.change_interval(minutes=central.sweep_interval_minutes)

    async def cog_load(self) -> None:
        self.sweep_limiter.start()

    async def cog_unload(self) -> None:
        self.sweep_limiter.cancel()

    async def cog_command_error(self, ctx: commands.Context, error: Exception) -> None:
        original = root_cause(error)

        match original:
            case commands.NoPrivateMessage():
                message = DiscordUIMessages.ERROR_SERVER_ONLY
            case commands.MissingPermissions():
                message = DiscordUIMessages.ERROR_REQUIRES_MANAGE_GUILD
            case commands.BadArgument():
                message = DiscordUIMessages.ERROR_INVALID_ARGUMENT
            case SinkRenderFailure():
                logger.debug(LogTemplates.SINK_FAILED, original.sink, getattr(ctx.guild, "id", None), original.detail)
                message = DiscordUIMessages.CENTRAL_SETUP_FAILED
            case DomainError():
                logger.warning(
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
    # Setup
    # ─────────────────────────────────────────────────────────────────

    @commands.hybrid_command(name="setup-central", description="Turn a text channel into the music control room.")
    @commands.guild_only()
    @commands.has_guild_permissions(manage_guild=True)
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.describe(
        channel="Text channel for the control panel (defaults to this one)",
        voice_channel="Voice channel reserved for the central system",
        allowed_role="Role allowed to request songs (everyone when empty)",
    )
    async def setup_central(
        self,
        ctx: commands.Context,
        channel: discord.TextChannel | None = None,
        voice_channel: discord.VoiceChannel | None = None,
        allowed_role: discord.Role | None = None,
    ) -> None:
        assert ctx.guild is not None
        target = channel or ctx.channel
        if not isinstance(target, discord.TextChannel):
            raise commands.BadArgument("channel")

        if missing_central_permissions(target):
            await ctx.send(
                DiscordUIMessages.CENTRAL_MISSING_PERMISSIONS.format(channel=target.mention), ephemeral=True
            )
            return

        await ctx.defer(ephemeral=True)
        result = await self.container.central_panel_service.setup(
            ctx.guild.id,
            target.id,
            vc_channel_id=voice_channel.id if voice_channel else None,
            allowed_role_id=allowed_role.id if allowed_role else None,
        )
        await ctx.send(result.message, ephemeral=True)

        if result.is_success:
            with contextlib.suppress(discord.HTTPException):
                await target.send(DiscordUIMessages.CENTRAL_USAGE, delete_after=self._usage_delay)

    @commands.hybrid_command(name="disable-central", description="Turn the central music system off.")
    @commands.guild_only()
    @commands.has_guild_permissions(manage_guild=True)
    @app_commands.default_permissions(manage_guild=True)
    async def disable_central(self, ctx: commands.Context) -> None:
        assert ctx.guild is not None
        result = await self.container.central_panel_service.disable(ctx.guild.id)
        await ctx.send(result.message, ephemeral=True)

    # ─────────────────────────────────────────────────────────────────
    # Request path
    # ─────────────────────────────────────────────────────────────────

    async def _central_config(self, message: discord.Message) -> GuildConfig | None:
        assert message.guild is not None
        try:
            config = await self.container.config_repository.find_by_guild_id(message.guild.id)
        except ConfigStoreUnavailable as e:
            logger.error(LogTemplates.CONFIG_STORE_FAILED, e.operation, message.guild.id, e.message)
            return None

        if config is None or not config.central_setup.is_active:
            return None
        if config.central_setup.channel_id != message.channel.id:
            return None
        return config

    def _is_command(self, message: discord.Message, config: GuildConfig) -> bool:
        prefixes = {config.settings.prefix, self.container.settings.discord.command_prefix}
        return any(message.content.startswith(prefix) for prefix in prefixes)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return
        if not isinstance(message.author, discord.Member):
            return

        config = await self._central_config(message)
        if config is None or self._is_command(message, config):
            return

        member = message.author
        voice = voice_channel_of(member)
        request = CentralRequest(
            guild_id=member.guild.id,
            channel_id=message.channel.id,
            user_id=member.id,
            user_name=member.display_name,
            voice_channel_id=voice.id if voice else None,
            role_ids=role_ids_of(member),
            content=message.content,
            bot_can_join=bot_can_join(member),
        )

        try:
            self.container.readiness_guard.require()
            result = await self.container.central_request_handler.handle(request)
        except DomainError as e:
            level = logging.WARNING if isinstance(e, EngineUnavailable) else logging.ERROR
            logger.log(level, LogTemplates.CENTRAL_REQUEST, request.guild_id, request.user_id, e.message)
            await self._fail(message, describe_error(e))
            return

        match result.status:
            case CentralRequestStatus.RATE_LIMITED:
                logger.debug(LogTemplates.SPAM_DROPPED, request.user_id, request.guild_id)
                await self._delete(message)
            case CentralRequestStatus.FORBIDDEN:
                await self._delete(message)
            case CentralRequestStatus.NOT_A_SONG:
                if config.central_setup.delete_messages:
                    await self._delete(message)
            case CentralRequestStatus.PLAYED:
                await self._react(message, SUCCESS_REACTION)
                await self._delete(message, delay=self._feedback_delay)
            case _:
                await self._fail(message, result.message or DiscordUIMessages.ERROR_GENERIC)

    async def _fail(self, message: discord.Message, reason: str) -> None:
        await self._react(message, FAILURE_REACTION)
        try:
            reply = await message.reply(reason, mention_author=False)
        except discord.HTTPException as e:
            logger.debug(LogTemplates.CENTRAL_FEEDBACK_FAILED, getattr(message.guild, "id", None), e)
        else:
            await self._delete(reply, delay=self._feedback_delay)
        await self._delete(message, delay=self._feedback_delay)

    async def _react(self, message: discord.Message, emoji: str) -> None:
        try:
            await message.add_reaction(emoji)
        except discord.HTTPException as e:
            logger.debug(LogTemplates.CENTRAL_FEEDBACK_FAILED, getattr(message.guild, "id", None), e)

    async def _delete(self, message: discord.Message, *, delay: float | None = None) -> None:
        try:
            await message.delete(delay=delay)
        except discord.HTTPException as e:
            logger.debug(LogTemplates.CENTRAL_FEEDBACK_FAILED, getattr(message.guild, "id", None), e)

    # ─────────────────────────────────────────────────────────────────
    # Upkeep
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        # on_ready fires again after reconnects; panels only need resetting once.
        if self._reset_done:
            return
        self._reset_done = True
        try:
            await self.container.central_panel_service.reset_on_startup()
        except ConfigStoreUnavailable as e:
            logger.error(LogTemplates.CONFIG_STORE_FAILED, e.operation, None, e.message)

    @tasks.loop(minutes=TimeConstants.SPAM_SWEEP_INTERVAL_MINUTES)
    async def sweep_limiter(self) -> None:
        evicted = self.container.spam_limiter.sweep()
        logger.debug(LogTemplates.SPAM_SWEEP, evicted)

    @sweep_limiter.before_loop
    async def _wait_ready(self) -> None:
        await self.bot.wait_until_ready()


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(CentralCog(bot, container))
