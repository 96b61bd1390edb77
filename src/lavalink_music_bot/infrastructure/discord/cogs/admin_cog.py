"""Admin and info commands: slash sync, system status and support links."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

import discord
from discord.ext import commands

from lavalink_music_bot.domain.shared.messages import (
    DiscordUIMessages,
    ErrorMessages,
    LogTemplates,
)

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)


def _is_bot_owner(ctx: commands.Context) -> bool:
    """Check if the user is a configured bot owner or the application owner."""
    app_info = ctx.bot.application
    if app_info and app_info.owner:
        if ctx.author.id == app_info.owner.id:
            return True

    container = getattr(ctx.bot, "container", None)
    if container:
        owner_ids = container.settings.discord.owner_ids
        if ctx.author.id in owner_ids:
            return True

    return False


def require_owner_or_admin():
    """Allow bot owners and guild admins."""

    async def predicate(ctx: commands.Context) -> bool:
        if not ctx.guild:
            return False

        if _is_bot_owner(ctx):
            return True

        if isinstance(ctx.author, discord.Member):
            permissions = ctx.author.guild_permissions
            if permissions.administrator or permissions.manage_guild:
                return True

        return False

    return commands.check(predicate)


class AdminCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def _reply(
        self,
        ctx: commands.Context,
        content: str | None = None,
        *,
        embed: discord.Embed | None = None,
    ) -> None:
        if embed:
            await ctx.send(content or "", embed=embed)
        else:
            await ctx.send(content or DiscordUIMessages.ERROR_GENERIC)

    async def cog_command_error(self, ctx: commands.Context, error: Exception) -> None:
        if isinstance(error, commands.CheckFailure):
            await self._reply(ctx, DiscordUIMessages.ERROR_REQUIRES_OWNER_OR_ADMIN)
            return

        if isinstance(error, commands.BadArgument):
            await self._reply(ctx, DiscordUIMessages.ERROR_INVALID_ARGUMENT)
            return

        original = getattr(error, "original", error)
        logger.exception(LogTemplates.ADMIN_COMMAND_FAILED, exc_info=original)
        await self._reply(ctx, DiscordUIMessages.ERROR_COMMAND_FAILED_SEE_LOGS)

    # ─────────────────────────────────────────────────────────────────
    # Slash Command Sync
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="sync", description="Sync slash commands.")
    @require_owner_or_admin()
    async def sync(self, ctx: commands.Context, scope: Literal["guild", "global"] = "guild") -> None:
        try:
            if scope == "global":
                synced = await self.bot.tree.sync()
                logger.info(LogTemplates.BOT_SYNCED_GLOBAL, len(synced))
                await self._reply(ctx, DiscordUIMessages.SUCCESS_SYNCED_GLOBAL.format(count=len(synced)))
                return

            assert ctx.guild is not None
            self.bot.tree.copy_global_to(guild=ctx.guild)
            synced = await self.bot.tree.sync(guild=ctx.guild)
            logger.info(LogTemplates.BOT_SYNCED_GUILD, len(synced), ctx.guild.id)
            await self._reply(ctx, DiscordUIMessages.SUCCESS_SYNCED_GUILD.format(count=len(synced)))
        except discord.HTTPException:
            logger.exception(LogTemplates.ADMIN_SYNC_COMMANDS_FAILED)
            await self._reply(ctx, DiscordUIMessages.ERROR_SYNC_FAILED)

    # ─────────────────────────────────────────────────────────────────
    # Diagnostics
    # ─────────────────────────────────────────────────────────────────

    def build_status_embed(self) -> discord.Embed:
        engine = self.container.playback_engine
        online = engine.node_available
        node_name = self.container.settings.lavalink.identifier

        embed = discord.Embed(
            title=DiscordUIMessages.STATUS_TITLE,
            color=discord.Color.green() if online else discord.Color.red(),
        )
        embed.add_field(name="Lavalink", value=f"{'🟢 online' if online else '🔴 offline'} ({node_name})")
        embed.add_field(name="Voice sessions", value=str(len(engine.sessions())))
        embed.add_field(name="Now playing", value=str(self.container.now_playing.active_guild_count))
        embed.add_field(name="Servers", value=str(len(self.bot.guilds)))
        latency = self.bot.latency
        if latency == latency:  # NaN before the first heartbeat
            embed.add_field(name="Latency", value=f"{latency * 1000:.0f} ms")
        return embed

    @commands.command(name="status", description="Show music system status.")
    @require_owner_or_admin()
    async def status(self, ctx: commands.Context) -> None:
        await self._reply(ctx, embed=self.build_status_embed())

    @commands.hybrid_command(name="support", description="Get the support server and website links.")
    async def support(self, ctx: commands.Context) -> None:
        links = self.container.settings.links
        await ctx.send(
            DiscordUIMessages.SUPPORT_TEXT.format(
                support_url=links.support_server_url, website_url=links.website_url
            )
        )


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(AdminCog(bot, container))
