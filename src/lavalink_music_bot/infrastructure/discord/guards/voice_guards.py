"""Reusable member and voice-channel helpers for cogs and panel buttons.

These are free functions that accept explicit dependencies rather than relying
on a specific cog instance, making them usable from any cog.
"""

from __future__ import annotations

from collections.abc import Collection

import discord

from lavalink_music_bot.domain.shared.messages import DiscordUIMessages


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Send an ephemeral message, handling both fresh and already-responded interactions."""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """Validate that the interaction comes from a guild member. Returns None with error on failure."""
    if not interaction.guild or not isinstance(interaction.user, discord.Member):
        await send_ephemeral(interaction, DiscordUIMessages.ERROR_SERVER_ONLY)
        return None
    return interaction.user


def voice_channel_of(member: discord.Member) -> discord.VoiceChannel | discord.StageChannel | None:
    if member.voice is None:
        return None
    return member.voice.channel


def role_ids_of(member: discord.Member) -> frozenset[int]:
    return frozenset(role.id for role in member.roles)


def bot_can_join(member: discord.Member) -> bool:
    """Whether the bot has Connect and Speak in the member's voice channel.

    True when the member is not in voice; that case is denied for its own reason.
    """
    channel = voice_channel_of(member)
    if channel is None:
        return True
    permissions = channel.permissions_for(member.guild.me)
    return permissions.connect and permissions.speak


def missing_central_permissions(channel: discord.TextChannel) -> list[str]:
    """Permissions the bot lacks to run a central panel in ``channel``."""
    permissions = channel.permissions_for(channel.guild.me)
    required = {
        "Send Messages": permissions.send_messages,
        "Embed Links": permissions.embed_links,
        "Manage Messages": permissions.manage_messages,
    }
    return [name for name, granted in required.items() if not granted]


def is_owner_or_admin(user: discord.Member | discord.User, owner_ids: Collection[int]) -> bool:
    if user.id in owner_ids:
        return True
    return isinstance(user, discord.Member) and user.guild_permissions.administrator
