"""
Guild Bounded Context

Per-guild configuration: central system setup and playback settings.
"""

from lavalink_music_bot.domain.guild.entities import CentralSetup, GuildConfig, GuildSettings
from lavalink_music_bot.domain.guild.repository import GuildConfigRepository

__all__ = [
    "CentralSetup",
    "GuildConfig",
    "GuildSettings",
    "GuildConfigRepository",
]
