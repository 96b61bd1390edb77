"""Discord cogs - command handlers and event listeners."""

from lavalink_music_bot.infrastructure.discord.cogs.admin_cog import AdminCog
from lavalink_music_bot.infrastructure.discord.cogs.central_cog import CentralCog
from lavalink_music_bot.infrastructure.discord.cogs.event_cog import EventCog
from lavalink_music_bot.infrastructure.discord.cogs.music_cog import MusicCog

__all__ = [
    "MusicCog",
    "CentralCog",
    "AdminCog",
    "EventCog",
]
