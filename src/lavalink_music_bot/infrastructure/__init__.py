"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (aiosqlite guild configuration store)
- Discord (bot, cogs, views, display sinks)
- Lavalink (wavelink node adapter and event translation)
"""

from lavalink_music_bot.infrastructure.discord.bot import create_bot
from lavalink_music_bot.infrastructure.lavalink.wavelink_node import WavelinkAudioNode
from lavalink_music_bot.infrastructure.persistence.database import Database

__all__ = [
    "create_bot",
    "WavelinkAudioNode",
    "Database",
]
