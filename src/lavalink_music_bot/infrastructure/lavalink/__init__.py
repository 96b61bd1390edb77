"""Lavalink integration through wavelink."""

from lavalink_music_bot.infrastructure.lavalink.wavelink_node import WavelinkAudioNode

__all__ = [
    "WavelinkAudioNode",
]
