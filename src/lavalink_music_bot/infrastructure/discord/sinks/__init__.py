"""Discord renderings of the now-playing state."""

from __future__ import annotations

from lavalink_music_bot.infrastructure.discord.sinks.central_panel_sink import DiscordCentralPanelSink
from lavalink_music_bot.infrastructure.discord.sinks.presence import PresenceManager
from lavalink_music_bot.infrastructure.discord.sinks.voice_metadata import (
    DiscordVoiceMetadataSink,
    NameStrategy,
    TopicStrategy,
    VoiceStatusStrategy,
)

__all__ = [
    "DiscordCentralPanelSink",
    "DiscordVoiceMetadataSink",
    "NameStrategy",
    "PresenceManager",
    "TopicStrategy",
    "VoiceStatusStrategy",
]
