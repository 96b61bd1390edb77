"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from lavalink_music_bot.application.interfaces.audio_node import AudioNode, LoadType, ResolveResult
from lavalink_music_bot.application.interfaces.display_sinks import (
    CentralPanelSink,
    PanelHealth,
    PresenceSink,
    VoiceMetadataSink,
)

__all__ = [
    "AudioNode",
    "LoadType",
    "ResolveResult",
    "CentralPanelSink",
    "PanelHealth",
    "PresenceSink",
    "VoiceMetadataSink",
]
