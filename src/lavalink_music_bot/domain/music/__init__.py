"""
Music Bounded Context

Domain logic for tracks, the per-guild voice session and its queue.
"""

from lavalink_music_bot.domain.music.entities import DisplayProjection, GuildVoiceSession, Track
from lavalink_music_bot.domain.music.events import (
    NodeDisconnected,
    PlaybackEvent,
    PlayerDisconnected,
    TrackEnded,
    TrackStarted,
)
from lavalink_music_bot.domain.music.value_objects import (
    LoopMode,
    SessionOrigin,
    TrackEndReason,
    TransportOp,
    TransportOpKind,
    TransportState,
)

__all__ = [
    # Entities
    "Track",
    "GuildVoiceSession",
    "DisplayProjection",
    # Value Objects
    "LoopMode",
    "SessionOrigin",
    "TrackEndReason",
    "TransportOp",
    "TransportOpKind",
    "TransportState",
    # Events
    "PlaybackEvent",
    "TrackStarted",
    "TrackEnded",
    "PlayerDisconnected",
    "NodeDisconnected",
]
