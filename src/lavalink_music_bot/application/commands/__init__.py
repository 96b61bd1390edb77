"""
Application Commands (CQRS Write Side)

Command objects and their handlers for write operations.
Commands represent intent to change the system state.
"""

from lavalink_music_bot.application.commands.central_request import (
    CentralRequest,
    CentralRequestHandler,
    CentralRequestResult,
    CentralRequestStatus,
)
from lavalink_music_bot.application.commands.join_channel import (
    JoinChannelCommand,
    JoinChannelHandler,
    JoinResult,
    JoinStatus,
)
from lavalink_music_bot.application.commands.play_track import (
    PlayTrackCommand,
    PlayTrackHandler,
    PlayTrackResult,
    PlayTrackStatus,
)
from lavalink_music_bot.application.commands.transport_control import (
    ControlRequest,
    TransportCommand,
    TransportControlHandler,
)

__all__ = [
    # Play
    "PlayTrackCommand",
    "PlayTrackHandler",
    "PlayTrackResult",
    "PlayTrackStatus",
    # Transport
    "ControlRequest",
    "TransportCommand",
    "TransportControlHandler",
    # Join
    "JoinChannelCommand",
    "JoinChannelHandler",
    "JoinResult",
    "JoinStatus",
    # Central
    "CentralRequest",
    "CentralRequestHandler",
    "CentralRequestResult",
    "CentralRequestStatus",
]
