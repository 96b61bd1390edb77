"""Playback lifecycle events.

The engine's callbacks are translated into this tagged union and fed, per guild,
through a single ordered handler.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from lavalink_music_bot.domain.shared.datetime_utils import utcnow
from lavalink_music_bot.domain.shared.types import DiscordSnowflake, UtcDatetimeField

from .value_objects import TrackEndReason


class LifecycleEvent(BaseModel):
    """Base class for all lifecycle events."""

    model_config = {"frozen": True}

    guild_id: DiscordSnowflake
    timestamp: UtcDatetimeField = Field(default_factory=utcnow)


class TrackStarted(LifecycleEvent):
    event_type: Literal["TrackStarted"] = "TrackStarted"
    identifier: str | None = None
    title: str = ""


class TrackEnded(LifecycleEvent):
    event_type: Literal["TrackEnded"] = "TrackEnded"
    reason: TrackEndReason = TrackEndReason.FINISHED
    identifier: str | None = None
    title: str = ""


class PlayerDisconnected(LifecycleEvent):
    event_type: Literal["PlayerDisconnected"] = "PlayerDisconnected"
    channel_id: DiscordSnowflake | None = None


class NodeDisconnected(LifecycleEvent):
    event_type: Literal["NodeDisconnected"] = "NodeDisconnected"
    node_identifier: str = ""


PlaybackEvent = Annotated[
    TrackStarted | TrackEnded | PlayerDisconnected | NodeDisconnected,
    Field(discriminator="event_type"),
]
