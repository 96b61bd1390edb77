"""Translation of wavelink payloads into playback lifecycle events."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lavalink_music_bot.domain.music.events import NodeDisconnected, TrackEnded, TrackStarted
from lavalink_music_bot.domain.music.value_objects import TrackEndReason

if TYPE_CHECKING:
    import wavelink


def _guild_id(player: wavelink.Player | None) -> int | None:
    if player is None or player.guild is None:
        return None
    return player.guild.id


def track_started(payload: wavelink.TrackStartEventPayload) -> TrackStarted | None:
    guild_id = _guild_id(payload.player)
    if guild_id is None:
        return None
    return TrackStarted(guild_id=guild_id, identifier=payload.track.identifier, title=payload.track.title)


def track_ended(payload: wavelink.TrackEndEventPayload) -> TrackEnded | None:
    guild_id = _guild_id(payload.player)
    if guild_id is None:
        return None
    return TrackEnded(
        guild_id=guild_id,
        reason=TrackEndReason.parse(payload.reason),
        identifier=payload.track.identifier,
        title=payload.track.title,
    )


def track_stuck(payload: wavelink.TrackStuckEventPayload) -> TrackEnded | None:
    """A stuck track is skipped like one that failed to load."""
    guild_id = _guild_id(payload.player)
    if guild_id is None:
        return None
    return TrackEnded(
        guild_id=guild_id,
        reason=TrackEndReason.LOAD_FAILED,
        identifier=payload.track.identifier,
        title=payload.track.title,
    )


def node_closed(node: wavelink.Node, players: list[wavelink.Player]) -> list[NodeDisconnected]:
    """One event per guild whose player was bound to the closed node."""
    events = []
    for player in players:
        guild_id = _guild_id(player)
        if guild_id is not None:
            events.append(NodeDisconnected(guild_id=guild_id, node_identifier=node.identifier))
    return events
