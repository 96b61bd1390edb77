"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from enum import Enum, StrEnum

from pydantic import BaseModel, ConfigDict

from lavalink_music_bot.domain.shared.types import DurationMs, VolumePercent


class LoopMode(Enum):
    """Loop mode for a guild session.

    Cycle order: OFF -> TRACK -> QUEUE -> OFF.
    """

    OFF = "off"
    TRACK = "track"
    QUEUE = "queue"

    def next_mode(self) -> LoopMode:
        """Get the next loop mode in the cycle."""
        cycle = {
            LoopMode.OFF: LoopMode.TRACK,
            LoopMode.TRACK: LoopMode.QUEUE,
            LoopMode.QUEUE: LoopMode.OFF,
        }
        return cycle[self]

    @property
    def emoji(self) -> str:
        emojis = {
            LoopMode.OFF: "⏺️",
            LoopMode.TRACK: "🔂",
            LoopMode.QUEUE: "🔁",
        }
        return emojis[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


class SessionOrigin(StrEnum):
    """Which surface created a voice session."""

    COMMAND = "command"
    CENTRAL = "central"


class TrackEndReason(StrEnum):
    """Why the engine stopped rendering a track (Lavalink v4 reasons)."""

    FINISHED = "finished"
    LOAD_FAILED = "loadFailed"
    STOPPED = "stopped"
    REPLACED = "replaced"
    CLEANUP = "cleanup"

    @property
    def advances_queue(self) -> bool:
        """Only natural ends and load failures move the queue forward."""
        return self in (TrackEndReason.FINISHED, TrackEndReason.LOAD_FAILED)

    @property
    def honours_track_loop(self) -> bool:
        return self is TrackEndReason.FINISHED

    @classmethod
    def parse(cls, raw: str | None) -> TrackEndReason:
        if raw is None:
            return cls.FINISHED
        lowered = str(raw).lower()
        for reason in cls:
            if reason.value.lower() == lowered:
                return reason
        return cls.FINISHED


class TransportState(BaseModel):
    """Mutable transport knobs of a session."""

    model_config = ConfigDict(validate_assignment=True)

    playing: bool = False
    paused: bool = False
    volume: VolumePercent = 50
    loop_mode: LoopMode = LoopMode.OFF
    position_ms: DurationMs = 0


class TransportOpKind(StrEnum):
    """Transport operations the adapter accepts."""

    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    SKIP = "skip"
    SET_VOLUME = "set_volume"
    ADJUST_VOLUME = "adjust_volume"
    SET_LOOP = "set_loop"
    CYCLE_LOOP = "cycle_loop"
    JUMP_TO = "jump_to"
    MOVE_TRACK = "move_track"
    REMOVE_TRACK = "remove_track"
    CLEAR_QUEUE = "clear_queue"
    SHUFFLE_QUEUE = "shuffle_queue"
    SEEK = "seek"

    @property
    def changes_display(self) -> bool:
        """Whether a successful op must refresh the now-playing projection."""
        return self not in (TransportOpKind.STOP, TransportOpKind.SKIP, TransportOpKind.JUMP_TO)


class TransportOp(BaseModel):
    """A single transport request.

    Positions are 1-based, as typed by users.
    """

    model_config = ConfigDict(frozen=True)

    kind: TransportOpKind
    amount: int | None = None
    position: int | None = None
    target: int | None = None
    loop_mode: LoopMode | None = None

    @classmethod
    def pause(cls) -> TransportOp:
        return cls(kind=TransportOpKind.PAUSE)

    @classmethod
    def resume(cls) -> TransportOp:
        return cls(kind=TransportOpKind.RESUME)

    @classmethod
    def stop(cls) -> TransportOp:
        return cls(kind=TransportOpKind.STOP)

    @classmethod
    def skip(cls) -> TransportOp:
        return cls(kind=TransportOpKind.SKIP)

    @classmethod
    def set_volume(cls, volume: int) -> TransportOp:
        return cls(kind=TransportOpKind.SET_VOLUME, amount=volume)

    @classmethod
    def adjust_volume(cls, delta: int) -> TransportOp:
        return cls(kind=TransportOpKind.ADJUST_VOLUME, amount=delta)

    @classmethod
    def set_loop(cls, mode: LoopMode) -> TransportOp:
        return cls(kind=TransportOpKind.SET_LOOP, loop_mode=mode)

    @classmethod
    def cycle_loop(cls) -> TransportOp:
        return cls(kind=TransportOpKind.CYCLE_LOOP)

    @classmethod
    def jump_to(cls, position: int) -> TransportOp:
        return cls(kind=TransportOpKind.JUMP_TO, position=position)

    @classmethod
    def move_track(cls, source: int, target: int) -> TransportOp:
        return cls(kind=TransportOpKind.MOVE_TRACK, position=source, target=target)

    @classmethod
    def remove_track(cls, position: int) -> TransportOp:
        return cls(kind=TransportOpKind.REMOVE_TRACK, position=position)

    @classmethod
    def clear_queue(cls) -> TransportOp:
        return cls(kind=TransportOpKind.CLEAR_QUEUE)

    @classmethod
    def shuffle_queue(cls) -> TransportOp:
        return cls(kind=TransportOpKind.SHUFFLE_QUEUE)

    @classmethod
    def seek(cls, position_ms: int) -> TransportOp:
        return cls(kind=TransportOpKind.SEEK, amount=position_ms)
