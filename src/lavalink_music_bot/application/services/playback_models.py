"""Result models returned by the playback engine adapter."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from ...domain.music.entities import Track
from ...domain.music.value_objects import LoopMode, TransportOpKind
from ...domain.shared.types import NonNegativeInt


class EnqueueStatus(Enum):
    TRACK = "track"
    PLAYLIST = "playlist"
    NOT_FOUND = "not_found"


class EnqueueResult(BaseModel):
    """Outcome of resolving a query into the queue."""

    model_config = ConfigDict(frozen=True)

    status: EnqueueStatus
    tracks: tuple[Track, ...] = ()
    playlist_name: str | None = None
    # 1-based queue position of the first added track; 0 when it started right away.
    position: NonNegativeInt = 0
    started_playing: bool = False

    @property
    def track(self) -> Track | None:
        return self.tracks[0] if self.tracks else None

    @classmethod
    def not_found(cls) -> EnqueueResult:
        return cls(status=EnqueueStatus.NOT_FOUND)


class TransportStatus(Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    DENIED = "denied"


class TransportResult(BaseModel):
    """Outcome of a transport operation, with the user-facing text."""

    model_config = ConfigDict(frozen=True)

    kind: TransportOpKind
    status: TransportStatus
    message: str
    track: Track | None = None
    count: NonNegativeInt | None = None
    volume: int | None = None
    loop_mode: LoopMode | None = None

    @property
    def is_success(self) -> bool:
        return self.status is not TransportStatus.DENIED

    @classmethod
    def applied(cls, kind: TransportOpKind, message: str, **fields: object) -> TransportResult:
        return cls(kind=kind, status=TransportStatus.APPLIED, message=message, **fields)

    @classmethod
    def unchanged(cls, kind: TransportOpKind, message: str) -> TransportResult:
        return cls(kind=kind, status=TransportStatus.UNCHANGED, message=message)

    @classmethod
    def denied(cls, kind: TransportOpKind, message: str) -> TransportResult:
        return cls(kind=kind, status=TransportStatus.DENIED, message=message)
