"""Sliding-window rate limiter for the central channel message path."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable

from ...domain.shared.constants import TimeConstants
from ...domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class SpamLimiter:
    """Accept at most ``threshold`` messages per user within ``window_seconds``.

    Keyed by (guild, user). Rejected messages are not recorded, so a user who
    keeps typing regains a slot as soon as the oldest accepted message leaves
    the window. Stale keys are evicted only by :meth:`sweep`, which the caller
    schedules.
    """

    def __init__(
        self,
        *,
        threshold: int = 3,
        window_seconds: float = TimeConstants.SPAM_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._threshold = threshold
        self._window = window_seconds
        self._clock = clock
        self._hits: dict[tuple[int, int], deque[float]] = {}

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def window_seconds(self) -> float:
        return self._window

    def allow(self, guild_id: int, user_id: int) -> bool:
        now = self._clock()
        key = (guild_id, user_id)
        hits = self._hits.get(key)
        if hits is None:
            hits = deque()
            self._hits[key] = hits

        while hits and now - hits[0] >= self._window:
            hits.popleft()

        if len(hits) >= self._threshold:
            logger.debug(LogTemplates.SPAM_DROPPED, user_id, guild_id)
            return False

        hits.append(now)
        return True

    def sweep(self) -> int:
        """Forget users with no accepted message in the last two windows."""
        now = self._clock()
        horizon = self._window * 2
        evicted = 0
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and now - hits[0] >= horizon:
                hits.popleft()
            if not hits:
                del self._hits[key]
                evicted += 1
        if evicted:
            logger.debug(LogTemplates.SPAM_SWEEP, evicted)
        return evicted

    def __len__(self) -> int:
        return len(self._hits)
