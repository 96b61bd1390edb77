"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from functools import cache

from lavalink_music_bot.domain.shared.exceptions import DomainError
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages


@cache
def format_duration(milliseconds: int | None) -> str:
    if milliseconds is None:
        return "–"

    total_seconds = int(milliseconds) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_timestamp(value: str) -> int | None:
    """Parse a timestamp string into total milliseconds.

    Accepts formats like "90", "1:30", or "1:30:00".
    Returns None if the input is invalid.
    """
    value = value.strip()
    if not value:
        return None

    parts = value.split(":")
    if len(parts) > 3:
        return None

    try:
        int_parts = [int(p) for p in parts]
    except ValueError:
        return None

    if any(p < 0 for p in int_parts):
        return None

    seconds = 0
    for part in int_parts:
        seconds = seconds * 60 + part
    return seconds * 1000


def truncate(text: str, width: int) -> str:
    """Cut ``text`` to ``width`` characters, marking the cut with ``...``."""
    if len(text) <= width:
        return text
    return f"{text[:width]}..."


def describe_error(error: BaseException) -> str:
    """Text shown to a user for ``error``.

    Only user-facing domain errors are shown verbatim; anything else gets the
    generic message so internal detail never leaks into chat.
    """
    if isinstance(error, DomainError) and error.user_facing:
        return error.message
    return DiscordUIMessages.ERROR_GENERIC


def root_cause(error: BaseException) -> BaseException:
    """Unwrap command framework wrappers down to the exception that was raised."""
    seen: set[int] = set()
    while id(error) not in seen:
        seen.add(id(error))
        inner = getattr(error, "original", None)
        if not isinstance(inner, BaseException):
            break
        error = inner
    return error
