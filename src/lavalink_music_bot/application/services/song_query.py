"""Heuristic that tells song requests apart from chatter in the central channel."""

from __future__ import annotations

import re

from ...domain.shared.constants import LimitConstants

_RESTRICTED = (
    re.compile(r"discord\.gg", re.IGNORECASE),
    re.compile(r"@everyone", re.IGNORECASE),
    re.compile(r"@here", re.IGNORECASE),
)

_PLAIN_TEXT = re.compile(r"^[^/*?|<>]+$")
_MUSIC_URL = re.compile(r"https?://(www\.)?(youtube|youtu\.be|spotify)", re.IGNORECASE)


def is_song_query(
    content: str,
    *,
    min_length: int = LimitConstants.MIN_QUERY_LENGTH,
    max_length: int = LimitConstants.MAX_QUERY_LENGTH,
) -> bool:
    """Return True when ``content`` looks like a song name or a music link.

    Text must be longer than ``min_length`` and at most ``max_length`` characters,
    carry no invites or mass mentions, and be either plain text without
    ``/ * ? | < >`` or a YouTube/Spotify URL.
    """
    content = content.strip()
    if not min_length < len(content) <= max_length:
        return False
    if any(pattern.search(content) for pattern in _RESTRICTED):
        return False
    return bool(_PLAIN_TEXT.match(content) or _MUSIC_URL.search(content))
