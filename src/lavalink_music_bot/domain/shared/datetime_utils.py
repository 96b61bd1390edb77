"""Date/time helpers.

- Always store and operate on timezone-aware UTC datetimes.
- ISO 8601 strings are what the database stores.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    return value.astimezone(UTC).isoformat()
