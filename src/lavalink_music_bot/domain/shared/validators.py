"""Shared validators for domain models and settings.

Discord snowflake IDs arrive as ints from the gateway but as strings from stored
documents and environment variables, so the helpers here accept both.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from lavalink_music_bot.domain.shared.constants import LimitConstants
from lavalink_music_bot.domain.shared.messages import ErrorMessages


def validate_discord_snowflake(value: int) -> int:
    """Validate a Discord snowflake ID.

    Args:
        value: The snowflake ID to validate.

    Returns:
        The validated snowflake ID.

    Raises:
        ValueError: If the snowflake ID is invalid.
    """
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= LimitConstants.MAX_DISCORD_SNOWFLAKE:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value


def coerce_snowflake(value: Any) -> int | None:
    """Turn ``"123"``/``123``/``None``/``""`` into a validated snowflake or None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    return validate_discord_snowflake(int(value))


def coerce_snowflakes(values: Iterable[Any] | None) -> tuple[int, ...]:
    """Coerce a list of IDs, dropping empties and duplicates while keeping order."""
    if values is None:
        return ()
    if isinstance(values, str | int):
        values = [values]
    seen: dict[int, None] = {}
    for raw in values:
        snowflake = coerce_snowflake(raw)
        if snowflake is not None:
            seen.setdefault(snowflake, None)
    return tuple(seen)
