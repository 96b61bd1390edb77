"""Guards evaluated before a music action runs."""

from lavalink_music_bot.infrastructure.discord.guards.readiness import (
    MusicCapabilities,
    MusicUnavailable,
    ReadinessGuard,
)
from lavalink_music_bot.infrastructure.discord.guards.voice_guards import (
    bot_can_join,
    get_member,
    is_owner_or_admin,
    missing_central_permissions,
    role_ids_of,
    send_ephemeral,
    voice_channel_of,
)

__all__ = [
    "MusicCapabilities",
    "MusicUnavailable",
    "ReadinessGuard",
    "bot_can_join",
    "get_member",
    "is_owner_or_admin",
    "missing_central_permissions",
    "role_ids_of",
    "send_ephemeral",
    "voice_channel_of",
]
