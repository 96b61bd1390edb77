# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting constants, messages, types and exceptions
- music/: Track, voice session, queue and lifecycle events
- guild/: Per-guild configuration document and its repository contract
- policy/: Session policy engine (allow / deny / takeover)
"""

from lavalink_music_bot.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
