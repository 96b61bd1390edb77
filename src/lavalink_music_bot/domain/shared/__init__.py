"""
Shared Domain Kernel

Contains constants, messages, types and exceptions shared across all bounded contexts.
"""

from lavalink_music_bot.domain.shared.exceptions import (
    ConfigStoreUnavailable,
    DomainError,
    EngineUnavailable,
    PolicyDenied,
    QueuePositionError,
    ResolverEmpty,
    SinkRenderFailure,
)

__all__ = [
    "DomainError",
    "PolicyDenied",
    "QueuePositionError",
    "ResolverEmpty",
    "EngineUnavailable",
    "ConfigStoreUnavailable",
    "SinkRenderFailure",
]
