"""Base exception classes for domain-level errors."""

from __future__ import annotations

from typing import ClassVar


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    user_facing: ClassVar[bool] = False

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class PolicyDenied(DomainError):
    """An action was refused. Expected and shown to the user as-is."""

    user_facing = True

    def __init__(self, reason: str, code: str | None = None) -> None:
        super().__init__(reason, code=code or "POLICY_DENIED")
        self.reason = reason


class QueuePositionError(PolicyDenied):
    """A 1-based queue position fell outside the current queue."""

    def __init__(self, position: int, queue_length: int, message: str | None = None) -> None:
        if message is None:
            if queue_length == 0:
                message = "The queue is empty!"
            else:
                message = f"Invalid position! Please choose between 1 and {queue_length}."
        super().__init__(message, code="QUEUE_POSITION_OUT_OF_RANGE")
        self.position = position
        self.queue_length = queue_length


class ResolverEmpty(DomainError):
    """The resolver found nothing for a query."""

    user_facing = True

    def __init__(self, query: str, message: str | None = None) -> None:
        super().__init__(message or "No results found", code="RESOLVER_EMPTY")
        self.query = query


class EngineUnavailable(DomainError):
    """The playback engine node cannot be reached.

    Shown to users only through the fixed offline text; ``detail`` stays in the logs.
    """

    user_facing = True

    def __init__(self, detail: str | None = None) -> None:
        super().__init__("❌ The music system is currently offline. Please try again later.", code="ENGINE_UNAVAILABLE")
        self.detail = detail


class ConfigStoreUnavailable(DomainError):
    """The guild configuration store failed."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        msg = message or f"Guild configuration store failed during '{operation}'"
        super().__init__(msg, code="CONFIG_STORE_UNAVAILABLE")
        self.operation = operation


class SinkRenderFailure(DomainError):
    """A display sink could not render (embed edit or voice metadata write)."""

    def __init__(self, sink: str, detail: str) -> None:
        super().__init__(f"{sink} render failed: {detail}", code="SINK_RENDER_FAILURE")
        self.sink = sink
        self.detail = detail
