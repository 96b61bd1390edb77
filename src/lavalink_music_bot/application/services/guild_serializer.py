"""Per-guild FIFO execution.

Every state-changing operation for a guild (commands, button presses, central
requests and playback lifecycle events) runs through one queue per guild, one
job at a time and in submission order. Different guilds never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ...domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

T = TypeVar("T")

Job = Callable[[], Awaitable[Any]]


class GuildSerializer:
    """Single-writer actor keyed by guild id.

    A worker task is spawned when a guild's queue receives work and exits once
    the queue drains, so idle guilds hold no tasks.
    """

    def __init__(self) -> None:
        self._queues: dict[int, asyncio.Queue[tuple[Job, asyncio.Future[Any] | None]]] = {}
        self._workers: dict[int, asyncio.Task[None]] = {}
        self._closed = False

    async def run(self, guild_id: int, job: Callable[[], Awaitable[T]]) -> T:
        """Queue ``job`` behind earlier work for the guild and wait for its result.

        Exceptions raised by the job propagate to the caller. Called from inside a
        job of the same guild, the job runs inline instead of deadlocking.
        """
        if self._is_worker_for(guild_id):
            return await job()

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._enqueue(guild_id, job, future)
        return await future

    def submit(self, guild_id: int, job: Job) -> None:
        """Queue ``job`` without waiting; failures are logged."""
        self._enqueue(guild_id, job, None)

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self, guild_id: int) -> int:
        queue = self._queues.get(guild_id)
        return queue.qsize() if queue is not None else 0

    async def join(self, guild_id: int) -> None:
        """Wait until everything queued for the guild so far has run."""
        await self.run(guild_id, _noop)

    async def shutdown(self) -> None:
        """Cancel all workers; pending callers receive CancelledError."""
        self._closed = True
        workers = list(self._workers.values())
        for worker in workers:
            worker.cancel()
        for worker in workers:
            try:
                await worker
            except asyncio.CancelledError:
                pass
        for queue in self._queues.values():
            while not queue.empty():
                _, future = queue.get_nowait()
                if future is not None and not future.done():
                    future.cancel()
        self._queues.clear()
        self._workers.clear()
        logger.info(LogTemplates.SERIALIZER_SHUTDOWN, len(workers))

    # ─── Internals ──────────────────────────────────────────────────────

    def _is_worker_for(self, guild_id: int) -> bool:
        worker = self._workers.get(guild_id)
        return worker is not None and worker is asyncio.current_task()

    def _enqueue(self, guild_id: int, job: Job, future: asyncio.Future[Any] | None) -> None:
        if self._closed:
            raise RuntimeError("GuildSerializer is shut down")

        queue = self._queues.get(guild_id)
        if queue is None:
            queue = asyncio.Queue()
            self._queues[guild_id] = queue
        queue.put_nowait((job, future))

        worker = self._workers.get(guild_id)
        if worker is None or worker.done():
            self._workers[guild_id] = asyncio.create_task(
                self._drain(guild_id, queue), name=f"guild-serializer-{guild_id}"
            )

    async def _drain(self, guild_id: int, queue: asyncio.Queue[tuple[Job, asyncio.Future[Any] | None]]) -> None:
        try:
            while not queue.empty():
                job, future = queue.get_nowait()
                if future is not None and future.cancelled():
                    continue
                try:
                    result = await job()
                except asyncio.CancelledError:
                    if future is not None and not future.done():
                        future.cancel()
                    raise
                except Exception as exc:
                    if future is None:
                        logger.exception(LogTemplates.SERIALIZER_JOB_FAILED, guild_id)
                    elif not future.done():
                        future.set_exception(exc)
                else:
                    if future is not None and not future.done():
                        future.set_result(result)
        finally:
            if self._workers.get(guild_id) is asyncio.current_task():
                del self._workers[guild_id]
                if queue.empty() and self._queues.get(guild_id) is queue:
                    del self._queues[guild_id]


async def _noop() -> None:
    return None
