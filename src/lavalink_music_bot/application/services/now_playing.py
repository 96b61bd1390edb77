"""Now-Playing Projection - mirrors each guild's display state to its sinks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING

from ...domain.shared.exceptions import SinkRenderFailure
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import DisplayProjection
    from ..interfaces.display_sinks import CentralPanelSink, PresenceSink, VoiceMetadataSink

logger = logging.getLogger(__name__)


class NowPlayingProjection:
    """Per-guild Idle/Active state machine rendered to two independent sinks.

    ``show`` moves a guild to (or keeps it in) Active, ``clear`` moves it to
    Idle. Each transition renders the central panel and the voice channel
    metadata concurrently; a failure in one never blocks the other and is
    never raised to the caller. Callers must serialize calls per guild.
    """

    def __init__(
        self,
        *,
        panel_sink: CentralPanelSink,
        voice_sink: VoiceMetadataSink,
        presence_sink: PresenceSink | None = None,
    ) -> None:
        self._panel_sink = panel_sink
        self._voice_sink = voice_sink
        self._presence_sink = presence_sink
        self._active: dict[int, DisplayProjection] = {}
        # guild -> (channel, title) last written to voice metadata
        self._annotated: dict[int, tuple[int, str]] = {}

    def current(self, guild_id: int) -> DisplayProjection | None:
        return self._active.get(guild_id)

    def is_active(self, guild_id: int) -> bool:
        return guild_id in self._active

    @property
    def active_guild_count(self) -> int:
        return len(self._active)

    async def show(self, projection: DisplayProjection) -> None:
        """Render ``projection`` as the guild's Active state."""
        guild_id = projection.guild_id
        self._active[guild_id] = projection
        logger.debug(LogTemplates.PROJECTION_ACTIVE, guild_id, projection.title)

        jobs: list[tuple[str, Awaitable[object]]] = [
            ("central-panel", self._panel_sink.render(guild_id, projection)),
        ]
        if projection.voice_channel_id is not None:
            jobs.append(("voice-metadata", self._annotate(projection)))
        if self._presence_sink is not None:
            jobs.append(("presence", self._presence_sink.show(projection.title)))
        await self._render_all(guild_id, jobs)

    async def clear(self, guild_id: int, voice_channel_id: int | None = None) -> None:
        """Move the guild to Idle. Safe to call repeatedly."""
        previous = self._active.pop(guild_id, None)
        logger.debug(LogTemplates.PROJECTION_IDLE, guild_id)

        channel_id = voice_channel_id
        annotated = self._annotated.get(guild_id)
        if annotated is not None:
            channel_id = annotated[0]
        elif previous is not None and previous.voice_channel_id is not None:
            channel_id = previous.voice_channel_id

        jobs: list[tuple[str, Awaitable[object]]] = [
            ("central-panel", self._panel_sink.render(guild_id, None)),
        ]
        if channel_id is not None:
            jobs.append(("voice-metadata", self._restore(guild_id, channel_id)))
        if self._presence_sink is not None and not self._active:
            jobs.append(("presence", self._presence_sink.reset()))
        await self._render_all(guild_id, jobs)

    async def _annotate(self, projection: DisplayProjection) -> None:
        guild_id = projection.guild_id
        channel_id = projection.voice_channel_id
        if channel_id is None:
            return

        previous = self._annotated.get(guild_id)
        if previous == (channel_id, projection.title):
            return
        if previous is not None and previous[0] != channel_id:
            # Session moved: put the old channel back before tagging the new one.
            await self._restore(guild_id, previous[0])

        if await self._voice_sink.annotate(guild_id, channel_id, projection.title):
            self._annotated[guild_id] = (channel_id, projection.title)

    async def _restore(self, guild_id: int, channel_id: int) -> None:
        try:
            await self._voice_sink.restore(guild_id, channel_id)
        finally:
            annotated = self._annotated.get(guild_id)
            if annotated is not None and annotated[0] == channel_id:
                del self._annotated[guild_id]

    async def _render_all(self, guild_id: int, jobs: list[tuple[str, Awaitable[object]]]) -> None:
        async def safe_call(sink: str, job: Awaitable[object]) -> None:
            try:
                await job
            except SinkRenderFailure as e:
                logger.debug(LogTemplates.SINK_FAILED, sink, guild_id, e.detail)
            except Exception:
                logger.exception(LogTemplates.SINK_UNEXPECTED_ERROR, sink, guild_id)

        async with asyncio.TaskGroup() as tg:
            for sink, job in jobs:
                tg.create_task(safe_call(sink, job))
