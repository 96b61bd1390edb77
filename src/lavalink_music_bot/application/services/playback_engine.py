"""Playback Engine Adapter - owns guild voice sessions on top of the audio node."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.music.entities import DisplayProjection, GuildVoiceSession, Track
from ...domain.music.events import (
    NodeDisconnected,
    PlaybackEvent,
    PlayerDisconnected,
    TrackEnded,
    TrackStarted,
)
from ...domain.music.value_objects import (
    SessionOrigin,
    TransportOp,
    TransportOpKind,
    TransportState,
)
from ...domain.shared.constants import LimitConstants, TimeConstants
from ...domain.shared.exceptions import (
    ConfigStoreUnavailable,
    EngineUnavailable,
    QueuePositionError,
    ResolverEmpty,
)
from ...domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from ...utils.reply import format_duration
from .playback_models import EnqueueResult, EnqueueStatus, TransportResult, TransportStatus

if TYPE_CHECKING:
    from ...domain.guild.repository import GuildConfigRepository
    from ..interfaces.audio_node import AudioNode
    from .now_playing import NowPlayingProjection

logger = logging.getLogger(__name__)


class PlaybackEngineAdapter:
    """Session registry plus every mutation of queue and transport.

    At most one live session exists per guild. Callers run each operation
    inside the guild's FIFO; the connect lock additionally keeps
    ``ensure_session`` safe when called outside it.
    """

    def __init__(
        self,
        *,
        node: AudioNode,
        projection: NowPlayingProjection,
        config_repository: GuildConfigRepository,
        resolve_timeout: float = TimeConstants.RESOLVE_TIMEOUT,
        default_volume: int = LimitConstants.DEFAULT_VOLUME,
        volume_floor: int = LimitConstants.BUTTON_VOLUME_FLOOR,
    ) -> None:
        self._node = node
        self._projection = projection
        self._config_repo = config_repository
        self._resolve_timeout = resolve_timeout
        self._default_volume = default_volume
        self._volume_floor = volume_floor
        self._sessions: dict[int, GuildVoiceSession] = {}
        self._connect_locks: dict[int, asyncio.Lock] = {}

    # ─── Session registry ───────────────────────────────────────────────

    def get_session(self, guild_id: int) -> GuildVoiceSession | None:
        session = self._sessions.get(guild_id)
        if session is None or session.destroyed:
            return None
        return session

    def sessions(self) -> list[GuildVoiceSession]:
        return [s for s in self._sessions.values() if not s.destroyed]

    @property
    def node_available(self) -> bool:
        return self._node.is_available()

    async def ensure_session(
        self,
        guild_id: int,
        voice_channel_id: int,
        text_channel_id: int | None = None,
        *,
        origin: SessionOrigin = SessionOrigin.COMMAND,
    ) -> GuildVoiceSession:
        """Return the guild's session in ``voice_channel_id``, moving or creating it as needed."""
        lock = self._connect_locks.setdefault(guild_id, asyncio.Lock())
        async with lock:
            session = self.get_session(guild_id)
            if session is not None:
                if session.voice_channel_id == voice_channel_id:
                    return session
                previous = session.voice_channel_id
                await self._node.move_to(guild_id, voice_channel_id)
                session.relocate(voice_channel_id, text_channel_id)
                logger.info(LogTemplates.SESSION_RELOCATED, guild_id, previous, voice_channel_id)
                await self._refresh(session)
                return session

            if not self._node.is_available():
                raise EngineUnavailable(ErrorMessages.NO_CONNECTED_NODE)

            volume = await self._guild_default_volume(guild_id)
            await self._node.connect(guild_id, voice_channel_id)
            session = GuildVoiceSession(
                guild_id=guild_id,
                voice_channel_id=voice_channel_id,
                text_channel_id=text_channel_id,
                origin=origin,
                transport=TransportState(volume=volume),
            )
            self._sessions[guild_id] = session
            logger.info(LogTemplates.SESSION_CREATED, guild_id, voice_channel_id, origin.value)
            return session

    async def destroy_session(self, guild_id: int, reason: str) -> bool:
        """Tear down the guild's session and move its projection to Idle."""
        session = self._sessions.pop(guild_id, None)
        channel_id = session.voice_channel_id if session is not None else None
        if session is not None:
            session.destroyed = True
            session.reset()
            try:
                await self._node.disconnect(guild_id)
            except EngineUnavailable as e:
                logger.warning(LogTemplates.NODE_ERROR, guild_id, e.detail)
            logger.info(LogTemplates.SESSION_DESTROYED, guild_id, reason)

        await self._projection.clear(guild_id, channel_id)
        return session is not None

    async def close(self) -> None:
        for guild_id in list(self._sessions):
            await self.destroy_session(guild_id, "shutdown")

    # ─── Enqueue ────────────────────────────────────────────────────────

    async def enqueue(
        self,
        session: GuildVoiceSession,
        query: str,
        requester_id: int,
        requester_name: str | None = None,
    ) -> EnqueueResult:
        """Resolve ``query`` and append the result; starts playback when idle."""
        try:
            async with asyncio.timeout(self._resolve_timeout):
                resolved = await self._node.resolve(query)
        except TimeoutError as e:
            raise EngineUnavailable(
                ErrorMessages.RESOLVE_TIMEOUT.format(seconds=self._resolve_timeout)
            ) from e
        except ResolverEmpty:
            logger.debug(LogTemplates.RESOLVE_EMPTY, query)
            return EnqueueResult.not_found()

        if not resolved.tracks:
            logger.debug(LogTemplates.RESOLVE_EMPTY, query)
            return EnqueueResult.not_found()

        candidates = resolved.tracks if resolved.is_playlist else resolved.tracks[:1]
        tracks = tuple(t.with_requester(requester_id, requester_name) for t in candidates)

        position = session.append(list(tracks))
        logger.info(LogTemplates.QUEUE_ENQUEUED, len(tracks), session.guild_id, resolved.load_type.value)

        started = False
        if session.is_idle:
            await self._advance(session, honour_track_loop=False)
            started = session.current is tracks[0]
        else:
            await self._refresh(session)

        if resolved.is_playlist:
            return EnqueueResult(
                status=EnqueueStatus.PLAYLIST,
                tracks=tracks,
                playlist_name=resolved.playlist_name or "Unknown Playlist",
                position=0 if started else position,
                started_playing=started,
            )
        return EnqueueResult(
            status=EnqueueStatus.TRACK,
            tracks=tracks,
            position=0 if started else position,
            started_playing=started,
        )

    # ─── Transport ──────────────────────────────────────────────────────

    async def apply_transport(self, session: GuildVoiceSession, op: TransportOp) -> TransportResult:
        """Apply one transport operation; out-of-range positions come back denied."""
        try:
            result = await self._apply(session, op)
        except QueuePositionError as e:
            return TransportResult.denied(op.kind, f"❌ {e.reason}")

        if result.status is TransportStatus.APPLIED:
            logger.debug(LogTemplates.PLAYBACK_TRANSPORT, op.kind.value, session.guild_id)
            if op.kind.changes_display and not session.destroyed:
                await self._refresh(session)
        return result

    async def _apply(self, session: GuildVoiceSession, op: TransportOp) -> TransportResult:
        guild_id = session.guild_id
        transport = session.transport

        match op.kind:
            case TransportOpKind.PAUSE:
                if session.current is None:
                    return TransportResult.denied(op.kind, DiscordUIMessages.POLICY_NOTHING_PLAYING)
                if transport.paused:
                    return TransportResult.unchanged(op.kind, DiscordUIMessages.TRANSPORT_ALREADY_PAUSED)
                await self._node.pause(guild_id, True)
                transport.paused = True
                return TransportResult.applied(op.kind, DiscordUIMessages.TRANSPORT_PAUSED)

            case TransportOpKind.RESUME:
                if not transport.paused:
                    return TransportResult.unchanged(op.kind, DiscordUIMessages.TRANSPORT_NOT_PAUSED)
                await self._node.pause(guild_id, False)
                transport.paused = False
                return TransportResult.applied(op.kind, DiscordUIMessages.TRANSPORT_RESUMED)

            case TransportOpKind.STOP:
                await self.destroy_session(guild_id, "stopped")
                return TransportResult.applied(op.kind, DiscordUIMessages.TRANSPORT_STOPPED)

            case TransportOpKind.SKIP:
                skipped = session.current
                if skipped is None:
                    return TransportResult.denied(op.kind, DiscordUIMessages.POLICY_NOTHING_PLAYING)
                upcoming = await self._advance(session, honour_track_loop=False)
                template = (
                    DiscordUIMessages.TRANSPORT_SKIPPED
                    if upcoming is not None
                    else DiscordUIMessages.TRANSPORT_SKIPPED_LAST
                )
                return TransportResult.applied(op.kind, template.format(title=skipped.title), track=skipped)

            case TransportOpKind.SET_VOLUME | TransportOpKind.ADJUST_VOLUME:
                amount = op.amount or 0
                if op.kind is TransportOpKind.SET_VOLUME:
                    volume = _clamp(amount, LimitConstants.MIN_VOLUME, LimitConstants.MAX_VOLUME)
                else:
                    volume = _clamp(transport.volume + amount, self._volume_floor, LimitConstants.MAX_VOLUME)
                await self._node.set_volume(guild_id, volume)
                transport.volume = volume
                return TransportResult.applied(
                    op.kind, DiscordUIMessages.TRANSPORT_VOLUME.format(volume=volume), volume=volume
                )

            case TransportOpKind.SET_LOOP | TransportOpKind.CYCLE_LOOP:
                if op.kind is TransportOpKind.SET_LOOP and op.loop_mode is not None:
                    mode = op.loop_mode
                else:
                    mode = transport.loop_mode.next_mode()
                transport.loop_mode = mode
                return TransportResult.applied(
                    op.kind,
                    DiscordUIMessages.TRANSPORT_LOOP.format(emoji=mode.emoji, mode=mode.label),
                    loop_mode=mode,
                )

            case TransportOpKind.JUMP_TO:
                position = op.position or 0
                target = session.drop_before(position)
                await self._advance(session, honour_track_loop=False)
                return TransportResult.applied(
                    op.kind,
                    DiscordUIMessages.TRANSPORT_JUMPED.format(position=position, title=target.title),
                    track=target,
                )

            case TransportOpKind.MOVE_TRACK:
                source, target_pos = op.position or 0, op.target or 0
                moved = session.move_track(source, target_pos)
                return TransportResult.applied(
                    op.kind,
                    DiscordUIMessages.TRANSPORT_MOVED.format(title=moved.title, source=source, target=target_pos),
                    track=moved,
                )

            case TransportOpKind.REMOVE_TRACK:
                removed = session.remove_track(op.position or 0)
                return TransportResult.applied(
                    op.kind, DiscordUIMessages.TRANSPORT_REMOVED.format(title=removed.title), track=removed
                )

            case TransportOpKind.CLEAR_QUEUE:
                count = session.clear_queue()
                return TransportResult.applied(
                    op.kind, DiscordUIMessages.TRANSPORT_CLEARED.format(count=count), count=count
                )

            case TransportOpKind.SHUFFLE_QUEUE:
                if not session.queue:
                    return TransportResult.denied(op.kind, DiscordUIMessages.TRANSPORT_SHUFFLE_EMPTY)
                count = session.shuffle_queue()
                return TransportResult.applied(
                    op.kind, DiscordUIMessages.TRANSPORT_SHUFFLED.format(count=count), count=count
                )

            case TransportOpKind.SEEK:
                current = session.current
                if current is None:
                    return TransportResult.denied(op.kind, DiscordUIMessages.POLICY_NOTHING_PLAYING)
                if current.is_stream or not current.is_seekable:
                    return TransportResult.denied(op.kind, DiscordUIMessages.TRANSPORT_SEEK_UNSUPPORTED)
                position_ms = _clamp(op.amount or 0, 0, current.duration_ms)
                await self._node.seek(guild_id, position_ms)
                transport.position_ms = position_ms
                return TransportResult.applied(
                    op.kind, DiscordUIMessages.TRANSPORT_SEEKED.format(position=format_duration(position_ms))
                )

        raise ValueError(f"Unsupported transport op: {op.kind}")

    # ─── Lifecycle events ───────────────────────────────────────────────

    async def handle_event(self, event: PlaybackEvent) -> None:
        """Apply one engine lifecycle event. Run inside the guild's FIFO."""
        guild_id = event.guild_id
        session = self.get_session(guild_id)

        match event:
            case TrackStarted():
                if session is None:
                    logger.debug(LogTemplates.EVENT_IGNORED, event.event_type, guild_id)
                    return
                session.transport.playing = True
                session.transport.paused = False
                session.transport.position_ms = 0
                await self._refresh(session)

            case TrackEnded():
                logger.debug(LogTemplates.TRACK_END, guild_id, event.reason.value)
                if session is None or not event.reason.advances_queue:
                    return
                if event.identifier and session.current and event.identifier != session.current.identifier:
                    # The engine already moved on to a track we started.
                    return
                await self._advance(session, honour_track_loop=event.reason.honours_track_loop)

            case PlayerDisconnected():
                if session is not None and event.timestamp < session.created_at:
                    # Left over from a session that was replaced in the meantime.
                    return
                if session is None:
                    await self._projection.clear(guild_id, event.channel_id)
                    return
                await self.destroy_session(guild_id, "disconnected")

            case NodeDisconnected():
                if session is not None:
                    await self.destroy_session(guild_id, f"node {event.node_identifier} lost")

    # ─── Internals ──────────────────────────────────────────────────────

    async def _advance(self, session: GuildVoiceSession, *, honour_track_loop: bool) -> Track | None:
        outgoing = session.current
        upcoming = session.advance(honour_track_loop=honour_track_loop)
        if upcoming is None:
            await self._queue_ended(session, outgoing)
            return None
        await self._play_current(session)
        return upcoming

    async def _play_current(self, session: GuildVoiceSession) -> None:
        track = session.current
        if track is None:
            return
        try:
            await self._node.play(session.guild_id, track, volume=session.transport.volume)
        except EngineUnavailable as e:
            logger.error(LogTemplates.PLAYBACK_START_FAILED, track.title, session.guild_id, e.detail)
            await self.destroy_session(session.guild_id, "engine error")
            raise
        session.transport.playing = True
        session.transport.paused = False
        logger.info(LogTemplates.PLAYBACK_STARTED, track.title, session.guild_id)

    async def _queue_ended(self, session: GuildVoiceSession, last_track: Track | None) -> None:
        guild_id = session.guild_id
        autoplay = await self._autoplay_enabled(guild_id)
        logger.info(LogTemplates.QUEUE_ENDED, guild_id, autoplay)

        if autoplay and last_track is not None:
            candidate = await self._recommend(last_track)
            if candidate is not None:
                session.current = candidate
                await self._play_current(session)
                return
            logger.info(LogTemplates.AUTOPLAY_NO_CANDIDATE, last_track.title, guild_id)

        await self.destroy_session(guild_id, "queue ended")

    async def _recommend(self, track: Track) -> Track | None:
        try:
            return await self._node.recommend(track)
        except EngineUnavailable as e:
            logger.warning(LogTemplates.RESOLVE_FAILED, track.title, e.detail)
            return None

    async def _refresh(self, session: GuildVoiceSession) -> None:
        session.transport.position_ms = self._node.position(session.guild_id)
        projection = DisplayProjection.from_session(session)
        if projection is not None:
            await self._projection.show(projection)

    async def _guild_default_volume(self, guild_id: int) -> int:
        try:
            config = await self._config_repo.find_by_guild_id(guild_id)
        except ConfigStoreUnavailable:
            logger.warning(LogTemplates.CONFIG_STORE_FAILED, "default volume", guild_id, "using default")
            return self._default_volume
        if config is None:
            return self._default_volume
        return config.settings.default_volume

    async def _autoplay_enabled(self, guild_id: int) -> bool:
        try:
            config = await self._config_repo.find_by_guild_id(guild_id)
        except ConfigStoreUnavailable:
            logger.warning(LogTemplates.CONFIG_STORE_FAILED, "autoplay lookup", guild_id, "treating as off")
            return False
        return config is not None and config.settings.autoplay


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))
