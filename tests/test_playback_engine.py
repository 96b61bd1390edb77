"""
Unit Tests for PlaybackEngineAdapter

Tests for:
- Session creation, reuse and relocation
- Enqueue of searches, playlists and empty results
- Every transport operation and its edge cases
- Lifecycle events: track start/end, loop modes, autoplay, disconnects

Runs against an in-process fake audio node and recording display sinks.
"""

from datetime import timedelta

import pytest

from lavalink_music_bot.application.services.playback_engine import PlaybackEngineAdapter
from lavalink_music_bot.application.services.playback_models import EnqueueStatus, TransportStatus
from lavalink_music_bot.domain.music.events import (
    NodeDisconnected,
    PlayerDisconnected,
    TrackEnded,
    TrackStarted,
)
from lavalink_music_bot.domain.music.value_objects import (
    LoopMode,
    SessionOrigin,
    TrackEndReason,
    TransportOp,
)
from lavalink_music_bot.domain.shared.exceptions import EngineUnavailable
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages

GUILD_ID = 1000
USER_ID = 111
VOICE_ID = 2000
OTHER_VOICE_ID = 2001
TEXT_ID = 3000


@pytest.fixture
def start_playing(engine, audio_node, make_track):
    """Create a session and queue one track per identifier; the first one plays."""

    async def factory(*identifiers: str):
        session = await engine.ensure_session(GUILD_ID, VOICE_ID, TEXT_ID)
        for identifier in identifiers:
            audio_node.add_result(identifier, make_track(identifier))
            await engine.enqueue(session, identifier, USER_ID, "alice")
        return session

    return factory


# =============================================================================
# Session registry
# =============================================================================


class TestEnsureSession:
    @pytest.mark.asyncio
    async def test_creates_session_and_connects(self, engine, audio_node):
        session = await engine.ensure_session(GUILD_ID, VOICE_ID, TEXT_ID, origin=SessionOrigin.CENTRAL)

        assert engine.get_session(GUILD_ID) is session
        assert session.origin is SessionOrigin.CENTRAL
        assert session.transport.volume == 50
        assert audio_node.calls_named("connect") == [("connect", GUILD_ID, VOICE_ID)]

    @pytest.mark.asyncio
    async def test_uses_guild_default_volume(self, engine, config_repository):
        await config_repository.upsert(GUILD_ID, {"settings.defaultVolume": 30})

        session = await engine.ensure_session(GUILD_ID, VOICE_ID)

        assert session.transport.volume == 30

    @pytest.mark.asyncio
    async def test_offline_node_raises(self, engine, audio_node):
        audio_node.available = False

        with pytest.raises(EngineUnavailable):
            await engine.ensure_session(GUILD_ID, VOICE_ID)
        assert engine.get_session(GUILD_ID) is None

    @pytest.mark.asyncio
    async def test_reuses_session_in_same_channel(self, engine, audio_node):
        first = await engine.ensure_session(GUILD_ID, VOICE_ID)
        second = await engine.ensure_session(GUILD_ID, VOICE_ID)

        assert first is second
        assert len(audio_node.calls_named("connect")) == 1

    @pytest.mark.asyncio
    async def test_moves_existing_session(self, engine, audio_node):
        first = await engine.ensure_session(GUILD_ID, VOICE_ID, TEXT_ID)
        moved = await engine.ensure_session(GUILD_ID, OTHER_VOICE_ID)

        assert moved is first
        assert moved.voice_channel_id == OTHER_VOICE_ID
        assert moved.text_channel_id == TEXT_ID
        assert audio_node.calls_named("move_to") == [("move_to", GUILD_ID, OTHER_VOICE_ID)]

    @pytest.mark.asyncio
    async def test_sessions_lists_live_only(self, engine):
        await engine.ensure_session(GUILD_ID, VOICE_ID)
        await engine.ensure_session(GUILD_ID + 1, VOICE_ID + 10)
        await engine.destroy_session(GUILD_ID, "test")

        assert [s.guild_id for s in engine.sessions()] == [GUILD_ID + 1]

    @pytest.mark.asyncio
    async def test_close_destroys_all(self, engine, audio_node):
        await engine.ensure_session(GUILD_ID, VOICE_ID)
        await engine.ensure_session(GUILD_ID + 1, VOICE_ID + 10)

        await engine.close()

        assert engine.sessions() == []
        assert len(audio_node.calls_named("disconnect")) == 2


# =============================================================================
# Enqueue
# =============================================================================


class TestEnqueue:
    @pytest.mark.asyncio
    async def test_idle_session_starts_playing(self, engine, audio_node, sample_track):
        audio_node.add_result("test", sample_track)
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)

        result = await engine.enqueue(session, "test", USER_ID, "alice")

        assert result.status is EnqueueStatus.TRACK
        assert result.started_playing
        assert result.position == 0
        assert session.current.identifier == sample_track.identifier
        assert session.current.requester_id == USER_ID
        assert audio_node.calls_named("play") == [("play", GUILD_ID, sample_track.identifier, 50)]

    @pytest.mark.asyncio
    async def test_busy_session_queues(self, start_playing, engine, audio_node, make_track, panel_sink):
        session = await start_playing("first")
        audio_node.add_result("second", make_track("second"))

        result = await engine.enqueue(session, "second", USER_ID)

        assert not result.started_playing
        assert result.position == 1
        assert audio_node.played == ["first"]
        assert panel_sink.last.queue_length == 1

    @pytest.mark.asyncio
    async def test_search_keeps_first_hit_only(self, engine, audio_node, make_track):
        audio_node.add_result("many", make_track("x"), make_track("y"), make_track("z"))
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)

        result = await engine.enqueue(session, "many", USER_ID)

        assert len(result.tracks) == 1
        assert session.queue == []

    @pytest.mark.asyncio
    async def test_playlist_queues_everything(self, engine, audio_node, make_track):
        audio_node.add_result("list", make_track("x"), make_track("y"), make_track("z"), playlist="Mix")
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)

        result = await engine.enqueue(session, "list", USER_ID)

        assert result.status is EnqueueStatus.PLAYLIST
        assert result.playlist_name == "Mix"
        assert result.started_playing
        assert [t.identifier for t in session.queue] == ["y", "z"]

    @pytest.mark.asyncio
    async def test_not_found(self, engine):
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)

        result = await engine.enqueue(session, "nothing matches", USER_ID)

        assert result.status is EnqueueStatus.NOT_FOUND
        assert session.current is None

    @pytest.mark.asyncio
    async def test_resolve_timeout(self, audio_node, projection, config_repository, sample_track):
        engine = PlaybackEngineAdapter(
            node=audio_node, projection=projection, config_repository=config_repository, resolve_timeout=0.05
        )
        audio_node.add_result("slow", sample_track)
        audio_node.resolve_delay = 1.0
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)

        with pytest.raises(EngineUnavailable) as exc_info:
            await engine.enqueue(session, "slow", USER_ID)
        assert "timed out" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_play_failure_propagates(self, engine, audio_node, sample_track):
        audio_node.add_result("test", sample_track)
        audio_node.fail_play = True
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)

        with pytest.raises(EngineUnavailable):
            await engine.enqueue(session, "test", USER_ID)

        assert session.destroyed
        assert engine.get_session(GUILD_ID) is None
        assert not audio_node.is_connected(GUILD_ID)

    @pytest.mark.asyncio
    async def test_guild_recovers_after_play_failure(self, engine, audio_node, make_track):
        audio_node.add_result("a", make_track("a"))
        audio_node.add_result("b", make_track("b"))
        audio_node.fail_play = True
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)
        with pytest.raises(EngineUnavailable):
            await engine.enqueue(session, "a", USER_ID)

        audio_node.fail_play = False
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)
        result = await engine.enqueue(session, "b", USER_ID)

        assert result.started_playing
        assert audio_node.played == ["b"]
        assert session.current.identifier == "b"

    @pytest.mark.asyncio
    async def test_failed_advance_releases_guild(self, start_playing, engine, audio_node):
        session = await start_playing("a", "b")
        audio_node.fail_play = True

        with pytest.raises(EngineUnavailable):
            await engine.handle_event(TrackEnded(guild_id=GUILD_ID, reason=TrackEndReason.FINISHED, identifier="a"))

        assert session.destroyed
        assert engine.get_session(GUILD_ID) is None


# =============================================================================
# Transport
# =============================================================================


class TestTransport:
    @pytest.mark.asyncio
    async def test_pause_and_resume(self, start_playing, engine, audio_node, panel_sink):
        session = await start_playing("a")

        paused = await engine.apply_transport(session, TransportOp.pause())
        again = await engine.apply_transport(session, TransportOp.pause())
        resumed = await engine.apply_transport(session, TransportOp.resume())

        assert paused.status is TransportStatus.APPLIED
        assert again.status is TransportStatus.UNCHANGED
        assert again.is_success
        assert resumed.message == DiscordUIMessages.TRANSPORT_RESUMED
        assert audio_node.calls_named("pause") == [("pause", GUILD_ID, True), ("pause", GUILD_ID, False)]
        assert panel_sink.last.paused is False

    @pytest.mark.asyncio
    async def test_pause_without_track_denied(self, engine):
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)

        result = await engine.apply_transport(session, TransportOp.pause())

        assert result.status is TransportStatus.DENIED
        assert result.message == DiscordUIMessages.POLICY_NOTHING_PLAYING

    @pytest.mark.asyncio
    async def test_resume_when_not_paused(self, start_playing, engine):
        session = await start_playing("a")

        result = await engine.apply_transport(session, TransportOp.resume())

        assert result.status is TransportStatus.UNCHANGED

    @pytest.mark.asyncio
    async def test_skip_plays_next(self, start_playing, engine, audio_node):
        session = await start_playing("a", "b")

        result = await engine.apply_transport(session, TransportOp.skip())

        assert result.message == DiscordUIMessages.TRANSPORT_SKIPPED.format(title="Song a")
        assert session.current.identifier == "b"
        assert audio_node.played == ["a", "b"]

    @pytest.mark.asyncio
    async def test_skip_ignores_track_loop(self, start_playing, engine):
        session = await start_playing("a", "b")
        session.transport.loop_mode = LoopMode.TRACK

        await engine.apply_transport(session, TransportOp.skip())

        assert session.current.identifier == "b"

    @pytest.mark.asyncio
    async def test_skip_last_track_ends_session(self, start_playing, engine, audio_node, panel_sink):
        session = await start_playing("a")

        result = await engine.apply_transport(session, TransportOp.skip())

        assert result.message == DiscordUIMessages.TRANSPORT_SKIPPED_LAST.format(title="Song a")
        assert session.destroyed
        assert engine.get_session(GUILD_ID) is None
        assert audio_node.calls_named("disconnect") == [("disconnect", GUILD_ID)]
        assert panel_sink.last is None

    @pytest.mark.asyncio
    async def test_skip_last_track_with_autoplay(
        self, start_playing, engine, audio_node, config_repository, make_track
    ):
        await config_repository.upsert(GUILD_ID, {"settings.autoplay": True})
        audio_node.recommendation = make_track("related")
        session = await start_playing("a")

        await engine.apply_transport(session, TransportOp.skip())

        assert engine.get_session(GUILD_ID) is session
        assert session.current.identifier == "related"
        assert audio_node.calls_named("recommend") == [("recommend", "a")]
        assert audio_node.played == ["a", "related"]

    @pytest.mark.asyncio
    async def test_autoplay_without_candidate_ends_session(
        self, start_playing, engine, config_repository
    ):
        await config_repository.upsert(GUILD_ID, {"settings.autoplay": True})
        session = await start_playing("a")

        await engine.apply_transport(session, TransportOp.skip())

        assert session.destroyed

    @pytest.mark.asyncio
    async def test_stop_destroys_session(self, start_playing, engine, voice_sink):
        session = await start_playing("a", "b")

        result = await engine.apply_transport(session, TransportOp.stop())

        assert result.message == DiscordUIMessages.TRANSPORT_STOPPED
        assert session.destroyed
        assert session.queue == []
        assert voice_sink.restores == [(GUILD_ID, VOICE_ID)]

    @pytest.mark.asyncio
    async def test_set_volume(self, start_playing, engine, audio_node, panel_sink):
        session = await start_playing("a")

        result = await engine.apply_transport(session, TransportOp.set_volume(80))

        assert result.volume == 80
        assert session.transport.volume == 80
        assert audio_node.calls_named("set_volume") == [("set_volume", GUILD_ID, 80)]
        assert panel_sink.last.volume == 80

    @pytest.mark.asyncio
    async def test_adjust_volume_respects_floor_and_ceiling(self, start_playing, engine):
        session = await start_playing("a")
        session.transport.volume = 5

        down = await engine.apply_transport(session, TransportOp.adjust_volume(-10))
        session.transport.volume = 95
        up = await engine.apply_transport(session, TransportOp.adjust_volume(10))

        assert down.volume == 1
        assert up.volume == 100

    @pytest.mark.asyncio
    async def test_cycle_and_set_loop(self, start_playing, engine):
        session = await start_playing("a")

        cycled = await engine.apply_transport(session, TransportOp.cycle_loop())
        fixed = await engine.apply_transport(session, TransportOp.set_loop(LoopMode.OFF))

        assert cycled.loop_mode is LoopMode.TRACK
        assert fixed.loop_mode is LoopMode.OFF
        assert session.loop_mode is LoopMode.OFF

    @pytest.mark.asyncio
    async def test_jump_to(self, start_playing, engine, audio_node):
        session = await start_playing("a", "b", "c", "d")

        result = await engine.apply_transport(session, TransportOp.jump_to(2))

        assert result.track.identifier == "c"
        assert session.current.identifier == "c"
        assert [t.identifier for t in session.queue] == ["d"]
        assert audio_node.played[-1] == "c"

    @pytest.mark.asyncio
    async def test_move_and_remove(self, start_playing, engine):
        session = await start_playing("a", "b", "c", "d")

        moved = await engine.apply_transport(session, TransportOp.move_track(3, 1))
        removed = await engine.apply_transport(session, TransportOp.remove_track(2))

        assert moved.track.identifier == "d"
        assert removed.track.identifier == "b"
        assert [t.identifier for t in session.queue] == ["d", "c"]

    @pytest.mark.asyncio
    async def test_out_of_range_position_denied(self, start_playing, engine):
        session = await start_playing("a", "b")

        result = await engine.apply_transport(session, TransportOp.remove_track(5))

        assert result.status is TransportStatus.DENIED
        assert result.message == "❌ Invalid position! Please choose between 1 and 1."
        assert [t.identifier for t in session.queue] == ["b"]
        assert session.current.identifier == "a"

    @pytest.mark.asyncio
    async def test_clear_queue(self, start_playing, engine):
        session = await start_playing("a", "b", "c")

        result = await engine.apply_transport(session, TransportOp.clear_queue())

        assert result.count == 2
        assert session.current.identifier == "a"

    @pytest.mark.asyncio
    async def test_shuffle_empty_queue_denied(self, start_playing, engine):
        session = await start_playing("a")

        result = await engine.apply_transport(session, TransportOp.shuffle_queue())

        assert result.message == DiscordUIMessages.TRANSPORT_SHUFFLE_EMPTY
        assert not result.is_success

    @pytest.mark.asyncio
    async def test_seek_clamps_to_duration(self, start_playing, engine, audio_node):
        session = await start_playing("a")

        result = await engine.apply_transport(session, TransportOp.seek(999_000))

        assert audio_node.calls_named("seek") == [("seek", GUILD_ID, 180_000)]
        assert result.message == DiscordUIMessages.TRANSPORT_SEEKED.format(position="3:00")

    @pytest.mark.asyncio
    async def test_seek_stream_denied(self, engine, audio_node, make_track):
        audio_node.add_result("radio", make_track("radio", is_stream=True))
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)
        await engine.enqueue(session, "radio", USER_ID)

        result = await engine.apply_transport(session, TransportOp.seek(1000))

        assert result.message == DiscordUIMessages.TRANSPORT_SEEK_UNSUPPORTED
        assert audio_node.calls_named("seek") == []


# =============================================================================
# Lifecycle events
# =============================================================================


class TestLifecycleEvents:
    @pytest.mark.asyncio
    async def test_track_started_shows_projection(self, start_playing, engine, panel_sink, voice_sink, presence_sink):
        await start_playing("a")

        await engine.handle_event(TrackStarted(guild_id=GUILD_ID, identifier="a"))

        assert panel_sink.last.title == "Song a"
        assert voice_sink.annotations == [(GUILD_ID, VOICE_ID, "Song a")]
        assert presence_sink.titles == ["Song a"]

    @pytest.mark.asyncio
    async def test_track_started_without_session_ignored(self, engine, panel_sink):
        await engine.handle_event(TrackStarted(guild_id=GUILD_ID))
        assert panel_sink.renders == []

    @pytest.mark.asyncio
    async def test_finished_track_advances(self, start_playing, engine, audio_node):
        session = await start_playing("a", "b")

        await engine.handle_event(TrackEnded(guild_id=GUILD_ID, identifier="a"))

        assert session.current.identifier == "b"
        assert audio_node.played == ["a", "b"]

    @pytest.mark.asyncio
    async def test_stale_end_event_ignored(self, start_playing, engine):
        session = await start_playing("a", "b")

        await engine.handle_event(TrackEnded(guild_id=GUILD_ID, identifier="older"))

        assert session.current.identifier == "a"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", [TrackEndReason.REPLACED, TrackEndReason.STOPPED, TrackEndReason.CLEANUP])
    async def test_non_advancing_reasons(self, start_playing, engine, reason):
        session = await start_playing("a", "b")

        await engine.handle_event(TrackEnded(guild_id=GUILD_ID, reason=reason, identifier="a"))

        assert session.current.identifier == "a"

    @pytest.mark.asyncio
    async def test_track_loop_replays_on_finish(self, start_playing, engine, audio_node):
        session = await start_playing("a", "b")
        session.transport.loop_mode = LoopMode.TRACK

        await engine.handle_event(TrackEnded(guild_id=GUILD_ID, identifier="a"))

        assert session.current.identifier == "a"
        assert audio_node.played == ["a", "a"]

    @pytest.mark.asyncio
    async def test_load_failure_skips_despite_track_loop(self, start_playing, engine):
        session = await start_playing("a", "b")
        session.transport.loop_mode = LoopMode.TRACK

        await engine.handle_event(
            TrackEnded(guild_id=GUILD_ID, reason=TrackEndReason.LOAD_FAILED, identifier="a")
        )

        assert session.current.identifier == "b"

    @pytest.mark.asyncio
    async def test_queue_loop_cycles(self, start_playing, engine):
        session = await start_playing("a", "b")
        session.transport.loop_mode = LoopMode.QUEUE

        await engine.handle_event(TrackEnded(guild_id=GUILD_ID, identifier="a"))
        await engine.handle_event(TrackEnded(guild_id=GUILD_ID, identifier="b"))

        assert session.current.identifier == "a"
        assert [t.identifier for t in session.queue] == ["b"]

    @pytest.mark.asyncio
    async def test_queue_end_destroys_session(self, start_playing, engine, panel_sink, presence_sink):
        session = await start_playing("a")

        await engine.handle_event(TrackEnded(guild_id=GUILD_ID, identifier="a"))

        assert session.destroyed
        assert panel_sink.last is None
        assert presence_sink.resets == 1

    @pytest.mark.asyncio
    async def test_player_disconnected_destroys(self, start_playing, engine, audio_node):
        session = await start_playing("a")

        await engine.handle_event(PlayerDisconnected(guild_id=GUILD_ID, channel_id=VOICE_ID))

        assert session.destroyed
        assert engine.get_session(GUILD_ID) is None

    @pytest.mark.asyncio
    async def test_disconnect_from_replaced_session_ignored(self, start_playing, engine):
        session = await start_playing("a")
        stale = PlayerDisconnected(guild_id=GUILD_ID, timestamp=session.created_at - timedelta(seconds=5))

        await engine.handle_event(stale)

        assert not session.destroyed

    @pytest.mark.asyncio
    async def test_disconnect_without_session_clears_display(self, engine, panel_sink, voice_sink):
        await engine.handle_event(PlayerDisconnected(guild_id=GUILD_ID, channel_id=VOICE_ID))

        assert panel_sink.renders == [(GUILD_ID, None)]
        assert voice_sink.restores == [(GUILD_ID, VOICE_ID)]

    @pytest.mark.asyncio
    async def test_node_disconnected_destroys(self, start_playing, engine):
        session = await start_playing("a")

        await engine.handle_event(NodeDisconnected(guild_id=GUILD_ID, node_identifier="main"))

        assert session.destroyed

    @pytest.mark.asyncio
    async def test_destroy_survives_node_errors(self, start_playing, engine, audio_node, monkeypatch):
        session = await start_playing("a")

        async def broken_disconnect(guild_id):
            raise EngineUnavailable("socket closed")

        monkeypatch.setattr(audio_node, "disconnect", broken_disconnect)

        assert await engine.destroy_session(GUILD_ID, "test")
        assert session.destroyed
