"""
Unit Tests for EventCog

Gateway and wavelink callbacks are translated and fed through the guild FIFO
into the playback engine; these tests drain the FIFO before asserting.
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from discord.ext import commands

from lavalink_music_bot.domain.shared.messages import ErrorMessages
from lavalink_music_bot.infrastructure.discord.cogs.event_cog import EventCog, setup

GUILD_ID = 1000
VOICE_ID = 2000
BOT_USER_ID = 4242


@pytest.fixture
def bot():
    bot = MagicMock()
    bot.user.id = BOT_USER_ID
    return bot


@pytest.fixture
def cog(bot, container):
    return EventCog(bot, container)


@pytest.fixture
def playing(container, audio_node, make_track):
    async def factory(*identifiers: str):
        engine = container.playback_engine
        session = await engine.ensure_session(GUILD_ID, VOICE_ID)
        for identifier in identifiers:
            audio_node.add_result(identifier, make_track(identifier))
            await engine.enqueue(session, identifier, 111, "alice")
        return session

    return factory


def player(guild_id: int | None = GUILD_ID) -> MagicMock:
    if guild_id is None:
        return MagicMock(guild=None)
    return MagicMock(guild=MagicMock(id=guild_id))


def track_payload(identifier: str, *, reason: str | None = None, guild_id: int | None = GUILD_ID) -> MagicMock:
    payload = MagicMock()
    payload.player = player(guild_id)
    payload.track.identifier = identifier
    payload.track.title = f"Song {identifier}"
    payload.reason = reason
    payload.threshold = 10000
    return payload


async def drain(container) -> None:
    await container.serializer.join(GUILD_ID)


# =============================================================================
# Lavalink events
# =============================================================================


class TestTrackEvents:
    @pytest.mark.asyncio
    async def test_start_refreshes_panel(self, cog, container, playing, panel_sink):
        await playing("a")
        renders = len(panel_sink.renders)

        await cog.on_wavelink_track_start(track_payload("a"))
        await drain(container)

        assert len(panel_sink.renders) == renders + 1
        assert panel_sink.last.title == "Song a"

    @pytest.mark.asyncio
    async def test_finished_advances(self, cog, container, playing):
        session = await playing("a", "b")

        await cog.on_wavelink_track_end(track_payload("a", reason="finished"))
        await drain(container)

        assert session.current.identifier == "b"

    @pytest.mark.asyncio
    async def test_replaced_does_not_advance(self, cog, container, playing):
        session = await playing("a", "b")

        await cog.on_wavelink_track_end(track_payload("a", reason="replaced"))
        await drain(container)

        assert session.current.identifier == "a"

    @pytest.mark.asyncio
    async def test_stuck_track_is_skipped(self, cog, container, playing, caplog):
        session = await playing("a", "b")

        with caplog.at_level(logging.WARNING):
            await cog.on_wavelink_track_stuck(track_payload("a"))
            await drain(container)

        assert session.current.identifier == "b"
        assert caplog.records

    @pytest.mark.asyncio
    async def test_exception_is_only_logged(self, cog, container, playing, caplog):
        session = await playing("a", "b")
        payload = track_payload("a")
        payload.exception = {"message": "decode failed"}

        with caplog.at_level(logging.WARNING):
            await cog.on_wavelink_track_exception(payload)
            await drain(container)

        assert session.current.identifier == "a"
        assert "decode failed" in caplog.text

    @pytest.mark.asyncio
    async def test_payload_without_guild_is_dropped(self, cog, container, playing):
        session = await playing("a", "b")

        await cog.on_wavelink_track_end(track_payload("a", reason="finished", guild_id=None))
        await drain(container)

        assert session.current.identifier == "a"


class TestNodeEvents:
    @pytest.mark.asyncio
    async def test_node_closed_destroys_sessions(self, cog, container, playing):
        await playing("a")
        node = MagicMock(identifier="main")

        await cog.on_wavelink_node_closed(node, [player(), player(None)])
        await drain(container)

        assert container.playback_engine.get_session(GUILD_ID) is None

    @pytest.mark.asyncio
    async def test_node_ready_is_logged(self, cog, caplog):
        payload = MagicMock(resumed=False, session_id="abc")
        payload.node.identifier = "main"

        with caplog.at_level(logging.INFO):
            await cog.on_wavelink_node_ready(payload)

        assert "main" in caplog.text


# =============================================================================
# Discord events
# =============================================================================


class TestVoiceStateUpdate:
    def states(self, before_channel: int | None, after_channel: int | None):
        before = MagicMock(channel=MagicMock(id=before_channel) if before_channel else None)
        after = MagicMock(channel=MagicMock(id=after_channel) if after_channel else None)
        return before, after

    @pytest.mark.asyncio
    async def test_bot_kicked_from_voice(self, cog, container, playing, make_member, voice_sink):
        await playing("a")
        member = make_member(user_id=BOT_USER_ID)

        await cog.on_voice_state_update(member, *self.states(VOICE_ID, None))
        await drain(container)

        assert container.playback_engine.get_session(GUILD_ID) is None
        assert voice_sink.restores == [(GUILD_ID, VOICE_ID)]

    @pytest.mark.asyncio
    async def test_bot_moved_is_ignored(self, cog, container, playing, make_member):
        await playing("a")

        await cog.on_voice_state_update(make_member(user_id=BOT_USER_ID), *self.states(VOICE_ID, 2001))
        await drain(container)

        assert container.playback_engine.get_session(GUILD_ID) is not None

    @pytest.mark.asyncio
    async def test_other_members_ignored(self, cog, container, playing, make_member):
        await playing("a")

        await cog.on_voice_state_update(make_member(user_id=111), *self.states(VOICE_ID, None))
        await drain(container)

        assert container.playback_engine.get_session(GUILD_ID) is not None


class TestGuildEvents:
    @pytest.mark.asyncio
    async def test_guild_remove_ends_session(self, cog, container, playing):
        await playing("a")
        guild = MagicMock(id=GUILD_ID)

        await cog.on_guild_remove(guild)
        await drain(container)

        assert container.playback_engine.get_session(GUILD_ID) is None

    @pytest.mark.asyncio
    async def test_guild_join_updates_presence(self, cog, container):
        container._presence = MagicMock()
        container._presence.announce_servers = AsyncMock()

        await cog.on_guild_join(MagicMock(id=GUILD_ID))

        container._presence.announce_servers.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_events_after_shutdown_are_dropped(self, cog, container, playing):
        await playing("a")
        await container.serializer.shutdown()

        await cog.on_guild_remove(MagicMock(id=GUILD_ID))

        assert container.playback_engine.get_session(GUILD_ID) is not None


class TestConnectionLogging:
    @pytest.mark.asyncio
    async def test_resumed_logged_once(self, cog, caplog):
        with caplog.at_level(logging.INFO):
            await cog.on_resumed()
            await cog.on_resumed()

        assert caplog.text.count("WebSocket session resumed") == 1


class TestSetup:
    @pytest.mark.asyncio
    async def test_adds_cog(self, container):
        bot = MagicMock()
        bot.container = container
        bot.add_cog = AsyncMock()

        await setup(bot)

        assert isinstance(bot.add_cog.await_args.args[0], EventCog)

    @pytest.mark.asyncio
    async def test_requires_container(self):
        with pytest.raises(RuntimeError, match=ErrorMessages.CONTAINER_NOT_FOUND):
            await setup(MagicMock(spec=commands.Bot))
