import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytest_asyncio

from lavalink_music_bot.application.interfaces.audio_node import AudioNode, LoadType, ResolveResult
from lavalink_music_bot.application.interfaces.display_sinks import (
    CentralPanelSink,
    PanelHealth,
    PresenceSink,
    VoiceMetadataSink,
)
from lavalink_music_bot.domain.music.entities import Track
from lavalink_music_bot.domain.shared.exceptions import EngineUnavailable, ResolverEmpty, SinkRenderFailure

# ============================================================================
# Fakes
# ============================================================================


class FakeAudioNode(AudioNode):
    """In-process stand-in for a Lavalink node that records every call."""

    def __init__(self) -> None:
        self.available = True
        self.results: dict[str, ResolveResult] = {}
        self.recommendation: Track | None = None
        self.resolve_delay = 0.0
        self.fail_play = False
        self.connected: dict[int, int] = {}
        self.positions: dict[int, int] = {}
        self.calls: list[tuple] = []

    def add_result(self, query: str, *tracks: Track, playlist: str | None = None) -> None:
        if playlist is not None:
            load_type = LoadType.PLAYLIST
        else:
            load_type = LoadType.SEARCH
        self.results[query] = ResolveResult(load_type=load_type, tracks=tracks, playlist_name=playlist)

    def calls_named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    @property
    def played(self) -> list[str]:
        return [call[2] for call in self.calls_named("play")]

    async def start(self) -> None:
        self.calls.append(("start",))

    async def close(self) -> None:
        self.calls.append(("close",))

    def is_available(self) -> bool:
        return self.available

    async def connect(self, guild_id: int, channel_id: int) -> None:
        if not self.available:
            raise EngineUnavailable("node offline")
        self.connected[guild_id] = channel_id
        self.calls.append(("connect", guild_id, channel_id))

    async def move_to(self, guild_id: int, channel_id: int) -> None:
        self.connected[guild_id] = channel_id
        self.calls.append(("move_to", guild_id, channel_id))

    async def disconnect(self, guild_id: int) -> None:
        self.connected.pop(guild_id, None)
        self.calls.append(("disconnect", guild_id))

    def is_connected(self, guild_id: int) -> bool:
        return guild_id in self.connected

    async def resolve(self, query: str) -> ResolveResult:
        self.calls.append(("resolve", query))
        if self.resolve_delay:
            await asyncio.sleep(self.resolve_delay)
        result = self.results.get(query)
        if result is None:
            raise ResolverEmpty(query)
        return result

    async def play(self, guild_id: int, track: Track, *, volume: int) -> None:
        if self.fail_play:
            raise EngineUnavailable("play failed")
        self.calls.append(("play", guild_id, track.identifier, volume))

    async def pause(self, guild_id: int, paused: bool) -> None:
        self.calls.append(("pause", guild_id, paused))

    async def stop(self, guild_id: int) -> None:
        self.calls.append(("stop", guild_id))

    async def set_volume(self, guild_id: int, volume: int) -> None:
        self.calls.append(("set_volume", guild_id, volume))

    async def seek(self, guild_id: int, position_ms: int) -> None:
        self.calls.append(("seek", guild_id, position_ms))

    def position(self, guild_id: int) -> int:
        return self.positions.get(guild_id, 0)

    async def recommend(self, track: Track) -> Track | None:
        self.calls.append(("recommend", track.identifier))
        return self.recommendation


class RecordingPanelSink(CentralPanelSink):
    def __init__(self) -> None:
        self.renders: list[tuple[int, object]] = []
        self.published: list[int] = []
        self.removed: list[tuple[int, int]] = []
        self.health: dict[int, PanelHealth] = {}
        self.fail = False
        self._next_id = 9000

    @property
    def last(self):
        return self.renders[-1][1] if self.renders else None

    async def render(self, guild_id, projection) -> None:
        if self.fail:
            raise SinkRenderFailure("central-panel", "boom")
        self.renders.append((guild_id, projection))

    async def publish(self, channel_id) -> int:
        if self.fail:
            raise SinkRenderFailure("central-panel", "cannot send")
        self._next_id += 1
        self.published.append(channel_id)
        return self._next_id

    async def remove(self, channel_id, message_id) -> None:
        self.removed.append((channel_id, message_id))

    async def check(self, guild_id, channel_id, message_id) -> PanelHealth:
        return self.health.get(guild_id, PanelHealth.OK)


class RecordingVoiceSink(VoiceMetadataSink):
    def __init__(self) -> None:
        self.annotations: list[tuple[int, int, str]] = []
        self.restores: list[tuple[int, int]] = []
        self.fail = False

    async def annotate(self, guild_id, channel_id, title) -> bool:
        if self.fail:
            raise SinkRenderFailure("voice-metadata", "every strategy failed")
        self.annotations.append((guild_id, channel_id, title))
        return True

    async def restore(self, guild_id, channel_id) -> bool:
        self.restores.append((guild_id, channel_id))
        return True


class RecordingPresence(PresenceSink):
    def __init__(self) -> None:
        self.titles: list[str] = []
        self.resets = 0

    async def show(self, title: str) -> None:
        self.titles.append(title)

    async def reset(self) -> None:
        self.resets += 1


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from lavalink_music_bot.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def config_repository(in_memory_database):
    """Create a guild config repository with in-memory database."""
    from lavalink_music_bot.infrastructure.persistence.repositories.guild_config_repository import (
        SQLiteGuildConfigRepository,
    )

    return SQLiteGuildConfigRepository(in_memory_database)


# ============================================================================
# Domain Fixtures
# ============================================================================


@pytest.fixture
def make_track():
    """Factory for tracks with unique identifiers."""

    def factory(identifier: str = "track-1", title: str | None = None, **overrides) -> Track:
        fields = {
            "title": title or f"Song {identifier}",
            "author": "Test Artist",
            "duration_ms": 180_000,
            "identifier": identifier,
            "encoded": f"enc-{identifier}",
            "source_uri": f"https://www.youtube.com/watch?v={identifier}",
        }
        fields.update(overrides)
        return Track(**fields)

    return factory


@pytest.fixture
def sample_track(make_track):
    return make_track("abc123", "Test Track")


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def audio_node():
    return FakeAudioNode()


@pytest.fixture
def panel_sink():
    return RecordingPanelSink()


@pytest.fixture
def voice_sink():
    return RecordingVoiceSink()


@pytest.fixture
def presence_sink():
    return RecordingPresence()


@pytest.fixture
def projection(panel_sink, voice_sink, presence_sink):
    from lavalink_music_bot.application.services.now_playing import NowPlayingProjection

    return NowPlayingProjection(panel_sink=panel_sink, voice_sink=voice_sink, presence_sink=presence_sink)


@pytest.fixture
def engine(audio_node, projection, config_repository):
    from lavalink_music_bot.application.services.playback_engine import PlaybackEngineAdapter

    return PlaybackEngineAdapter(
        node=audio_node,
        projection=projection,
        config_repository=config_repository,
        resolve_timeout=1.0,
    )


@pytest.fixture
def policy_service(config_repository, engine):
    from lavalink_music_bot.application.services.session_policy import SessionPolicyService

    return SessionPolicyService(config_repository=config_repository, engine=engine)


@pytest.fixture
def play_handler(policy_service, engine):
    from lavalink_music_bot.application.commands.play_track import PlayTrackHandler

    return PlayTrackHandler(policy=policy_service, engine=engine, takeover_delay=0)


# ============================================================================
# Discord Fixtures
# ============================================================================


@pytest.fixture
def make_member():
    """Factory for guild members, optionally sitting in a voice channel."""

    def factory(
        *,
        user_id: int = 111,
        guild_id: int = 1000,
        voice_channel_id: int | None = 2000,
        role_ids: tuple[int, ...] = (),
        can_join: bool = True,
        bot: bool = False,
    ) -> MagicMock:
        guild = MagicMock(spec=discord.Guild)
        guild.id = guild_id
        guild.me = MagicMock()

        member = MagicMock(spec=discord.Member)
        member.id = user_id
        member.bot = bot
        member.guild = guild
        member.display_name = f"user-{user_id}"
        member.mention = f"<@{user_id}>"
        member.roles = [MagicMock(id=role_id) for role_id in role_ids]

        if voice_channel_id is None:
            member.voice = None
        else:
            channel = MagicMock(spec=discord.VoiceChannel)
            channel.id = voice_channel_id
            channel.name = "Music Lounge"
            channel.permissions_for.return_value = discord.Permissions(connect=can_join, speak=can_join)
            member.voice = MagicMock()
            member.voice.channel = channel
        return member

    return factory


@pytest.fixture
def make_ctx():
    """Factory for command contexts authored by a member."""

    def factory(member, *, channel_id: int = 3000) -> MagicMock:
        ctx = MagicMock()
        ctx.author = member
        ctx.guild = member.guild
        ctx.channel = MagicMock()
        ctx.channel.id = channel_id
        ctx.send = AsyncMock()
        ctx.defer = AsyncMock()
        ctx.command = MagicMock(qualified_name="test")
        return ctx

    return factory


# ============================================================================
# Composition Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def serializer():
    from lavalink_music_bot.application.services.guild_serializer import GuildSerializer

    serializer = GuildSerializer()
    yield serializer
    if not serializer.closed:
        await serializer.shutdown()


@pytest.fixture
def capabilities(policy_service, engine, serializer, play_handler):
    from lavalink_music_bot.application.commands.join_channel import JoinChannelHandler
    from lavalink_music_bot.application.commands.transport_control import TransportControlHandler
    from lavalink_music_bot.application.queries.get_queue import GetQueueHandler
    from lavalink_music_bot.infrastructure.discord.guards.readiness import MusicCapabilities

    return MusicCapabilities(
        policy=policy_service,
        engine=engine,
        serializer=serializer,
        play=play_handler,
        join=JoinChannelHandler(policy=policy_service, engine=engine),
        transport=TransportControlHandler(policy=policy_service, engine=engine),
        queue=GetQueueHandler(engine=engine),
    )


@pytest.fixture
def readiness_guard(capabilities):
    from lavalink_music_bot.infrastructure.discord.guards.readiness import ReadinessGuard

    return ReadinessGuard(capabilities)


@pytest.fixture
def make_interaction():
    """Factory for component interactions pressed by ``user``."""

    def factory(user, *, done: bool = False) -> MagicMock:
        interaction = MagicMock(spec=discord.Interaction)
        interaction.user = user
        interaction.guild = getattr(user, "guild", None)
        interaction.response = MagicMock()
        interaction.response.is_done.return_value = done
        interaction.response.send_message = AsyncMock()
        interaction.response.defer = AsyncMock()
        interaction.followup = MagicMock()
        interaction.followup.send = AsyncMock()
        return interaction

    return factory


@pytest.fixture
def settings():
    from lavalink_music_bot.config.settings import Settings

    return Settings(_env_file=None, environment="test", playback={"takeover_delay_s": 0})


@pytest.fixture
def container(settings, config_repository, audio_node, panel_sink, voice_sink, presence_sink, serializer):
    """A real container wired to the in-process fakes."""
    from lavalink_music_bot.config.container import Container

    return Container(
        settings,
        _config_repository=config_repository,
        _audio_node=audio_node,
        _panel_sink=panel_sink,
        _voice_sink=voice_sink,
        _presence=presence_sink,
        _serializer=serializer,
    )
