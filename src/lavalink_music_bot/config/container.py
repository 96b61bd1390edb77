"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the store, the Lavalink node, the display sinks,
the playback engine and the handlers built on top of them.
Components are created on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.central_request import CentralRequestHandler
    from ..application.commands.join_channel import JoinChannelHandler
    from ..application.commands.play_track import PlayTrackHandler
    from ..application.commands.transport_control import TransportControlHandler
    from ..application.interfaces.audio_node import AudioNode
    from ..application.queries.get_queue import GetQueueHandler
    from ..application.services.central_panel import CentralPanelService
    from ..application.services.guild_serializer import GuildSerializer
    from ..application.services.now_playing import NowPlayingProjection
    from ..application.services.playback_engine import PlaybackEngineAdapter
    from ..application.services.session_policy import SessionPolicyService
    from ..application.services.spam_limiter import SpamLimiter
    from ..domain.guild.repository import GuildConfigRepository
    from ..infrastructure.discord.guards.readiness import MusicCapabilities, ReadinessGuard
    from ..infrastructure.discord.services.control_dispatcher import ControlDispatcher
    from ..infrastructure.discord.sinks.central_panel_sink import DiscordCentralPanelSink
    from ..infrastructure.discord.sinks.presence import PresenceManager
    from ..infrastructure.discord.sinks.voice_metadata import DiscordVoiceMetadataSink
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    This container manages all application dependencies and their lifecycle.
    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Persistence layer
    _database: Database | None = None
    _config_repository: GuildConfigRepository | None = None

    # Infrastructure adapters
    _audio_node: AudioNode | None = None
    _panel_sink: DiscordCentralPanelSink | None = None
    _voice_sink: DiscordVoiceMetadataSink | None = None
    _presence: PresenceManager | None = None

    # Application services
    _now_playing: NowPlayingProjection | None = None
    _playback_engine: PlaybackEngineAdapter | None = None
    _session_policy: SessionPolicyService | None = None
    _serializer: GuildSerializer | None = None
    _spam_limiter: SpamLimiter | None = None
    _central_panel_service: CentralPanelService | None = None

    # Command handlers
    _play_track_handler: PlayTrackHandler | None = None
    _join_channel_handler: JoinChannelHandler | None = None
    _transport_control_handler: TransportControlHandler | None = None
    _central_request_handler: CentralRequestHandler | None = None

    # Query handlers
    _get_queue_handler: GetQueueHandler | None = None

    # Dispatch boundary
    _readiness_guard: ReadinessGuard | None = None
    _control_dispatcher: ControlDispatcher | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Persistence ===

    @property
    def database(self) -> Database:
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    @property
    def config_repository(self) -> GuildConfigRepository:
        """Get the guild configuration store."""
        if self._config_repository is None:
            from ..infrastructure.persistence.repositories.guild_config_repository import (
                SQLiteGuildConfigRepository,
            )

            self._config_repository = SQLiteGuildConfigRepository(self.database)
        return self._config_repository

    # === Infrastructure Adapters ===

    @property
    def audio_node(self) -> AudioNode:
        """Get the Lavalink node adapter."""
        if self._audio_node is None:
            from ..infrastructure.lavalink.wavelink_node import WavelinkAudioNode

            self._audio_node = WavelinkAudioNode(self.bot, self.settings.lavalink)
        return self._audio_node

    @property
    def panel_sink(self) -> DiscordCentralPanelSink:
        if self._panel_sink is None:
            from ..infrastructure.discord.sinks.central_panel_sink import DiscordCentralPanelSink

            self._panel_sink = DiscordCentralPanelSink(
                self.bot,
                self.config_repository,
                support_url=self.settings.links.support_server_url,
            )
        return self._panel_sink

    @property
    def voice_sink(self) -> DiscordVoiceMetadataSink:
        if self._voice_sink is None:
            from ..infrastructure.discord.sinks.voice_metadata import DiscordVoiceMetadataSink

            self._voice_sink = DiscordVoiceMetadataSink(self.bot)
        return self._voice_sink

    @property
    def presence(self) -> PresenceManager:
        if self._presence is None:
            from ..infrastructure.discord.sinks.presence import PresenceManager

            self._presence = PresenceManager(
                self.bot, refresh_interval=self.settings.presence.refresh_interval_s
            )
        return self._presence

    # === Application Services ===

    @property
    def now_playing(self) -> NowPlayingProjection:
        """Get the now-playing projection feeding every display sink."""
        if self._now_playing is None:
            from ..application.services.now_playing import NowPlayingProjection

            self._now_playing = NowPlayingProjection(
                panel_sink=self.panel_sink,
                voice_sink=self.voice_sink,
                presence_sink=self.presence,
            )
        return self._now_playing

    @property
    def playback_engine(self) -> PlaybackEngineAdapter:
        """Get the playback engine adapter."""
        if self._playback_engine is None:
            from ..application.services.playback_engine import PlaybackEngineAdapter

            self._playback_engine = PlaybackEngineAdapter(
                node=self.audio_node,
                projection=self.now_playing,
                config_repository=self.config_repository,
                resolve_timeout=self.settings.lavalink.resolve_timeout_s,
                default_volume=self.settings.playback.default_volume,
                volume_floor=self.settings.playback.button_volume_floor,
            )
        return self._playback_engine

    @property
    def session_policy(self) -> SessionPolicyService:
        if self._session_policy is None:
            from ..application.services.session_policy import SessionPolicyService

            self._session_policy = SessionPolicyService(
                config_repository=self.config_repository,
                engine=self.playback_engine,
            )
        return self._session_policy

    @property
    def serializer(self) -> GuildSerializer:
        """Get the per-guild FIFO."""
        if self._serializer is None:
            from ..application.services.guild_serializer import GuildSerializer

            self._serializer = GuildSerializer()
        return self._serializer

    @property
    def spam_limiter(self) -> SpamLimiter:
        if self._spam_limiter is None:
            from ..application.services.spam_limiter import SpamLimiter

            self._spam_limiter = SpamLimiter(
                threshold=self.settings.central.spam_threshold,
                window_seconds=self.settings.central.spam_window_s,
            )
        return self._spam_limiter

    @property
    def central_panel_service(self) -> CentralPanelService:
        if self._central_panel_service is None:
            from ..application.services.central_panel import CentralPanelService

            self._central_panel_service = CentralPanelService(
                config_repository=self.config_repository,
                panel_sink=self.panel_sink,
                projection=self.now_playing,
            )
        return self._central_panel_service

    # === Command Handlers ===

    @property
    def play_track_handler(self) -> PlayTrackHandler:
        if self._play_track_handler is None:
            from ..application.commands.play_track import PlayTrackHandler

            self._play_track_handler = PlayTrackHandler(
                policy=self.session_policy,
                engine=self.playback_engine,
                takeover_delay=self.settings.playback.takeover_delay_s,
            )
        return self._play_track_handler

    @property
    def join_channel_handler(self) -> JoinChannelHandler:
        if self._join_channel_handler is None:
            from ..application.commands.join_channel import JoinChannelHandler

            self._join_channel_handler = JoinChannelHandler(
                policy=self.session_policy, engine=self.playback_engine
            )
        return self._join_channel_handler

    @property
    def transport_control_handler(self) -> TransportControlHandler:
        if self._transport_control_handler is None:
            from ..application.commands.transport_control import TransportControlHandler

            self._transport_control_handler = TransportControlHandler(
                policy=self.session_policy, engine=self.playback_engine
            )
        return self._transport_control_handler

    @property
    def central_request_handler(self) -> CentralRequestHandler:
        if self._central_request_handler is None:
            from ..application.commands.central_request import CentralRequestHandler

            self._central_request_handler = CentralRequestHandler(
                limiter=self.spam_limiter,
                play_handler=self.play_track_handler,
                serializer=self.serializer,
                max_query_length=self.settings.central.max_query_length,
            )
        return self._central_request_handler

    # === Query Handlers ===

    @property
    def get_queue_handler(self) -> GetQueueHandler:
        if self._get_queue_handler is None:
            from ..application.queries.get_queue import GetQueueHandler

            self._get_queue_handler = GetQueueHandler(engine=self.playback_engine)
        return self._get_queue_handler

    # === Dispatch Boundary ===

    @property
    def capabilities(self) -> MusicCapabilities:
        from ..infrastructure.discord.guards.readiness import MusicCapabilities

        return MusicCapabilities(
            policy=self.session_policy,
            engine=self.playback_engine,
            serializer=self.serializer,
            play=self.play_track_handler,
            join=self.join_channel_handler,
            transport=self.transport_control_handler,
            queue=self.get_queue_handler,
        )

    @property
    def readiness_guard(self) -> ReadinessGuard:
        """Get the guard every music entry point consults first."""
        if self._readiness_guard is None:
            from ..infrastructure.discord.guards.readiness import ReadinessGuard

            self._readiness_guard = ReadinessGuard(self.capabilities)
        return self._readiness_guard

    @property
    def control_dispatcher(self) -> ControlDispatcher:
        if self._control_dispatcher is None:
            from ..infrastructure.discord.services.control_dispatcher import ControlDispatcher

            self._control_dispatcher = ControlDispatcher(
                self.readiness_guard, volume_step=self.settings.playback.volume_step
            )
        return self._control_dispatcher

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize all async resources."""
        await self.database.initialize()

    async def shutdown(self) -> None:
        """Shutdown and cleanup all resources."""
        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
