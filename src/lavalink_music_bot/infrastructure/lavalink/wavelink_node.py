"""Lavalink node adapter implementing AudioNode on top of wavelink."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, cast

import discord
import wavelink

from lavalink_music_bot.application.interfaces.audio_node import AudioNode, LoadType, ResolveResult
from lavalink_music_bot.domain.music.entities import Track
from lavalink_music_bot.domain.shared.exceptions import EngineUnavailable, ResolverEmpty
from lavalink_music_bot.domain.shared.messages import ErrorMessages, LogTemplates
from lavalink_music_bot.utils.reply import truncate

if TYPE_CHECKING:
    from ...config.settings import LavalinkSettings

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 497
YOUTUBE_MIX_URL = "https://www.youtube.com/watch?v={identifier}&list=RD{identifier}"

_NODE_ERRORS: tuple[type[Exception], ...] = (
    wavelink.WavelinkException,
    discord.ClientException,
    TimeoutError,
)


def is_url(query: str) -> bool:
    return query.startswith(("http://", "https://"))


def to_track(playable: wavelink.Playable) -> Track:
    """Convert a wavelink Playable into the domain Track."""
    return Track(
        title=truncate(playable.title or "Unknown", MAX_TITLE_LENGTH),
        author=playable.author or "Unknown",
        duration_ms=max(playable.length or 0, 0),
        thumbnail_url=playable.artwork,
        source_uri=playable.uri,
        identifier=playable.identifier,
        encoded=playable.encoded,
        is_stream=playable.is_stream,
        is_seekable=playable.is_seekable,
    )


class WavelinkAudioNode(AudioNode):
    """One Lavalink v4 node, its players and a small cache of resolved tracks.

    The cache maps the engine's encoded handle back to the ``wavelink.Playable``
    it came from so queued and looped tracks replay without another lookup.
    """

    def __init__(self, bot: discord.Client, settings: LavalinkSettings) -> None:
        self._bot = bot
        self._settings = settings
        self._playables: OrderedDict[str, wavelink.Playable] = OrderedDict()

    # ─── Node lifecycle ─────────────────────────────────────────────────

    async def start(self) -> None:
        node = wavelink.Node(
            uri=self._settings.uri,
            password=self._settings.password.get_secret_value(),
            identifier=self._settings.identifier,
            retries=self._settings.retries,
        )
        logger.info(LogTemplates.NODE_CONNECTING, self._settings.identifier, self._settings.uri)
        try:
            await wavelink.Pool.connect(nodes=[node], client=self._bot, cache_capacity=None)
        except _NODE_ERRORS as e:
            logger.error(LogTemplates.NODE_CONNECT_FAILED, self._settings.identifier, e)
            raise EngineUnavailable(str(e)) from e

    async def close(self) -> None:
        self._playables.clear()
        await wavelink.Pool.close()
        logger.info(LogTemplates.NODE_POOL_CLOSED)

    def is_available(self) -> bool:
        return any(node.status is wavelink.NodeStatus.CONNECTED for node in wavelink.Pool.nodes.values())

    # ─── Voice ──────────────────────────────────────────────────────────

    def _get_player(self, guild_id: int) -> wavelink.Player | None:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            return None
        vc = guild.voice_client
        return vc if isinstance(vc, wavelink.Player) else None

    def _require_player(self, guild_id: int) -> wavelink.Player:
        player = self._get_player(guild_id)
        if player is None:
            raise EngineUnavailable(ErrorMessages.NO_PLAYER_FOR_GUILD.format(guild_id=guild_id))
        return player

    def _voice_channel(self, guild_id: int, channel_id: int) -> discord.VoiceChannel | discord.StageChannel:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            raise EngineUnavailable(ErrorMessages.GUILD_UNAVAILABLE.format(guild_id=guild_id))
        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise EngineUnavailable(ErrorMessages.CHANNEL_NOT_VOICE.format(channel_id=channel_id))
        return channel

    async def connect(self, guild_id: int, channel_id: int) -> None:
        channel = self._voice_channel(guild_id, channel_id)
        try:
            player = await channel.connect(
                cls=wavelink.Player,
                self_deaf=True,
                timeout=self._settings.connect_timeout,
            )
        except discord.Forbidden as e:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            raise EngineUnavailable(str(e)) from e
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise EngineUnavailable(str(e)) from e
        except _NODE_ERRORS as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            raise EngineUnavailable(str(e)) from e

        # Queue advancement belongs to the playback adapter.
        player.autoplay = wavelink.AutoPlayMode.disabled
        logger.info(LogTemplates.VOICE_CONNECTED, channel_id, guild_id)

    async def move_to(self, guild_id: int, channel_id: int) -> None:
        player = self._get_player(guild_id)
        if player is None:
            await self.connect(guild_id, channel_id)
            return

        channel = self._voice_channel(guild_id, channel_id)
        try:
            await player.move_to(channel, timeout=self._settings.connect_timeout, self_deaf=True)
        except _NODE_ERRORS as e:
            raise EngineUnavailable(str(e)) from e
        logger.info(LogTemplates.VOICE_MOVED, channel_id, guild_id)

    async def disconnect(self, guild_id: int) -> None:
        player = self._get_player(guild_id)
        if player is None:
            return
        try:
            await player.disconnect()
        except _NODE_ERRORS as e:
            raise EngineUnavailable(str(e)) from e
        logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)

    def is_connected(self, guild_id: int) -> bool:
        player = self._get_player(guild_id)
        return player is not None and player.connected

    # ─── Resolution ─────────────────────────────────────────────────────

    async def resolve(self, query: str) -> ResolveResult:
        query = query.strip()
        if not self.is_available():
            raise EngineUnavailable(ErrorMessages.NO_CONNECTED_NODE)

        try:
            if is_url(query):
                found = await wavelink.Playable.search(query)
            else:
                found = await wavelink.Playable.search(query, source=self._settings.search_source)
        except _NODE_ERRORS as e:
            logger.warning(LogTemplates.RESOLVE_FAILED, query, e)
            raise EngineUnavailable(str(e)) from e

        if not found:
            raise ResolverEmpty(query)

        if isinstance(found, wavelink.Playlist):
            playables = list(found.tracks)
            load_type = LoadType.PLAYLIST
            playlist_name: str | None = found.name
        else:
            playables = list(found)
            load_type = LoadType.TRACK if is_url(query) else LoadType.SEARCH
            playlist_name = None

        tracks = tuple(self._remember(p) for p in playables)
        return ResolveResult(load_type=load_type, tracks=tracks, playlist_name=playlist_name)

    async def recommend(self, track: Track) -> Track | None:
        if not self.is_available():
            raise EngineUnavailable(ErrorMessages.NO_CONNECTED_NODE)

        if track.source_uri and "youtube" in track.source_uri:
            query = YOUTUBE_MIX_URL.format(identifier=track.identifier)
            source: str | None = None
        else:
            query = f"{track.author} {track.title}"
            source = self._settings.search_source

        try:
            found = await wavelink.Playable.search(query, source=source)
        except wavelink.WavelinkException as e:
            raise EngineUnavailable(str(e)) from e

        candidates = found.tracks if isinstance(found, wavelink.Playlist) else found
        for playable in candidates:
            if playable.identifier != track.identifier:
                return self._remember(playable)
        return None

    def _remember(self, playable: wavelink.Playable) -> Track:
        self._playables[playable.encoded] = playable
        self._playables.move_to_end(playable.encoded)
        while len(self._playables) > self._settings.track_cache_size:
            self._playables.popitem(last=False)
        return to_track(playable)

    async def _playable_for(self, track: Track) -> wavelink.Playable:
        if track.encoded is None:
            raise EngineUnavailable(f"Track {track.identifier} has no encoded handle")

        cached = self._playables.get(track.encoded)
        if cached is not None:
            self._playables.move_to_end(track.encoded)
            return cached

        try:
            node = wavelink.Pool.get_node()
            data = await node.send("GET", path="v4/decodetrack", params={"encodedTrack": track.encoded})
        except wavelink.WavelinkException as e:
            raise EngineUnavailable(str(e)) from e
        return wavelink.Playable(cast(Any, data))

    # ─── Transport ──────────────────────────────────────────────────────

    async def play(self, guild_id: int, track: Track, *, volume: int) -> None:
        player = self._require_player(guild_id)
        playable = await self._playable_for(track)
        try:
            await player.play(playable, replace=True, volume=volume, paused=False)
        except _NODE_ERRORS as e:
            raise EngineUnavailable(str(e)) from e

    async def pause(self, guild_id: int, paused: bool) -> None:
        player = self._require_player(guild_id)
        await self._call(player.pause(paused))

    async def stop(self, guild_id: int) -> None:
        player = self._get_player(guild_id)
        if player is None:
            return
        await self._call(player.stop(force=True))

    async def set_volume(self, guild_id: int, volume: int) -> None:
        player = self._require_player(guild_id)
        await self._call(player.set_volume(volume))

    async def seek(self, guild_id: int, position_ms: int) -> None:
        player = self._require_player(guild_id)
        await self._call(player.seek(position_ms))

    def position(self, guild_id: int) -> int:
        player = self._get_player(guild_id)
        if player is None or player.current is None:
            return 0
        return max(int(player.position), 0)

    @staticmethod
    async def _call(operation: Any) -> None:
        try:
            await operation
        except _NODE_ERRORS as e:
            raise EngineUnavailable(str(e)) from e


async def wait_for_node(node: AudioNode, timeout: float) -> bool:
    """Poll until ``node`` reports a connected node or ``timeout`` elapses."""
    try:
        async with asyncio.timeout(timeout):
            while not node.is_available():
                await asyncio.sleep(0.5)
    except TimeoutError:
        return False
    return True
