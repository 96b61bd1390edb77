"""Voice channel metadata sink.

Annotates the bot's voice channel with the playing title using an ordered
chain of strategies (voice status, then topic, then channel name). The first
strategy that succeeds wins. Original values are captured on the first
annotation of a channel and released once they have been put back.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

import discord
from discord.http import Route

from lavalink_music_bot.application.interfaces.display_sinks import VoiceMetadataSink
from lavalink_music_bot.domain.shared.constants import LimitConstants, PanelStyle
from lavalink_music_bot.domain.shared.exceptions import SinkRenderFailure
from lavalink_music_bot.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from discord.ext import commands

logger = logging.getLogger(__name__)

SINK_NAME = "voice-metadata"

VoiceLike = discord.VoiceChannel | discord.StageChannel


class StrategyOutcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class OriginalMetadata:
    """What a channel looked like before the first annotation."""

    name: str
    topic: str | None
    strategy: str


def _clip(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


class MetadataStrategy(ABC):
    name: ClassVar[str]

    def __init__(self, bot: commands.Bot) -> None:
        self._bot = bot

    async def apply(self, channel: VoiceLike, title: str, original: OriginalMetadata) -> StrategyOutcome:
        return await self._attempt(channel, self._write(channel, title, original))

    async def restore(self, channel: VoiceLike, original: OriginalMetadata) -> StrategyOutcome:
        return await self._attempt(channel, self._undo(channel, original))

    async def _attempt(self, channel: VoiceLike, write: Awaitable[object]) -> StrategyOutcome:
        try:
            await write
        except discord.HTTPException as e:
            logger.debug(LogTemplates.VOICE_STRATEGY_FAILED, self.name, channel.id, e)
            return StrategyOutcome.FAILED
        return StrategyOutcome.SUCCEEDED

    @abstractmethod
    async def _write(self, channel: VoiceLike, title: str, original: OriginalMetadata) -> None: ...

    @abstractmethod
    async def _undo(self, channel: VoiceLike, original: OriginalMetadata) -> None: ...


class VoiceStatusStrategy(MetadataStrategy):
    """The dedicated voice channel status field."""

    name = "status"

    async def _put_status(self, channel: VoiceLike, status: str | None) -> None:
        route = Route("PUT", "/channels/{channel_id}/voice-status", channel_id=channel.id)
        await self._bot.http.request(route, json={"status": status})

    async def _write(self, channel: VoiceLike, title: str, original: OriginalMetadata) -> None:
        status = _clip(f"{PanelStyle.MUSIC_NOTE} {title}", LimitConstants.MAX_VOICE_STATUS_LENGTH)
        await self._put_status(channel, status)

    async def _undo(self, channel: VoiceLike, original: OriginalMetadata) -> None:
        await self._put_status(channel, None)


class TopicStrategy(MetadataStrategy):
    name = "topic"

    async def _write(self, channel: VoiceLike, title: str, original: OriginalMetadata) -> None:
        await self._bot.http.edit_channel(channel.id, topic=f"{PanelStyle.MUSIC_NOTE} Now Playing: {title}")

    async def _undo(self, channel: VoiceLike, original: OriginalMetadata) -> None:
        await self._bot.http.edit_channel(channel.id, topic=original.topic or "")


class NameStrategy(MetadataStrategy):
    """Prefixes the channel name with a musical note; the title itself is not shown."""

    name = "name"

    async def _write(self, channel: VoiceLike, title: str, original: OriginalMetadata) -> None:
        name = _clip(f"{PanelStyle.MUSIC_NOTE} {original.name}", LimitConstants.MAX_CHANNEL_NAME_LENGTH)
        if channel.name != name:
            await channel.edit(name=name)

    async def _undo(self, channel: VoiceLike, original: OriginalMetadata) -> None:
        if channel.name != original.name:
            await channel.edit(name=original.name)


class DiscordVoiceMetadataSink(VoiceMetadataSink):
    def __init__(self, bot: commands.Bot, strategies: list[MetadataStrategy] | None = None) -> None:
        self._bot = bot
        self._strategies = strategies or [VoiceStatusStrategy(bot), TopicStrategy(bot), NameStrategy(bot)]
        self._originals: dict[int, OriginalMetadata] = {}

    @property
    def strategies(self) -> list[MetadataStrategy]:
        return list(self._strategies)

    def original(self, channel_id: int) -> OriginalMetadata | None:
        return self._originals.get(channel_id)

    def _channel(self, guild_id: int, channel_id: int) -> VoiceLike:
        guild = self._bot.get_guild(guild_id)
        channel = guild.get_channel(channel_id) if guild is not None else None
        if not isinstance(channel, VoiceLike):
            raise SinkRenderFailure(SINK_NAME, f"voice channel {channel_id} not found")

        me = channel.guild.me
        if not channel.permissions_for(me).manage_channels:
            raise SinkRenderFailure(SINK_NAME, f"missing Manage Channels in {channel_id}")
        return channel

    async def annotate(self, guild_id: int, channel_id: int, title: str) -> bool:
        channel = self._channel(guild_id, channel_id)
        recorded = self._originals.get(channel_id)
        original = recorded or OriginalMetadata(
            name=channel.name,
            topic=getattr(channel, "topic", None),
            strategy="",
        )

        for strategy in self._strategies:
            if await strategy.apply(channel, title, original) is StrategyOutcome.SUCCEEDED:
                if recorded is None or recorded.strategy != strategy.name:
                    self._originals[channel_id] = OriginalMetadata(
                        name=original.name, topic=original.topic, strategy=strategy.name
                    )
                logger.debug(LogTemplates.VOICE_METADATA_APPLIED, strategy.name, channel_id)
                return True

        raise SinkRenderFailure(SINK_NAME, f"every strategy failed on channel {channel_id}")

    async def restore(self, guild_id: int, channel_id: int) -> bool:
        original = self._originals.get(channel_id)
        if original is None:
            return False

        channel = self._channel(guild_id, channel_id)
        # The strategy that wrote the annotation goes first, the others keep their order.
        ordered = sorted(self._strategies, key=lambda s: s.name != original.strategy)
        for strategy in ordered:
            if await strategy.restore(channel, original) is StrategyOutcome.SUCCEEDED:
                del self._originals[channel_id]
                logger.debug(LogTemplates.VOICE_METADATA_RESTORED, strategy.name, channel_id)
                return True

        raise SinkRenderFailure(SINK_NAME, f"could not restore channel {channel_id}")
