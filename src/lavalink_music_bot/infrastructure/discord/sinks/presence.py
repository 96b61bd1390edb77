"""Bot presence: the playing title while any guild is active, a ready note otherwise."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

import discord

from lavalink_music_bot.application.interfaces.display_sinks import PresenceSink
from lavalink_music_bot.domain.shared.constants import PanelStyle, TimeConstants
from lavalink_music_bot.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from discord.ext import commands

logger = logging.getLogger(__name__)

IDLE_TEXT = f"{PanelStyle.MUSIC_NOTE} Ready for music!"
SERVER_COUNT_TEXT = "🎸 Music in {count} servers"


class PresenceManager(PresenceSink):
    """Listening activity for the latest title, re-asserted on an interval.

    The refresh job only runs while a title is shown; ``reset`` stops it.
    """

    def __init__(
        self,
        bot: commands.Bot,
        *,
        refresh_interval: float = TimeConstants.PRESENCE_REFRESH_INTERVAL,
    ) -> None:
        self._bot = bot
        self._refresh_interval = refresh_interval
        self._title: str | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def title(self) -> str | None:
        return self._title

    @property
    def is_refreshing(self) -> bool:
        return self._task is not None and not self._task.done()

    async def show(self, title: str) -> None:
        self._title = title
        await self._apply(self._listening(title))
        if not self.is_refreshing:
            self._task = asyncio.create_task(self._refresh_loop())

    async def reset(self) -> None:
        self._title = None
        await self._cancel()
        await self._apply(discord.Activity(type=discord.ActivityType.watching, name=IDLE_TEXT))

    async def announce_servers(self) -> None:
        text = SERVER_COUNT_TEXT.format(count=len(self._bot.guilds))
        await self._apply(discord.Game(name=text))

    async def stop(self) -> None:
        self._title = None
        await self._cancel()

    @staticmethod
    def _listening(title: str) -> discord.Activity:
        return discord.Activity(type=discord.ActivityType.listening, name=f"{PanelStyle.MUSIC_NOTE} {title}")

    async def _refresh_loop(self) -> None:
        while self._title is not None:
            await asyncio.sleep(self._refresh_interval)
            if self._title is None:
                break
            await self._apply(self._listening(self._title))

    async def _cancel(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _apply(self, activity: discord.BaseActivity) -> None:
        try:
            await self._bot.change_presence(activity=activity)
        except (discord.DiscordException, OSError) as e:
            logger.warning(LogTemplates.PRESENCE_FAILED, e)
