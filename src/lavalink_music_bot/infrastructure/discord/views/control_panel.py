"""Embeds and persistent buttons of the central control panel."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import discord

from lavalink_music_bot.domain.shared.constants import LimitConstants, PanelStyle
from lavalink_music_bot.domain.shared.messages import DiscordUIMessages
from lavalink_music_bot.utils.reply import truncate

if TYPE_CHECKING:
    from ....application.queries.get_queue import QueueInfo
    from ....domain.music.entities import DisplayProjection


class PanelAction(StrEnum):
    """The closed set of panel button actions; ``music_<value>`` is the custom id."""

    PAUSE = "pause"
    RESUME = "resume"
    SKIP = "skip"
    STOP = "stop"
    CLEAR = "clear"
    LOOP = "loop"
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    QUEUE = "queue"
    SHUFFLE = "shuffle"

    @property
    def custom_id(self) -> str:
        return f"music_{self.value}"


_ACTION_PATTERN = "|".join(re.escape(action.value) for action in PanelAction)


# ─── Embeds ────────────────────────────────────────────────────────────


def build_idle_embed(support_url: str | None = None) -> discord.Embed:
    """The welcome panel shown while nothing plays. It carries no controls."""
    embed = discord.Embed(
        description="\n".join(
            [
                "",
                "- Simply type a **song name** or **YouTube link** to start the party!",
                "",
                "✨ *Ready to fill this place with amazing music?*",
            ]
        ),
        color=PanelStyle.COLOR_IDLE,
    )
    embed.set_author(name=PanelStyle.IDLE_TITLE, icon_url=PanelStyle.ICON_URL, url=support_url)
    embed.add_field(
        name="🎯 Quick Examples",
        value="\n".join(
            [
                "• `shape of you`",
                "• `lofi hip hop beats`",
                "• `https://youtu.be/dQw4w9WgXcQ`",
                "• `imagine dragons believer`",
            ]
        ),
        inline=True,
    )
    embed.add_field(
        name="🚀 Features",
        value="\n".join(
            [
                "• 🎵 High quality audio",
                "• 📜 Queue management",
                "• 🔁 Loop & shuffle modes",
                "• 🎛️ Volume controls",
                "• ⚡ Lightning fast search",
            ]
        ),
        inline=True,
    )
    embed.add_field(
        name="💡 Pro Tips",
        value="\n".join(
            [
                "• Join voice channel first",
                "• Use specific song names",
                "• Try artist + song combo",
                "• Playlists are supported!",
            ]
        ),
        inline=False,
    )
    embed.set_image(url=PanelStyle.IDLE_IMAGE_URL)
    embed.set_footer(text=PanelStyle.FOOTER)
    embed.timestamp = discord.utils.utcnow()
    return embed


def format_requester(projection: DisplayProjection) -> str:
    if projection.requester_id:
        return f"<@{projection.requester_id}>"
    if projection.requester_name:
        return projection.requester_name
    return "Autoplay"


def build_active_embed(projection: DisplayProjection, support_url: str | None = None) -> discord.Embed:
    status_text = "Paused" if projection.paused else "Now Playing"
    embed = discord.Embed(
        description="\n".join(
            [
                f"**🎤 Artist:** {projection.author}",
                f"**👤 Requested by:** {format_requester(projection)}",
                "",
                f"⏰ **Duration:** `{projection.duration_formatted}`",
                f"{projection.loop_mode.emoji} **Loop:** `{projection.loop_mode.label}`",
                f"🔊 **Volume:** `{projection.volume}%`",
                "",
                "🎶 *Enjoying the vibes? Type more song names below to keep the party going!*",
            ]
        ),
        color=PanelStyle.COLOR_PAUSED if projection.paused else PanelStyle.COLOR_ACTIVE,
    )
    embed.set_author(name=truncate(projection.title, 250), icon_url=PanelStyle.ICON_URL, url=support_url)
    embed.set_thumbnail(url=projection.thumbnail_url or PanelStyle.ICON_URL)
    if not projection.paused:
        embed.set_image(url=PanelStyle.ACTIVE_IMAGE_URL)
    embed.set_footer(text=f"{PanelStyle.FOOTER} • {status_text}")
    embed.timestamp = discord.utils.utcnow()
    return embed


def format_queue(info: QueueInfo) -> str:
    """Text answer of the queue button and the ``queue`` command."""
    if info.is_empty:
        return DiscordUIMessages.QUEUE_EMPTY

    preview = info.tracks[: LimitConstants.QUEUE_PREVIEW_COUNT]
    lines = [DiscordUIMessages.QUEUE_HEADER.format(count=info.length)]
    lines.extend(
        f"{index}. {truncate(track.title, LimitConstants.QUEUE_TITLE_WIDTH)}"
        for index, track in enumerate(preview, start=1)
    )
    remaining = info.length - len(preview)
    if remaining > 0:
        lines.append(DiscordUIMessages.QUEUE_MORE.format(count=remaining))
    return "\n".join(lines)


# ─── Buttons ───────────────────────────────────────────────────────────


class PanelButton(
    discord.ui.DynamicItem[discord.ui.Button[Any]],
    template=rf"music_(?P<action>{_ACTION_PATTERN})",
):
    """A panel control whose action lives in its custom id.

    Registered once with ``bot.add_dynamic_items`` so presses on panels posted
    before a restart are still routed.
    """

    def __init__(
        self,
        action: PanelAction,
        *,
        emoji: str | None = None,
        label: str | None = None,
        style: discord.ButtonStyle = discord.ButtonStyle.secondary,
        row: int | None = None,
    ) -> None:
        super().__init__(
            discord.ui.Button(custom_id=action.custom_id, emoji=emoji, label=label, style=style, row=row)
        )
        self.action = action

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Item[Any],
        match: re.Match[str],
        /,
    ) -> PanelButton:
        return cls(PanelAction(match["action"]))

    async def callback(self, interaction: discord.Interaction) -> None:
        container = getattr(interaction.client, "container")
        await container.control_dispatcher.dispatch(interaction, self.action)


def build_panel_view(projection: DisplayProjection, support_url: str | None = None) -> discord.ui.View:
    """Controls of the active panel; the pause button flips to resume while paused."""
    view = discord.ui.View(timeout=None)
    toggle = PanelAction.RESUME if projection.paused else PanelAction.PAUSE

    view.add_item(PanelButton(PanelAction.SKIP, emoji="⏭️", style=discord.ButtonStyle.primary, row=0))
    view.add_item(
        PanelButton(
            toggle,
            emoji=PanelStyle.STATUS_PLAYING if projection.paused else PanelStyle.STATUS_PAUSED,
            style=discord.ButtonStyle.success,
            row=0,
        )
    )
    view.add_item(PanelButton(PanelAction.STOP, emoji="🛑", style=discord.ButtonStyle.danger, row=0))
    view.add_item(PanelButton(PanelAction.QUEUE, emoji="📜", style=discord.ButtonStyle.success, row=0))
    view.add_item(
        PanelButton(
            PanelAction.LOOP,
            emoji=projection.loop_mode.emoji,
            label="Loop",
            style=discord.ButtonStyle.primary,
            row=0,
        )
    )

    view.add_item(PanelButton(PanelAction.VOLUME_DOWN, emoji="🔉", row=1))
    view.add_item(PanelButton(PanelAction.VOLUME_UP, emoji="🔊", row=1))
    view.add_item(PanelButton(PanelAction.CLEAR, emoji="🗑️", row=1))
    view.add_item(PanelButton(PanelAction.SHUFFLE, emoji="🔀", row=1))
    if support_url:
        view.add_item(discord.ui.Button(style=discord.ButtonStyle.link, label="Support", url=support_url, row=1))
    return view
