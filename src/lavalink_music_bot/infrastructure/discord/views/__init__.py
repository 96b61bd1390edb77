"""Discord UI views and components."""

from __future__ import annotations

from lavalink_music_bot.infrastructure.discord.views.control_panel import (
    PanelAction,
    PanelButton,
    build_active_embed,
    build_idle_embed,
    build_panel_view,
    format_queue,
)

__all__ = [
    "PanelAction",
    "PanelButton",
    "build_active_embed",
    "build_idle_embed",
    "build_panel_view",
    "format_queue",
]
