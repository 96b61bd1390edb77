"""Central system lifecycle: setup, teardown, startup reset and guild settings."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from ...domain.policy.value_objects import DenialCode
from ...domain.shared.exceptions import PolicyDenied, SinkRenderFailure
from ...domain.shared.messages import DiscordUIMessages, LogTemplates
from ..interfaces.display_sinks import PanelHealth

if TYPE_CHECKING:
    from ...domain.guild.entities import GuildConfig
    from ...domain.guild.repository import GuildConfigRepository
    from ...domain.music.entities import DisplayProjection
    from ..interfaces.display_sinks import CentralPanelSink
    from .now_playing import NowPlayingProjection

logger = logging.getLogger(__name__)


class CentralSetupStatus(Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    ALREADY_ENABLED = "already_enabled"
    NOT_ENABLED = "not_enabled"


class CentralSetupResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: CentralSetupStatus
    message: str
    embed_id: int | None = None

    @property
    def is_success(self) -> bool:
        return self.status in (CentralSetupStatus.ENABLED, CentralSetupStatus.DISABLED)

    @classmethod
    def success(cls, status: CentralSetupStatus, message: str, embed_id: int | None = None) -> CentralSetupResult:
        return cls(status=status, message=message, embed_id=embed_id)

    @classmethod
    def error(cls, status: CentralSetupStatus, message: str) -> CentralSetupResult:
        return cls(status=status, message=message)


class ResetReport(BaseModel):
    """Counts from one startup reset pass."""

    idle: int = 0
    republished: int = 0
    disabled: int = 0
    skipped: int = 0


class CentralPanelService:
    """Manages the central channel configuration and its panel message."""

    def __init__(
        self,
        *,
        config_repository: GuildConfigRepository,
        panel_sink: CentralPanelSink,
        projection: NowPlayingProjection,
    ) -> None:
        self._config_repo = config_repository
        self._panel_sink = panel_sink
        self._projection = projection

    async def setup(
        self,
        guild_id: int,
        channel_id: int,
        *,
        vc_channel_id: int | None = None,
        allowed_role_id: int | None = None,
    ) -> CentralSetupResult:
        """Publish the panel in ``channel_id`` and enable the central system."""
        config = await self._config_repo.find_by_guild_id(guild_id)
        if config is not None and config.central_setup.is_active:
            return CentralSetupResult.error(
                CentralSetupStatus.ALREADY_ENABLED,
                DiscordUIMessages.CENTRAL_ALREADY_ENABLED.format(channel_id=config.central_setup.channel_id),
            )

        embed_id = await self._panel_sink.publish(channel_id)
        await self._config_repo.upsert(
            guild_id,
            {
                "centralSetup": {
                    "enabled": True,
                    "channelId": channel_id,
                    "embedId": embed_id,
                    "vcChannelId": vc_channel_id,
                    "allowedRoles": [allowed_role_id] if allowed_role_id else [],
                    "deleteMessages": True,
                }
            },
        )
        logger.info(LogTemplates.CENTRAL_SETUP, guild_id, channel_id, embed_id)

        current = self._projection.current(guild_id)
        if current is not None:
            await self._render_quietly(guild_id, current)

        return CentralSetupResult.success(
            CentralSetupStatus.ENABLED,
            DiscordUIMessages.CENTRAL_SETUP_DONE.format(channel=f"<#{channel_id}>"),
            embed_id=embed_id,
        )

    async def disable(self, guild_id: int) -> CentralSetupResult:
        config = await self._config_repo.find_by_guild_id(guild_id)
        if config is None or not config.central_setup.enabled:
            return CentralSetupResult.error(CentralSetupStatus.NOT_ENABLED, DiscordUIMessages.CENTRAL_NOT_ENABLED)

        central = config.central_setup
        if central.channel_id is not None and central.embed_id is not None:
            await self._panel_sink.remove(central.channel_id, central.embed_id)

        await self._disable_config(guild_id)
        logger.info(LogTemplates.CENTRAL_DISABLED, guild_id)
        return CentralSetupResult.success(CentralSetupStatus.DISABLED, DiscordUIMessages.CENTRAL_DISABLED)

    async def reset_on_startup(self) -> ResetReport:
        """Bring every enabled panel back to a known state after a restart."""
        report = ResetReport()
        for config in await self._config_repo.find_enabled_central():
            try:
                await self._reset_one(config, report)
            except Exception as e:
                report.skipped += 1
                logger.warning(LogTemplates.CENTRAL_RESET_FAILED, config.guild_id, e)

        logger.info(
            LogTemplates.CENTRAL_RESET_DONE, report.idle, report.republished, report.disabled, report.skipped
        )
        return report

    async def set_autoplay(self, guild_id: int, enabled: bool, *, role_ids: Iterable[int] = ()) -> GuildConfig:
        """Store the guild's autoplay flag; gated by the DJ role when one is configured.

        Raises:
            PolicyDenied: If the member lacks the DJ role.
        """
        config = await self._config_repo.find_by_guild_id(guild_id)
        if config is not None and not config.settings.can_control(role_ids):
            raise PolicyDenied(DiscordUIMessages.POLICY_DJ_REQUIRED, code=DenialCode.DJ_REQUIRED.value)
        return await self._config_repo.upsert(guild_id, {"settings.autoplay": enabled})

    async def _reset_one(self, config: GuildConfig, report: ResetReport) -> None:
        central = config.central_setup
        if central.channel_id is None:
            await self._disable_config(config.guild_id)
            report.disabled += 1
            return

        health = await self._panel_sink.check(config.guild_id, central.channel_id, central.embed_id)
        match health:
            case PanelHealth.GONE:
                await self._disable_config(config.guild_id)
                report.disabled += 1
            case PanelHealth.NO_PERMISSION:
                report.skipped += 1
            case PanelHealth.MISSING_MESSAGE:
                embed_id = await self._panel_sink.publish(central.channel_id)
                await self._config_repo.upsert(config.guild_id, {"centralSetup.embedId": embed_id})
                report.republished += 1
            case PanelHealth.OK:
                await self._panel_sink.render(config.guild_id, None)
                report.idle += 1

    async def _disable_config(self, guild_id: int) -> None:
        await self._config_repo.upsert(
            guild_id,
            {
                "centralSetup.enabled": False,
                "centralSetup.channelId": None,
                "centralSetup.embedId": None,
            },
        )

    async def _render_quietly(self, guild_id: int, projection: DisplayProjection) -> None:
        try:
            await self._panel_sink.render(guild_id, projection)
        except SinkRenderFailure as e:
            logger.debug(LogTemplates.SINK_FAILED, "central-panel", guild_id, e.detail)
