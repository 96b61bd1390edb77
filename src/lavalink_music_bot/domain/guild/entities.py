"""Per-guild configuration document.

Stored layout (camelCase keys)::

    {
        "_id": "<guild id>",
        "centralSetup": {"enabled", "channelId", "embedId", "vcChannelId",
                         "allowedRoles": [...], "deleteMessages"},
        "settings": {"prefix", "autoplay", "defaultVolume", "djRole"},
    }
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_serializer, field_validator

from lavalink_music_bot.domain.shared.constants import LimitConstants
from lavalink_music_bot.domain.shared.types import CommandPrefixStr, DiscordSnowflake, VolumePercent
from lavalink_music_bot.domain.shared.validators import coerce_snowflake, coerce_snowflakes

_DOCUMENT_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class CentralSetup(BaseModel):
    model_config = _DOCUMENT_CONFIG

    enabled: bool = False
    channel_id: DiscordSnowflake | None = Field(default=None, alias="channelId")
    embed_id: DiscordSnowflake | None = Field(default=None, alias="embedId")
    vc_channel_id: DiscordSnowflake | None = Field(default=None, alias="vcChannelId")
    allowed_roles: tuple[DiscordSnowflake, ...] = Field(default=(), alias="allowedRoles")
    delete_messages: bool = Field(default=True, alias="deleteMessages")

    @field_validator("channel_id", "embed_id", "vc_channel_id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> int | None:
        return coerce_snowflake(v)

    @field_validator("allowed_roles", mode="before")
    @classmethod
    def _coerce_roles(cls, v: Any) -> tuple[int, ...]:
        return coerce_snowflakes(v)

    @field_validator("enabled", "delete_messages", mode="before")
    @classmethod
    def _null_is_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return info.field_name == "delete_messages"
        return v

    @property
    def is_active(self) -> bool:
        """Enabled and bound to a text channel."""
        return self.enabled and self.channel_id is not None

    def permits(self, role_ids: Iterable[int]) -> bool:
        """Whether a member with ``role_ids`` may use the central system.

        An empty ``allowed_roles`` means everyone may use it.
        """
        if not self.enabled:
            return False
        if not self.allowed_roles:
            return True
        held = set(role_ids)
        return any(role in held for role in self.allowed_roles)

    def is_central_voice(self, channel_id: int | None) -> bool:
        return self.enabled and channel_id is not None and self.vc_channel_id == channel_id


class GuildSettings(BaseModel):
    model_config = _DOCUMENT_CONFIG

    prefix: CommandPrefixStr = "!"
    autoplay: bool = False
    default_volume: VolumePercent = Field(default=LimitConstants.DEFAULT_VOLUME, alias="defaultVolume")
    dj_role: DiscordSnowflake | None = Field(default=None, alias="djRole")

    @field_validator("dj_role", mode="before")
    @classmethod
    def _coerce_role(cls, v: Any) -> int | None:
        return coerce_snowflake(v)

    @field_validator("prefix", "autoplay", "default_volume", mode="before")
    @classmethod
    def _drop_null(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return cls.model_fields[info.field_name].default
        return v

    def can_control(self, role_ids: Iterable[int]) -> bool:
        """DJ gate: without a configured DJ role any member may control playback."""
        if self.dj_role is None:
            return True
        return self.dj_role in set(role_ids)


class GuildConfig(BaseModel):
    model_config = _DOCUMENT_CONFIG

    guild_id: DiscordSnowflake = Field(alias="_id")
    central_setup: CentralSetup = Field(default_factory=CentralSetup, alias="centralSetup")
    settings: GuildSettings = Field(default_factory=GuildSettings)

    @field_validator("guild_id", mode="before")
    @classmethod
    def _coerce_guild(cls, v: Any) -> Any:
        return coerce_snowflake(v)

    @field_validator("central_setup", "settings", mode="before")
    @classmethod
    def _null_section(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_serializer("guild_id")
    def _serialize_guild(self, v: int) -> str:
        return str(v)

    @classmethod
    def default(cls, guild_id: int) -> GuildConfig:
        return cls(_id=guild_id)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> GuildConfig:
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        """Serialize back to the stored camelCase layout, ids as strings."""
        document = self.model_dump(by_alias=True)
        central = document["centralSetup"]
        for key in ("channelId", "embedId", "vcChannelId"):
            if central[key] is not None:
                central[key] = str(central[key])
        central["allowedRoles"] = [str(role) for role in central["allowedRoles"]]
        if document["settings"]["djRole"] is not None:
            document["settings"]["djRole"] = str(document["settings"]["djRole"])
        return document
