"""SQLite implementation of the guild configuration repository."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import aiosqlite

from lavalink_music_bot.domain.guild.entities import GuildConfig
from lavalink_music_bot.domain.guild.repository import GuildConfigRepository
from lavalink_music_bot.domain.shared.constants import DatabaseTables
from lavalink_music_bot.domain.shared.datetime_utils import to_iso, utcnow
from lavalink_music_bot.domain.shared.exceptions import ConfigStoreUnavailable
from lavalink_music_bot.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)

_TABLE = DatabaseTables.GUILD_CONFIGS


class SQLiteGuildConfigRepository(GuildConfigRepository):
    """Stores each guild's configuration as one JSON document.

    ``upsert`` reads, merges and writes inside a single ``BEGIN IMMEDIATE``
    transaction so concurrent partial updates serialize in SQLite.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    async def find_by_guild_id(self, guild_id: int) -> GuildConfig | None:
        try:
            row = await self._db.fetch_one(
                f"SELECT document FROM {_TABLE} WHERE guild_id = ?",
                (guild_id,),
            )
        except aiosqlite.Error as e:
            raise self._failure("find", guild_id, e) from e

        if row is None:
            return None
        return self._parse(guild_id, row["document"])

    async def upsert(self, guild_id: int, fields: Mapping[str, Any]) -> GuildConfig:
        try:
            async with self._db.transaction() as conn:
                await conn.execute("BEGIN IMMEDIATE")
                cursor = await conn.execute(
                    f"SELECT document FROM {_TABLE} WHERE guild_id = ?",
                    (guild_id,),
                )
                row = await cursor.fetchone()
                if row is None:
                    document = GuildConfig.default(guild_id).to_document()
                else:
                    document = self._load(guild_id, row["document"])

                merge_fields(document, fields)
                document["_id"] = str(guild_id)
                config = GuildConfig.from_document(document)

                await conn.execute(
                    f"""
                    INSERT INTO {_TABLE} (guild_id, document, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(guild_id) DO UPDATE SET
                        document = excluded.document,
                        updated_at = excluded.updated_at
                    """,
                    (guild_id, json.dumps(config.to_document()), to_iso(utcnow())),
                )
        except aiosqlite.Error as e:
            raise self._failure("upsert", guild_id, e) from e

        logger.debug(LogTemplates.CONFIG_UPSERTED, guild_id, sorted(fields))
        return config

    async def find_enabled_central(self) -> list[GuildConfig]:
        try:
            rows = await self._db.fetch_all(
                f"""
                SELECT guild_id, document FROM {_TABLE}
                WHERE json_extract(document, '$.centralSetup.enabled') = 1
                ORDER BY guild_id
                """
            )
        except aiosqlite.Error as e:
            raise self._failure("find_enabled_central", None, e) from e

        return [self._parse(row["guild_id"], row["document"]) for row in rows]

    async def delete(self, guild_id: int) -> bool:
        try:
            async with self._db.transaction() as conn:
                cursor = await conn.execute(f"DELETE FROM {_TABLE} WHERE guild_id = ?", (guild_id,))
                deleted = cursor.rowcount > 0
        except aiosqlite.Error as e:
            raise self._failure("delete", guild_id, e) from e

        if deleted:
            logger.info(LogTemplates.CONFIG_DELETED, guild_id)
        return deleted

    # ─── Helpers ────────────────────────────────────────────────────────

    def _load(self, guild_id: int, raw: str) -> dict[str, Any]:
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigStoreUnavailable(
                "decode", ErrorMessages.CONFIG_DOCUMENT_INVALID.format(guild_id=guild_id)
            ) from e
        if not isinstance(document, dict):
            raise ConfigStoreUnavailable("decode", ErrorMessages.CONFIG_DOCUMENT_INVALID.format(guild_id=guild_id))
        return document

    def _parse(self, guild_id: int, raw: str) -> GuildConfig:
        return GuildConfig.from_document(self._load(guild_id, raw))

    @staticmethod
    def _failure(operation: str, guild_id: int | None, error: Exception) -> ConfigStoreUnavailable:
        logger.error(LogTemplates.CONFIG_STORE_FAILED, operation, guild_id, error)
        return ConfigStoreUnavailable(operation)


def merge_fields(document: dict[str, Any], fields: Mapping[str, Any]) -> dict[str, Any]:
    """Merge a partial update into ``document`` in place.

    Keys may be dotted paths (``"centralSetup.enabled"``); mapping values are
    merged recursively instead of replacing the whole section.
    """
    for key, value in fields.items():
        *parents, leaf = key.split(".")
        target = document
        for part in parents:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child

        existing = target.get(leaf)
        if isinstance(value, Mapping) and isinstance(existing, dict):
            merge_fields(existing, value)
        elif isinstance(value, Mapping):
            target[leaf] = merge_fields({}, value)
        else:
            target[leaf] = value
    return document
