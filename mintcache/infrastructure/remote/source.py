"""SQLAlchemy adapter implementing RemoteSource."""

import json
import logging
from typing import Any

from sqlalchemy import Text, cast, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from mintcache.domain.shared.error import RemoteSourceError
from mintcache.domain.token.model import INVALID_METADATA, RemoteToken, TokenKey, TokenKind
from mintcache.domain.token.port.remote import RemoteSource
from mintcache.infrastructure.remote.tables import blocks_table, remote_token_tables

logger = logging.getLogger(__name__)

# The sentinel may be stored as a JSON string or as bare text
_INVALID_METADATA_FORMS = (json.dumps(INVALID_METADATA), INVALID_METADATA)


def _decode(raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class SqlRemoteSource(RemoteSource):
    """A remote ledger database reached through a shared async engine.

    Every call checks out its own connection, so one source can serve
    concurrent workers.
    """

    def __init__(self, name: str, engine: AsyncEngine) -> None:
        self._name = name
        self._engine = engine

    @property
    def name(self) -> str:
        return self._name

    async def highest_block(self) -> int | None:
        stmt = select(func.max(blocks_table.c.number))
        return await self._scalar(stmt, "read highest block")

    async def block_hash(self, number: int) -> str | None:
        stmt = select(blocks_table.c.hash).where(blocks_table.c.number == number)
        return await self._scalar(stmt, f"read hash of block {number}")

    async def fetch_pending(self, kind: TokenKind, limit: int) -> list[RemoteToken]:
        table = remote_token_tables[kind]
        block = table.c[kind.tables.block_field]
        stmt = (
            select(
                table.c.contract,
                table.c.token_id,
                block.label("block_number"),
                table.c.metadata,
                table.c.token_uri,
            )
            .where(
                or_(table.c.image_cache.is_(None), table.c.image_cache == ""),
                table.c.metadata.is_not(None),
                cast(table.c.metadata, Text).not_in(_INVALID_METADATA_FORMS),
            )
            .order_by(block.desc())
            .limit(limit)
        )
        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).mappings().all()
        except SQLAlchemyError as e:
            raise RemoteSourceError(f"{self._name}: failed to fetch {kind} tokens: {e}") from e

        return [
            RemoteToken(
                kind=kind,
                contract=row["contract"],
                token_id=str(row["token_id"]),
                block_number=row["block_number"],
                metadata=_decode(row["metadata"]),
                token_uri=row["token_uri"],
            )
            for row in rows
        ]

    async def set_cached_location(self, key: TokenKey, location: str) -> None:
        await self._write_cache(key, location)

    async def clear_cached_location(self, key: TokenKey) -> None:
        await self._write_cache(key, None)

    async def _write_cache(self, key: TokenKey, location: str | None) -> None:
        table = remote_token_tables[key.kind]
        stmt = (
            update(table)
            .where(table.c.contract == key.contract, table.c.token_id == key.token_id)
            .values(image_cache=location)
        )
        try:
            async with self._engine.begin() as conn:
                await conn.execute(stmt)
        except SQLAlchemyError as e:
            raise RemoteSourceError(
                f"{self._name}: failed to update image cache of {key}: {e}"
            ) from e

    async def _scalar(self, stmt: Any, action: str) -> Any:
        try:
            async with self._engine.connect() as conn:
                return (await conn.execute(stmt)).scalar()
        except SQLAlchemyError as e:
            raise RemoteSourceError(f"{self._name}: failed to {action}: {e}") from e
