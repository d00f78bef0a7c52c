"""SQLAlchemy adapter implementing TokenRepository."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Table, and_, delete, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from mintcache.domain.token.model import RetryPolicy, TokenKey, TokenKind, TokenRecord
from mintcache.domain.token.port.repository import TokenRepository
from mintcache.infrastructure.persistence.tables import token_tables

logger = logging.getLogger(__name__)


def _encode_metadata(metadata: Any) -> str:
    if isinstance(metadata, str):
        return metadata
    return json.dumps(metadata)


def _decode_metadata(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class SQLAlchemyTokenRepository(TokenRepository):
    """SQLAlchemy-backed token mirror.

    Each token kind lives in its own table. Writes are single statements,
    so records touched by concurrent workers never need explicit locking.

    Every mutation commits before returning, so no write transaction (and
    no SQLite write lock) stays open while the caller talks to remotes.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, key: TokenKey) -> TokenRecord | None:
        table = token_tables[key.kind]
        stmt = select(table).where(*self._key_filter(table, key))
        row = (await self._session.execute(stmt)).mappings().first()
        return self._to_record(row) if row is not None else None

    async def list_recent(self, kind: TokenKind, limit: int) -> list[TokenRecord]:
        table = token_tables[kind]
        stmt = select(table).order_by(table.c.block_number.desc()).limit(limit)
        rows = (await self._session.execute(stmt)).mappings().all()
        return [self._to_record(row) for row in rows]

    async def upsert(self, record: TokenRecord) -> None:
        table = token_tables[record.kind]
        now = datetime.now(UTC)
        values = {
            "contract": record.contract,
            "token_id": record.token_id,
            "kind": str(record.kind),
            "block_number": record.block_number,
            "block_hash": record.block_hash,
            "metadata": _encode_metadata(record.metadata),
            "token_uri": record.token_uri,
            "cached_location": None,
            "attempt_count": 0,
            "last_attempt_at": None,
            "processed": False,
            "updated_at": now,
        }

        insert = postgresql.insert if self._dialect == "postgresql" else sqlite.insert
        stmt = insert(table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.contract, table.c.token_id],
            set_={k: v for k, v in values.items() if k not in ("contract", "token_id")},
        )
        await self._session.execute(stmt)
        await self._session.commit()

    async def delete_above(self, kind: TokenKind, block_number: int) -> list[TokenKey]:
        table = token_tables[kind]
        condition = table.c.block_number > block_number

        rows = (
            await self._session.execute(select(table.c.contract, table.c.token_id).where(condition))
        ).all()
        if not rows:
            return []

        await self._session.execute(delete(table).where(condition))
        await self._session.commit()
        logger.debug("Deleted %d %s row(s) above block %d", len(rows), kind, block_number)
        return [TokenKey(kind=kind, contract=c, token_id=t) for c, t in rows]

    async def select_due(
        self,
        kind: TokenKind,
        policy: RetryPolicy,
        now: datetime,
        limit: int,
    ) -> list[TokenRecord]:
        table = token_tables[kind]
        # Cutoffs are computed here so the predicate stays dialect-agnostic
        tiers = [
            and_(
                table.c.last_attempt_at < now - tier.elapsed,
                table.c.attempt_count < tier.ceiling,
            )
            for tier in policy.tiers
        ]
        stmt = (
            select(table)
            .where(
                table.c.processed.is_(False),
                or_(table.c.attempt_count < policy.unconditional_below, *tiers),
            )
            .order_by(table.c.attempt_count.asc())
            .limit(limit)
        )
        rows = (await self._session.execute(stmt)).mappings().all()
        return [self._to_record(row) for row in rows]

    async def mark_success(self, key: TokenKey, cached_location: str) -> None:
        table = token_tables[key.kind]
        stmt = (
            update(table)
            .where(*self._key_filter(table, key))
            .values(processed=True, cached_location=cached_location, updated_at=datetime.now(UTC))
        )
        await self._session.execute(stmt)
        await self._session.commit()

    async def mark_failure(self, key: TokenKey) -> None:
        table = token_tables[key.kind]
        now = datetime.now(UTC)
        stmt = (
            update(table)
            .where(*self._key_filter(table, key))
            .values(attempt_count=table.c.attempt_count + 1, last_attempt_at=now, updated_at=now)
        )
        await self._session.execute(stmt)
        await self._session.commit()

    async def mark_abandoned(self, key: TokenKey, attempt_count: int) -> None:
        table = token_tables[key.kind]
        now = datetime.now(UTC)
        stmt = (
            update(table)
            .where(*self._key_filter(table, key))
            .values(attempt_count=attempt_count, last_attempt_at=now, updated_at=now)
        )
        await self._session.execute(stmt)
        await self._session.commit()

    @property
    def _dialect(self) -> str:
        return self._session.get_bind().dialect.name

    @staticmethod
    def _key_filter(table: Table, key: TokenKey) -> tuple:
        return (table.c.contract == key.contract, table.c.token_id == key.token_id)

    @staticmethod
    def _to_record(row: Any) -> TokenRecord:
        return TokenRecord(
            kind=TokenKind(row["kind"]),
            contract=row["contract"],
            token_id=row["token_id"],
            block_number=row["block_number"],
            block_hash=row["block_hash"],
            metadata=_decode_metadata(row["metadata"]),
            token_uri=row["token_uri"],
            cached_location=row["cached_location"],
            processed=row["processed"],
            attempt_count=row["attempt_count"],
            last_attempt_at=row["last_attempt_at"],
            updated_at=row["updated_at"],
        )
