"""Tests for SQLAlchemyTokenRepository on in-memory SQLite."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from mintcache.domain.token.model import RetryPolicy, TokenKey, TokenKind, TokenRecord
from mintcache.infrastructure.persistence.repository.token import SQLAlchemyTokenRepository
from mintcache.infrastructure.persistence.tables import token_tables


def _record(token_id: str, block: int = 10, kind: TokenKind = TokenKind.ERC721, **kwargs) -> TokenRecord:
    return TokenRecord(
        kind=kind,
        contract="0xabc",
        token_id=token_id,
        block_number=block,
        block_hash=f"0x{block:02x}",
        metadata=kwargs.pop("metadata", {"image": f"https://cdn.example/{token_id}.png"}),
        **kwargs,
    )


async def _set_attempts(session: AsyncSession, key: TokenKey, count: int, last: datetime | None) -> None:
    table = token_tables[key.kind]
    await session.execute(
        update(table)
        .where(table.c.contract == key.contract, table.c.token_id == key.token_id)
        .values(attempt_count=count, last_attempt_at=last)
    )


class TestUpsertAndGet:
    @pytest.mark.asyncio
    async def test_round_trip(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        record = _record("1", token_uri="https://api.example/1")

        await repo.upsert(record)
        loaded = await repo.get(record.key)

        assert loaded is not None
        assert loaded.kind is TokenKind.ERC721
        assert loaded.block_hash == "0x0a"
        assert loaded.metadata == {"image": "https://cdn.example/1.png"}
        assert loaded.token_uri == "https://api.example/1"
        assert loaded.processed is False
        assert loaded.attempt_count == 0

    @pytest.mark.asyncio
    async def test_missing(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        assert await repo.get(TokenKey(kind=TokenKind.ERC721, contract="0x0", token_id="0")) is None

    @pytest.mark.asyncio
    async def test_kinds_are_partitioned(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        await repo.upsert(_record("1", kind=TokenKind.ERC1155))

        assert await repo.get(TokenKey(kind=TokenKind.ERC721, contract="0xabc", token_id="1")) is None
        assert await repo.get(TokenKey(kind=TokenKind.ERC1155, contract="0xabc", token_id="1")) is not None

    @pytest.mark.asyncio
    async def test_upsert_resets_existing_record(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        record = _record("1")
        await repo.upsert(record)
        await repo.mark_failure(record.key)
        await repo.mark_success(record.key, "https://media.example/0xabc/1")

        await repo.upsert(_record("1", block=12))
        loaded = await repo.get(record.key)

        assert loaded.block_number == 12
        assert loaded.attempt_count == 0
        assert loaded.last_attempt_at is None
        assert loaded.processed is False
        assert loaded.cached_location is None

    @pytest.mark.asyncio
    async def test_unparseable_metadata_kept_as_text(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        record = _record("1", metadata="{not json")

        await repo.upsert(record)

        assert (await repo.get(record.key)).metadata == "{not json"


class TestOutcomes:
    @pytest.mark.asyncio
    async def test_mark_failure_increments(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        record = _record("1")
        await repo.upsert(record)

        await repo.mark_failure(record.key)
        await repo.mark_failure(record.key)
        loaded = await repo.get(record.key)

        assert loaded.attempt_count == 2
        assert loaded.last_attempt_at is not None
        assert loaded.processed is False

    @pytest.mark.asyncio
    async def test_mark_success_sets_location(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        record = _record("1")
        await repo.upsert(record)

        await repo.mark_success(record.key, "https://media.example/0xabc/1")
        loaded = await repo.get(record.key)

        assert loaded.processed is True
        assert loaded.cached_location == "https://media.example/0xabc/1"

    @pytest.mark.asyncio
    async def test_mark_abandoned(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        record = _record("1")
        await repo.upsert(record)

        await repo.mark_abandoned(record.key, 100)

        assert (await repo.get(record.key)).attempt_count == 100


class TestSelectDue:
    @pytest.mark.asyncio
    async def test_applies_retry_tiers(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        now = datetime.now(UTC)
        for token_id in ("fresh", "due", "capped", "recent", "done"):
            await repo.upsert(_record(token_id))
        await _set_attempts(session, _record("due").key, 5, now - timedelta(hours=2))
        await _set_attempts(session, _record("capped").key, 13, now - timedelta(minutes=90))
        await _set_attempts(session, _record("recent").key, 5, now - timedelta(minutes=10))
        await repo.mark_success(_record("done").key, "https://media.example/0xabc/done")

        due = await repo.select_due(TokenKind.ERC721, RetryPolicy(), now, 500)

        assert [r.token_id for r in due] == ["fresh", "due"]

    @pytest.mark.asyncio
    async def test_orders_by_attempts_and_limits(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        for token_id, attempts in (("a", 2), ("b", 0), ("c", 1)):
            await repo.upsert(_record(token_id))
            await _set_attempts(session, _record(token_id).key, attempts, None)

        due = await repo.select_due(TokenKind.ERC721, RetryPolicy(), datetime.now(UTC), 2)

        assert [r.token_id for r in due] == ["b", "c"]


class TestForkSupport:
    @pytest.mark.asyncio
    async def test_list_recent_newest_first(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        for block in (5, 50, 20):
            await repo.upsert(_record(str(block), block=block))

        recent = await repo.list_recent(TokenKind.ERC721, 2)

        assert [r.block_number for r in recent] == [50, 20]

    @pytest.mark.asyncio
    async def test_delete_above_removes_strictly_newer(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        for block in (80, 90, 95, 100):
            await repo.upsert(_record(str(block), block=block))

        deleted = await repo.delete_above(TokenKind.ERC721, 90)

        assert sorted(k.token_id for k in deleted) == ["100", "95"]
        remaining = await repo.list_recent(TokenKind.ERC721, 10)
        assert [r.block_number for r in remaining] == [90, 80]

    @pytest.mark.asyncio
    async def test_delete_above_nothing(self, session: AsyncSession):
        repo = SQLAlchemyTokenRepository(session)
        await repo.upsert(_record("1", block=10))

        assert await repo.delete_above(TokenKind.ERC721, 10) == []
