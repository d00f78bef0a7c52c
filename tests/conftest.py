"""Global test fixtures."""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mintcache.infrastructure.persistence.tables import metadata
from mintcache.infrastructure.remote.tables import remote_metadata


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own settings out of tests."""
    for var in (
        "MINTCACHE_CONFIG_FILE",
        "MINTCACHE_DATA_DIR",
        "MINTCACHE_LOG_FILE",
        "MINTCACHE_DATABASE__URL",
    ):
        monkeypatch.delenv(var, raising=False)


def _memory_engine() -> AsyncEngine:
    return create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest_asyncio.fixture
async def local_engine() -> AsyncIterator[AsyncEngine]:
    """In-memory local mirror with every token table created."""
    engine = _memory_engine()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(local_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(local_engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def remote_engine() -> AsyncIterator[AsyncEngine]:
    """In-memory stand-in for a remote ledger database."""
    engine = _memory_engine()
    async with engine.begin() as conn:
        await conn.run_sync(remote_metadata.create_all)
    yield engine
    await engine.dispose()
