"""Database engine and session factory creation."""

import os
from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from mintcache.config import Config


def expand_sqlite_path(url: str) -> str:
    """Expand ~ in SQLite URLs and ensure parent directory exists."""
    if not url.startswith("sqlite") or _is_memory(url):
        return url

    # Extract path from URL (sqlite+aiosqlite:///path or sqlite:///path)
    prefix_end = url.index("///") + 3
    prefix = url[:prefix_end]
    path = url[prefix_end:]

    expanded = os.path.expanduser(path)
    abs_path = os.path.abspath(expanded)

    Path(abs_path).parent.mkdir(parents=True, exist_ok=True)

    return f"{prefix}{abs_path}"


def _is_memory(url: str) -> bool:
    stripped = url.rstrip("/")
    return stripped.endswith(":memory:") or stripped in ("sqlite", "sqlite+aiosqlite:")


def create_engine_for_url(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with settings suited to the dialect.

    In-memory SQLite shares one connection (StaticPool) so every session sees
    the same database; file SQLite and PostgreSQL use a regular pool.
    """
    url = expand_sqlite_path(url)

    if url.startswith("sqlite"):
        engine_kwargs: dict[str, Any] = {
            "echo": echo,
            "connect_args": {"check_same_thread": False, "timeout": 30},
        }
        if _is_memory(url):
            engine_kwargs["poolclass"] = StaticPool
    else:
        # PostgreSQL settings
        engine_kwargs = {
            "echo": echo,
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
        }

    return create_async_engine(url, **engine_kwargs)


def create_db_engine(config: Config) -> AsyncEngine:
    """Create the async engine for the local mirror database."""
    return create_engine_for_url(config.database.url, echo=config.database.echo)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory for dependency injection."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )
