"""Remote source ports - authoritative ledgers mirrored by mintcache."""

from abc import abstractmethod
from typing import Protocol

from mintcache.domain.shared.port import Port
from mintcache.domain.token.model import RemoteToken, TokenKey, TokenKind


class RemoteSource(Port, Protocol):
    """One remote database fed by a chain indexer.

    Adapters raise ``RemoteSourceError`` when the remote cannot be queried.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def highest_block(self) -> int | None:
        """Highest block number the remote knows about, or None if it has none."""
        ...

    @abstractmethod
    async def block_hash(self, number: int) -> str | None:
        """Hash of block ``number`` on this remote, or None if unknown."""
        ...

    @abstractmethod
    async def fetch_pending(self, kind: TokenKind, limit: int) -> list[RemoteToken]:
        """Tokens with valid metadata and no cached location, newest first."""
        ...

    @abstractmethod
    async def set_cached_location(self, key: TokenKey, location: str) -> None: ...

    @abstractmethod
    async def clear_cached_location(self, key: TokenKey) -> None: ...


class RemoteSourceRegistry(Port, Protocol):
    """Owns one reusable connection handle per configured remote."""

    @abstractmethod
    def sources(self) -> list[RemoteSource]:
        """All configured remotes, in configuration order."""
        ...
