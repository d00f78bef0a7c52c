"""TokenRepository port - local mirror of remote token records."""

from abc import abstractmethod
from datetime import datetime
from typing import Protocol

from mintcache.domain.shared.port import Port
from mintcache.domain.token.model import RetryPolicy, TokenKey, TokenKind, TokenRecord


class TokenRepository(Port, Protocol):
    """Local store of mirrored tokens, one partition per token kind.

    Every mutation is a single-row (or single-predicate) statement keyed by
    ``(contract, token_id)``, so concurrent workers need no extra locking.
    Mutations are durable when they return.
    """

    @abstractmethod
    async def get(self, key: TokenKey) -> TokenRecord | None:
        """Fetch one record, or None if it is not mirrored."""
        ...

    @abstractmethod
    async def list_recent(self, kind: TokenKind, limit: int) -> list[TokenRecord]:
        """Most recently minted records first (descending block number)."""
        ...

    @abstractmethod
    async def upsert(self, record: TokenRecord) -> None:
        """Insert a record, or reset an existing one to a fresh, unattempted state."""
        ...

    @abstractmethod
    async def delete_above(self, kind: TokenKind, block_number: int) -> list[TokenKey]:
        """Delete records minted strictly after ``block_number``; return their keys."""
        ...

    @abstractmethod
    async def select_due(
        self,
        kind: TokenKind,
        policy: RetryPolicy,
        now: datetime,
        limit: int,
    ) -> list[TokenRecord]:
        """Unprocessed records due under ``policy``, least-attempted first."""
        ...

    @abstractmethod
    async def mark_success(self, key: TokenKey, cached_location: str) -> None: ...

    @abstractmethod
    async def mark_failure(self, key: TokenKey) -> None:
        """Bump the attempt count and stamp the attempt time."""
        ...

    @abstractmethod
    async def mark_abandoned(self, key: TokenKey, attempt_count: int) -> None:
        """Park a record at a terminal attempt count so it is never selected again."""
        ...
