"""Mirrored token records."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from mintcache.domain.shared.model.value import ValueObject
from mintcache.domain.token.model.kind import TokenKind

# Marker written by upstream indexers when a token's metadata could not be parsed
INVALID_METADATA = "___INVALID_METADATA___"


class TokenKey(ValueObject):
    """Identity of a mirrored token."""

    kind: TokenKind
    contract: str
    token_id: str

    def __str__(self) -> str:
        return f"{self.contract}:{self.token_id}"


class RemoteToken(BaseModel):
    """A token row as reported by a remote source."""

    kind: TokenKind
    contract: str
    token_id: str
    block_number: int = Field(ge=0)
    metadata: Any = None
    token_uri: str | None = None

    @property
    def key(self) -> TokenKey:
        return TokenKey(kind=self.kind, contract=self.contract, token_id=self.token_id)


class TokenRecord(BaseModel):
    """A token mirrored into the local store.

    ``processed`` is only ever set together with ``cached_location``.
    ``attempt_count`` counts failed acquisitions since the record was last
    (re)inserted.
    """

    kind: TokenKind
    contract: str
    token_id: str
    block_number: int = Field(ge=0)
    block_hash: str = Field(max_length=66)
    metadata: Any = None
    token_uri: str | None = None
    cached_location: str | None = None
    processed: bool = False
    attempt_count: int = Field(default=0, ge=0)
    last_attempt_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def key(self) -> TokenKey:
        return TokenKey(kind=self.kind, contract=self.contract, token_id=self.token_id)

    @classmethod
    def adopt(cls, row: RemoteToken, block_hash: str) -> "TokenRecord":
        """Build a fresh, never-attempted record from a remote row."""
        return cls(
            kind=row.kind,
            contract=row.contract,
            token_id=row.token_id,
            block_number=row.block_number,
            block_hash=block_hash,
            metadata=row.metadata,
            token_uri=row.token_uri,
        )
