"""Token domain models."""

from mintcache.domain.token.model.kind import KindTables, TokenKind
from mintcache.domain.token.model.retry import DEFAULT_TIERS, RetryPolicy, RetryTier
from mintcache.domain.token.model.token import (
    INVALID_METADATA,
    RemoteToken,
    TokenKey,
    TokenRecord,
)

__all__ = [
    "DEFAULT_TIERS",
    "INVALID_METADATA",
    "KindTables",
    "RemoteToken",
    "RetryPolicy",
    "RetryTier",
    "TokenKey",
    "TokenKind",
    "TokenRecord",
]
