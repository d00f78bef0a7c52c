"""WorkSelector - picks records due for media acquisition."""

import logging
from datetime import UTC, datetime

from mintcache.domain.shared.service import Service
from mintcache.domain.token.model import RetryPolicy, TokenKind, TokenRecord
from mintcache.domain.token.port.repository import TokenRepository

logger = logging.getLogger(__name__)


class WorkSelector(Service):
    """Selects unprocessed records that the retry policy says are due.

    Least-attempted records come first so every record gets a few tries
    before any one of them is retried at length.
    """

    tokens: TokenRepository
    policy: RetryPolicy
    page_size: int

    async def select(
        self,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[TokenRecord]:
        limit = limit or self.page_size
        now = now or datetime.now(UTC)

        due: list[TokenRecord] = []
        for kind in TokenKind:
            try:
                records = await self.tokens.select_due(kind, self.policy, now, limit)
            except Exception as e:
                logger.error("Error getting %s tokens from local database: %s", kind, e)
                continue
            due.extend(
                r for r in records if self.policy.is_due(r.attempt_count, r.last_attempt_at, now)
            )

        due.sort(key=lambda r: r.attempt_count)
        selected = due[:limit]
        logger.debug("Selected %d due token(s)", len(selected))
        return selected
