"""Tiered retry policy for failed media acquisitions.

Backoff is a lookup table rather than a computed delay: each tier says
"once this much time has passed since the last attempt, records with fewer
than ``ceiling`` attempts are due again". More elapsed time buys a higher
ceiling; a record at or above the last ceiling is never selected again.
"""

from datetime import UTC, datetime, timedelta

from pydantic import model_validator
from typing_extensions import Self

from mintcache.domain.shared.model.value import ValueObject


class RetryTier(ValueObject):
    """Records whose last attempt is older than ``elapsed`` may retry below ``ceiling``."""

    elapsed: timedelta
    ceiling: int


DEFAULT_TIERS: tuple[RetryTier, ...] = (
    RetryTier(elapsed=timedelta(hours=1), ceiling=12),
    RetryTier(elapsed=timedelta(hours=2), ceiling=25),
    RetryTier(elapsed=timedelta(hours=6), ceiling=40),
    RetryTier(elapsed=timedelta(hours=12), ceiling=50),
    RetryTier(elapsed=timedelta(days=1), ceiling=60),
    RetryTier(elapsed=timedelta(days=3), ceiling=70),
    RetryTier(elapsed=timedelta(days=7), ceiling=90),
    RetryTier(elapsed=timedelta(days=14), ceiling=100),
)


class RetryPolicy(ValueObject):
    """Which unprocessed records are due for another acquisition attempt."""

    unconditional_below: int = 3
    tiers: tuple[RetryTier, ...] = DEFAULT_TIERS

    @model_validator(mode="after")
    def check_staircase(self) -> Self:
        previous: RetryTier | None = None
        for tier in self.tiers:
            if tier.ceiling < self.unconditional_below:
                raise ValueError("tier ceilings must not be below unconditional_below")
            if previous is not None and (
                tier.elapsed <= previous.elapsed or tier.ceiling < previous.ceiling
            ):
                raise ValueError("retry tiers must grow in elapsed time and ceiling")
            previous = tier
        return self

    @property
    def ceiling(self) -> int:
        """Attempt count at which a record is abandoned for good."""
        return max([self.unconditional_below, *(t.ceiling for t in self.tiers)])

    def is_due(
        self,
        attempt_count: int,
        last_attempt_at: datetime | None,
        now: datetime,
    ) -> bool:
        if attempt_count < self.unconditional_below:
            return True
        if last_attempt_at is None:
            return False
        if last_attempt_at.tzinfo is None:
            last_attempt_at = last_attempt_at.replace(tzinfo=UTC)
        elapsed = now - last_attempt_at
        return any(elapsed > t.elapsed and attempt_count < t.ceiling for t in self.tiers)
