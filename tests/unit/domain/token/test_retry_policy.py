"""Unit tests for RetryPolicy - tiered backoff eligibility."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from mintcache.domain.token.model import RetryPolicy, RetryTier

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def policy() -> RetryPolicy:
    return RetryPolicy()


class TestIsDue:
    @pytest.mark.parametrize("attempts", [0, 1, 2])
    def test_first_attempts_are_unconditional(self, policy: RetryPolicy, attempts: int):
        assert policy.is_due(attempts, NOW, NOW)

    def test_never_attempted_above_threshold_is_not_due(self, policy: RetryPolicy):
        assert not policy.is_due(3, None, NOW)

    def test_two_hours_after_fifth_attempt(self, policy: RetryPolicy):
        assert policy.is_due(5, NOW - timedelta(hours=2), NOW)

    def test_first_tier_ceiling(self, policy: RetryPolicy):
        last = NOW - timedelta(minutes=90)
        assert policy.is_due(11, last, NOW)
        assert not policy.is_due(12, last, NOW)
        assert not policy.is_due(13, last, NOW)

    def test_too_recent(self, policy: RetryPolicy):
        assert not policy.is_due(5, NOW - timedelta(minutes=30), NOW)

    def test_longer_wait_raises_ceiling(self, policy: RetryPolicy):
        assert policy.is_due(65, NOW - timedelta(days=4), NOW)
        assert not policy.is_due(65, NOW - timedelta(hours=13), NOW)

    def test_terminal_ceiling(self, policy: RetryPolicy):
        assert policy.ceiling == 100
        assert not policy.is_due(100, NOW - timedelta(days=365), NOW)

    def test_naive_timestamp_is_utc(self, policy: RetryPolicy):
        naive = (NOW - timedelta(hours=2)).replace(tzinfo=None)
        assert policy.is_due(5, naive, NOW)


class TestValidation:
    def test_custom_tiers(self):
        policy = RetryPolicy(
            unconditional_below=1,
            tiers=(RetryTier(elapsed=timedelta(minutes=5), ceiling=3),),
        )
        assert policy.ceiling == 3
        assert policy.is_due(2, NOW - timedelta(minutes=6), NOW)

    def test_elapsed_must_grow(self):
        with pytest.raises(ValidationError):
            RetryPolicy(
                tiers=(
                    RetryTier(elapsed=timedelta(hours=2), ceiling=10),
                    RetryTier(elapsed=timedelta(hours=1), ceiling=20),
                )
            )

    def test_ceilings_must_not_shrink(self):
        with pytest.raises(ValidationError):
            RetryPolicy(
                tiers=(
                    RetryTier(elapsed=timedelta(hours=1), ceiling=20),
                    RetryTier(elapsed=timedelta(hours=2), ceiling=10),
                )
            )

    def test_ceiling_below_unconditional_threshold(self):
        with pytest.raises(ValidationError):
            RetryPolicy(
                unconditional_below=5,
                tiers=(RetryTier(elapsed=timedelta(hours=1), ceiling=4),),
            )
