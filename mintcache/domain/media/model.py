from enum import StrEnum


class MediaOutcome(StrEnum):
    """Result of one acquisition attempt for a token."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"  # transient, retried per the retry policy
    ABANDONED = "abandoned"  # permanent, parked at the attempt ceiling
