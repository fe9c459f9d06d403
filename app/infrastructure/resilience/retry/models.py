"""Retry outcome model."""

from enum import Enum


class RetryResult(Enum):
    """Outcome of re-attempting one notification.

    Values:
        SUCCESS: Every pending channel is now sent, nothing left to retry
        RETRY: At least one channel failed again, next attempt scheduled
        EXHAUSTED: Failed again and the retry budget is spent
        SKIPPED: Nothing was attempted (recipient gone, no enabled channel)
    """

    SUCCESS = "success"
    RETRY = "retry"
    EXHAUSTED = "exhausted"
    SKIPPED = "skipped"
