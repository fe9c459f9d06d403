"""Backoff arithmetic shared by the dispatcher, retry job and receipt job."""

from datetime import datetime, timedelta

from infrastructure.resilience.retry.config import RetryConfig


def calculate_retry_delay(attempts: int, config: RetryConfig | None = None) -> timedelta:
    """Delay to wait before the next attempt.

    Args:
        attempts: Number of attempts already made (the current retry count)
        config: Backoff parameters; defaults to ``RetryConfig()``

    Returns:
        timedelta of ``min(base * multiplier ** attempts, max_delay)``
    """
    config = config or RetryConfig()
    return timedelta(seconds=config.delay_seconds(attempts))


def next_retry_time(
    now: datetime, attempts: int, config: RetryConfig | None = None
) -> datetime:
    """Absolute time of the next attempt, strictly later than ``now``."""
    return now + calculate_retry_delay(attempts, config)
