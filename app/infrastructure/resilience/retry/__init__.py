"""Retry backoff for failed notification deliveries.

Usage:
    from infrastructure.resilience.retry import RetryConfig, next_retry_time

    config = RetryConfig(max_attempts=3)
    notification.next_retry_at = next_retry_time(now, notification.retry_count, config)
"""

from infrastructure.resilience.retry.backoff import (
    calculate_retry_delay,
    next_retry_time,
)
from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.models import RetryResult

__all__ = [
    "RetryConfig",
    "RetryResult",
    "calculate_retry_delay",
    "next_retry_time",
]
