"""Resilience patterns: exponential backoff for failed deliveries."""

from infrastructure.resilience.retry import (
    RetryConfig,
    RetryResult,
    calculate_retry_delay,
    next_retry_time,
)

__all__ = [
    "RetryConfig",
    "RetryResult",
    "calculate_retry_delay",
    "next_retry_time",
]
