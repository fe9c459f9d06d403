"""Retry backoff configuration."""

from dataclasses import dataclass


@dataclass
class RetryConfig:
    """Exponential backoff parameters for notification redelivery.

    Attributes:
        max_attempts: Default retry budget for a new notification
        base_delay_seconds: Delay before the first retry
        backoff_multiplier: Growth factor applied per attempt already made
        max_delay_seconds: Cap on any single delay
        batch_size: Notifications re-attempted per retry run

    Example:
        config = RetryConfig()
        config.delay_seconds(3)  # 8.0

        config = RetryConfig(max_attempts=5, max_delay_seconds=30)
    """

    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay_seconds: float = 60.0
    batch_size: int = 100

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 0 or self.max_attempts > 10:
            raise ValueError("max_attempts must be between 0 and 10")
        if self.base_delay_seconds <= 0:
            raise ValueError("base_delay_seconds must be positive")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be at least 1")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    def delay_seconds(self, attempts: int) -> float:
        """Backoff delay in seconds after ``attempts`` attempts already made.

        Uses ``base_delay * multiplier ** attempts`` capped at
        ``max_delay_seconds``.
        """
        if attempts < 0:
            raise ValueError("attempts cannot be negative")
        # Cap the exponent so large counts cannot overflow the float
        exponent = min(attempts, 64)
        delay = self.base_delay_seconds * (self.backoff_multiplier**exponent)
        return min(delay, self.max_delay_seconds)
