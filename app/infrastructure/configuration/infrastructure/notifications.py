"""Notification engine infrastructure settings."""

from pydantic import Field, field_validator

from infrastructure.configuration.base import InfrastructureSettings

STORE_BACKENDS = ("memory", "dynamodb")


class NotificationSettings(InfrastructureSettings):
    """Delivery, retry and storage configuration for notifications.

    Environment Variables:
        NOTIFICATION_MAX_RETRIES: Retry budget per notification (default: 3)
        NOTIFICATION_RETRY_INITIAL_DELAY_SECONDS: First backoff delay (default: 1)
        NOTIFICATION_RETRY_BACKOFF_MULTIPLIER: Backoff growth factor (default: 2)
        NOTIFICATION_RETRY_MAX_DELAY_SECONDS: Backoff ceiling (default: 60)
        NOTIFICATION_EXPIRY_HOURS: Record lifetime (default: 24)
        NOTIFICATION_SEND_TIMEOUT_SECONDS: Per-channel send timeout (default: 10)
        NOTIFICATION_RETRY_BATCH_SIZE: Notifications handled per retry run (default: 100)
        NOTIFICATION_RECEIPT_BATCH_SIZE: Tickets per receipt request (default: 1000)
        NOTIFICATION_RECEIPT_LOOKBACK_HOURS: Receipt polling window (default: 24)
        NOTIFICATION_STORE_BACKEND: 'memory' or 'dynamodb' (default: memory)
        NOTIFICATION_DYNAMODB_TABLE_NAME: DynamoDB table for notifications

    Exponential Backoff:
        delay = min(initial * multiplier ** retry_count, max_delay)

        With defaults: 1s, 2s, 4s, 8s, 16s, 32s, 60s, 60s, ...

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        timeout = settings.notifications.send_timeout_seconds
        ```
    """

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        alias="NOTIFICATION_MAX_RETRIES",
        description="Maximum retry attempts per notification",
    )
    retry_initial_delay_seconds: float = Field(
        default=1.0,
        gt=0,
        alias="NOTIFICATION_RETRY_INITIAL_DELAY_SECONDS",
        description="Backoff delay before the first retry (seconds)",
    )
    retry_backoff_multiplier: float = Field(
        default=2.0,
        ge=1,
        alias="NOTIFICATION_RETRY_BACKOFF_MULTIPLIER",
        description="Exponential backoff multiplier",
    )
    retry_max_delay_seconds: float = Field(
        default=60.0,
        gt=0,
        alias="NOTIFICATION_RETRY_MAX_DELAY_SECONDS",
        description="Maximum backoff delay (seconds)",
    )
    expiry_hours: int = Field(
        default=24,
        gt=0,
        alias="NOTIFICATION_EXPIRY_HOURS",
        description="Hours before a notification expires and is swept",
    )
    send_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        alias="NOTIFICATION_SEND_TIMEOUT_SECONDS",
        description="Timeout for a single channel send (seconds)",
    )
    retry_batch_size: int = Field(
        default=100,
        ge=1,
        alias="NOTIFICATION_RETRY_BATCH_SIZE",
        description="Maximum notifications re-attempted per retry run",
    )
    receipt_batch_size: int = Field(
        default=1000,
        ge=1,
        le=1000,
        alias="NOTIFICATION_RECEIPT_BATCH_SIZE",
        description="Ticket ids sent per receipt lookup",
    )
    receipt_lookback_hours: int = Field(
        default=24,
        gt=0,
        alias="NOTIFICATION_RECEIPT_LOOKBACK_HOURS",
        description="Only push tickets created within this window are polled",
    )
    store_backend: str = Field(
        default="memory",
        alias="NOTIFICATION_STORE_BACKEND",
        description="Notification store backend: 'memory' or 'dynamodb'",
    )
    dynamodb_table_name: str = Field(
        default="care-escalation-notifications",
        alias="NOTIFICATION_DYNAMODB_TABLE_NAME",
        description="DynamoDB table name (if using the DynamoDB backend)",
    )

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        """Only known store backends are accepted."""
        backend = v.strip().lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(
                f"NOTIFICATION_STORE_BACKEND must be one of {STORE_BACKENDS}: {v}"
            )
        return backend
