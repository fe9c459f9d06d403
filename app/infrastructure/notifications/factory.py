"""Factory for creating the notification store based on configuration."""

from datetime import datetime
from typing import Callable, TYPE_CHECKING

import structlog

from infrastructure.notifications.models import utc_now
from infrastructure.notifications.repository import (
    InMemoryNotificationRepository,
    NotificationRepository,
)

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = structlog.get_logger()


def create_notification_repository(
    settings: "Settings",
    backend: str | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> NotificationRepository:
    """Create the store selected by ``NOTIFICATION_STORE_BACKEND``.

    Args:
        settings: Settings instance
        backend: Optional backend override (memory, dynamodb)
        clock: Time source for record timestamps

    Returns:
        NotificationRepository implementation

    Raises:
        ValueError: If an unknown backend is requested

    Examples:
        >>> repository = create_notification_repository(settings)
        >>> repository = create_notification_repository(settings, backend="memory")
    """
    backend = backend or settings.notifications.store_backend

    if backend == "memory":
        logger.info("creating_in_memory_notification_store")
        return InMemoryNotificationRepository(clock=clock)

    elif backend == "dynamodb":
        from infrastructure.notifications.dynamodb_repository import (
            DynamoDBNotificationRepository,
        )
        from integrations.aws.dynamodb import DynamoDBClient

        table_name = settings.notifications.dynamodb_table_name
        logger.info("creating_dynamodb_notification_store", table_name=table_name)
        client = DynamoDBClient(
            region_name=settings.aws.AWS_REGION,
            endpoint_url=settings.aws.ENDPOINT_URL,
        )
        return DynamoDBNotificationRepository(client, table_name, clock=clock)

    else:
        raise ValueError(
            f"Unknown notification store backend: {backend}. Supported: memory, dynamodb"
        )
