"""Deletion of expired notification records."""

from datetime import datetime
from typing import Callable

import structlog

from infrastructure.notifications.models import utc_now
from infrastructure.notifications.repository import NotificationRepository

logger = structlog.get_logger()


class ExpiredNotificationSweeper:
    """Bulk-deletes notifications whose ``expires_at`` has passed."""

    def __init__(
        self,
        repository: NotificationRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.clock = clock

    def run(self) -> int:
        """Delete expired records; returns how many were removed.

        A store failure is logged and reported as zero deletions.
        """
        now = self.clock()
        try:
            deleted = self.repository.delete_expired(now)
        except Exception as e:
            logger.error(
                "expired_notification_cleanup_failed",
                error=str(e),
                exc_info=True,
            )
            return 0

        logger.info("expired_notifications_deleted", deleted_count=deleted)
        return deleted
