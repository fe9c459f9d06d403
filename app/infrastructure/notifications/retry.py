"""Redelivery of notifications whose channels failed.

Mirrors a generic retry worker: fetch what is due, process each record in
isolation, report batch statistics.
"""

from datetime import datetime
from typing import Callable, Optional

import structlog

from infrastructure.logging import bind_request_context
from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.errors import RecipientNotFound
from infrastructure.notifications.models import utc_now
from infrastructure.notifications.repository import NotificationRepository
from infrastructure.resilience.retry import RetryResult

logger = structlog.get_logger()


class NotificationRetryWorker:
    """Re-attempts notifications selected as due for retry.

    Attributes:
        repository: Notification record store
        dispatcher: Dispatcher used to re-attempt pending channels
        batch_size: Maximum notifications handled per run
        clock: Returns the current aware UTC datetime
    """

    def __init__(
        self,
        repository: NotificationRepository,
        dispatcher: NotificationDispatcher,
        batch_size: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.dispatcher = dispatcher
        self.batch_size = batch_size or dispatcher.retry_config.batch_size
        self.clock = clock
        self.log = logger.bind(component="notification_retry_worker")

    def process_batch(self) -> dict:
        """Process notifications that are due for retry.

        Returns:
            Dictionary with processing statistics:
                - processed: Notifications re-attempted
                - succeeded: Nothing left to retry afterwards
                - rescheduled: Failed again, next attempt scheduled
                - exhausted: Failed again, retry budget spent
                - skipped: Nothing attempted (no channel left, recipient gone)
                - errors: Unexpected failures, including rejected writes
        """
        stats = {
            "processed": 0,
            "succeeded": 0,
            "rescheduled": 0,
            "exhausted": 0,
            "skipped": 0,
            "errors": 0,
        }
        due = self.repository.find_due_for_retry(self.clock(), limit=self.batch_size)
        if not due:
            self.log.debug("retry_batch_no_records")
            return stats

        self.log.info("retry_batch_start", record_count=len(due))

        for notification in due:
            with bind_request_context(
                job="retry_failed_notifications",
                notification_id=notification.notification_id,
                recipient_id=notification.recipient_id,
            ):
                try:
                    _, result = self.dispatcher.redeliver(notification)
                except RecipientNotFound:
                    stats["skipped"] += 1
                    self.log.warning(
                        "retry_recipient_not_found",
                        notification_id=notification.notification_id,
                        recipient_id=notification.recipient_id,
                    )
                    continue
                except Exception as e:
                    stats["errors"] += 1
                    self.log.error(
                        "retry_processing_exception",
                        notification_id=notification.notification_id,
                        error=str(e),
                        exc_info=True,
                    )
                    continue

            stats["processed"] += 1
            if result == RetryResult.SUCCESS:
                stats["succeeded"] += 1
            elif result == RetryResult.RETRY:
                stats["rescheduled"] += 1
            elif result == RetryResult.EXHAUSTED:
                stats["exhausted"] += 1
                self.log.warning(
                    "notification_retries_exhausted",
                    notification_id=notification.notification_id,
                    max_retries=notification.max_retries,
                )
            else:
                stats["skipped"] += 1

        self.log.info("retry_batch_complete", **stats)
        return stats
