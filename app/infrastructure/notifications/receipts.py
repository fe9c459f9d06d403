"""Push receipt reconciliation.

Push tickets only say the provider accepted a message. The final verdict
(delivered, or an error such as ``DeviceNotRegistered``) is fetched later
as a receipt and folded back into the notification.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

import structlog

from infrastructure.logging import bind_request_context
from infrastructure.notifications.channels.push import PushProvider
from infrastructure.notifications.models import Notification, PushReceipt, utc_now
from infrastructure.notifications.repository import NotificationRepository
from infrastructure.resilience.retry import RetryConfig

logger = structlog.get_logger()

RECEIPT_BATCH_SIZE = 1000
DEFAULT_LOOKBACK = timedelta(hours=24)


class PushReceiptReconciler:
    """Polls push receipts for recently sent notifications.

    Attributes:
        repository: Notification record store
        provider: Push provider used to fetch receipts
        retry_config: Backoff parameters for retryable receipt errors
        batch_size: Ticket ids per receipt request (provider maximum 1000)
        lookback: Only notifications created within this window are polled
        clock: Returns the current aware UTC datetime

    Example:
        reconciler = PushReceiptReconciler(repository, ExpoPushClient())
        stats = reconciler.run()
    """

    def __init__(
        self,
        repository: NotificationRepository,
        provider: PushProvider,
        retry_config: Optional[RetryConfig] = None,
        batch_size: int = RECEIPT_BATCH_SIZE,
        lookback: timedelta = DEFAULT_LOOKBACK,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.repository = repository
        self.provider = provider
        self.retry_config = retry_config or RetryConfig()
        self.batch_size = min(batch_size, RECEIPT_BATCH_SIZE)
        self.lookback = lookback
        self.clock = clock
        self.log = logger.bind(component="push_receipt_reconciler")

    def run(self) -> dict:
        """Check receipts for every pending push ticket.

        Returns:
            Dictionary with run statistics:
                - checked: Notifications awaiting a receipt
                - delivered: Receipts confirming delivery
                - failed: Error receipts
                - unregistered: Devices reported as not registered
                - rescheduled: Error receipts that scheduled a retry
                - pending: Tickets with no receipt yet
                - batch_errors: Receipt requests that failed
                - errors: Records that could not be saved
        """
        stats = {
            "checked": 0,
            "delivered": 0,
            "failed": 0,
            "unregistered": 0,
            "rescheduled": 0,
            "pending": 0,
            "batch_errors": 0,
            "errors": 0,
        }
        now = self.clock()
        notifications = self.repository.find_pending_receipts(since=now - self.lookback)
        if not notifications:
            self.log.debug("receipt_check_no_pending_tickets")
            return stats

        by_ticket: Dict[str, Notification] = {
            n.channels.push.ticket_id: n for n in notifications
        }
        ticket_ids = list(by_ticket.keys())
        stats["checked"] = len(ticket_ids)
        self.log.info("receipt_check_started", ticket_count=len(ticket_ids))

        for start in range(0, len(ticket_ids), self.batch_size):
            batch = ticket_ids[start : start + self.batch_size]
            try:
                receipts = self.provider.get_receipts(batch)
            except Exception as e:
                stats["batch_errors"] += 1
                self.log.error(
                    "receipt_batch_failed",
                    batch_start=start,
                    batch_size=len(batch),
                    error=str(e),
                    exc_info=True,
                )
                continue

            for ticket_id in batch:
                receipt = receipts.get(ticket_id)
                if receipt is None:
                    stats["pending"] += 1
                    continue
                self._reconcile(by_ticket[ticket_id], receipt, stats)

        self.log.info("receipt_check_complete", **stats)
        return stats

    def _reconcile(
        self, notification: Notification, receipt: PushReceipt, stats: dict
    ) -> None:
        with bind_request_context(
            job="check_push_receipts", notification_id=notification.notification_id
        ):
            now = self.clock()
            self.apply_receipt(notification, receipt, now)
            try:
                self.repository.update(notification)
            except Exception as e:
                stats["errors"] += 1
                self.log.error(
                    "receipt_update_failed",
                    notification_id=notification.notification_id,
                    error=str(e),
                    exc_info=True,
                )
                return

            if receipt.is_ok:
                stats["delivered"] += 1
                return
            stats["failed"] += 1
            if receipt.is_device_unregistered:
                stats["unregistered"] += 1
            elif notification.next_retry_at is not None:
                stats["rescheduled"] += 1

    def apply_receipt(
        self, notification: Notification, receipt: PushReceipt, now: datetime
    ) -> None:
        """Fold one receipt into the notification's push state."""
        push = notification.channels.push
        if receipt.is_ok:
            push.mark_delivered(now)
            self.log.info(
                "push_delivered",
                notification_id=notification.notification_id,
                ticket_id=push.ticket_id,
            )
            return

        push.error = receipt.message or receipt.error_code or "Push receipt error"
        # The ticket is settled; do not poll it again
        push.ticket_id = None

        if receipt.is_device_unregistered:
            push.permanently_failed = True
            channels = notification.channels
            if channels.sms.error is None and channels.email.error is None:
                notification.clear_retry()
            self.log.warning(
                "push_device_not_registered",
                notification_id=notification.notification_id,
            )
            return

        if notification.retry_count < notification.max_retries:
            notification.schedule_retry(now, self.retry_config, count_attempt=True)
        self.log.warning(
            "push_receipt_error",
            notification_id=notification.notification_id,
            error=push.error,
            error_code=receipt.error_code,
            retry_count=notification.retry_count,
            next_retry_at=(
                notification.next_retry_at.isoformat()
                if notification.next_retry_at
                else None
            ),
        )
