"""Notification service facade.

Single entry point used by the alert workflow and by any outer surface:
dispatch, listing, read/click tracking, delivery stats and an on-demand
receipt check.
"""

from datetime import datetime
from typing import Callable, List, Optional, TYPE_CHECKING

import structlog

from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.errors import NotificationNotFound
from infrastructure.notifications.models import (
    DeliveryStats,
    DispatchIntent,
    Notification,
    utc_now,
)
from infrastructure.notifications.repository import NotificationRepository

if TYPE_CHECKING:
    from infrastructure.notifications.receipts import PushReceiptReconciler

logger = structlog.get_logger()

DEFAULT_LIST_LIMIT = 50


class NotificationService:
    """Class-based notification service.

    A thin facade: delivery work is delegated to the dispatcher and the
    receipt reconciler; read/click tracking writes go straight to the store.

    Usage:
        from infrastructure.services import get_notification_service

        service = get_notification_service()
        notification = service.dispatch(intent)
        service.mark_read(notification.notification_id, intent.recipient_id)
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        repository: NotificationRepository,
        reconciler: "PushReceiptReconciler",
        clock: Callable[[], datetime] = utc_now,
    ):
        self._dispatcher = dispatcher
        self._repository = repository
        self._reconciler = reconciler
        self._clock = clock

    def dispatch(self, intent: DispatchIntent) -> Notification:
        """Create and deliver a notification.

        Raises:
            RecipientNotFound: The recipient does not exist
            PersistenceFailure: The store refused the write
        """
        return self._dispatcher.send(intent)

    def list_for_recipient(
        self, recipient_id: str, limit: int = DEFAULT_LIST_LIMIT
    ) -> List[Notification]:
        """Recipient's notifications, newest first."""
        return self._repository.list_for_recipient(recipient_id, limit=limit)

    def mark_read(self, notification_id: str, recipient_id: str) -> Notification:
        """Mark a notification read; only its own recipient may do so.

        Raises:
            NotificationNotFound: No notification with that id for that recipient
        """
        notification = self._get_owned(notification_id, recipient_id)
        if notification.is_read:
            return notification
        notification.is_read = True
        notification.read_at = self._clock()
        notification = self._repository.update(notification)
        logger.info(
            "notification_marked_read",
            notification_id=notification_id,
            recipient_id=recipient_id,
        )
        return notification

    def record_click(self, notification_id: str, recipient_id: str) -> Notification:
        """Record that the recipient opened the push notification.

        A click also proves delivery.

        Raises:
            NotificationNotFound: No notification with that id for that recipient
        """
        notification = self._get_owned(notification_id, recipient_id)
        push = notification.channels.push
        if push.clicked:
            return notification
        now = self._clock()
        push.clicked = True
        push.clicked_at = now
        if not push.delivered:
            push.mark_delivered(now)
        notification = self._repository.update(notification)
        logger.info(
            "notification_clicked",
            notification_id=notification_id,
            recipient_id=recipient_id,
        )
        return notification

    def get_delivery_stats(self, recipient_id: Optional[str] = None) -> DeliveryStats:
        """Push delivery counts, optionally for one recipient."""
        return self._repository.aggregate_stats(recipient_id=recipient_id)

    def run_receipt_check_now(self) -> dict:
        """Run the push receipt check immediately; returns its stats."""
        logger.info("receipt_check_requested")
        return self._reconciler.run()

    def _get_owned(self, notification_id: str, recipient_id: str) -> Notification:
        notification = self._repository.find_by_notification_id(
            notification_id, recipient_id=recipient_id
        )
        if notification is None:
            raise NotificationNotFound(notification_id, recipient_id)
        return notification
