"""Care-escalation notification engine.

Multi-channel delivery (push, SMS, email) with per-channel delivery state,
retry with exponential backoff, push receipt reconciliation and expiry of
stale records.

Usage:
    from infrastructure.notifications import (
        DispatchIntent,
        NotificationData,
        NotificationPriority,
        NotificationType,
    )
    from infrastructure.services import get_notification_service

    service = get_notification_service()
    notification = service.dispatch(
        DispatchIntent(
            recipient_id="user-42",
            alert_id="alert-7",
            type=NotificationType.ASSIGNED,
            title="New Emergency Alert",
            message="Emergency alert for Jane Doe (high severity)",
            priority=NotificationPriority.HIGH,
            data=NotificationData(
                alert_id="alert-7",
                patient_name="Jane Doe",
                severity="high",
                stage="sent_to_clinician",
            ),
        )
    )
"""

# Models
from infrastructure.notifications.models import (
    Channel,
    ChannelOutcome,
    DeliveryStats,
    DeliveryStatus,
    DispatchIntent,
    Notification,
    NotificationData,
    NotificationPreferences,
    NotificationPriority,
    NotificationType,
    PushMessage,
    PushReceipt,
    PushTicket,
    Recipient,
)

# Errors
from infrastructure.notifications.errors import (
    NotificationError,
    NotificationNotFound,
    PersistenceFailure,
    RecipientNotFound,
    StaleRecordError,
)

# Stores and directory
from infrastructure.notifications.directory import InMemoryUserDirectory, UserDirectory
from infrastructure.notifications.repository import (
    InMemoryNotificationRepository,
    NotificationRepository,
)
from infrastructure.notifications.factory import create_notification_repository

# Channels
from infrastructure.notifications.channels import (
    EmailChannel,
    LoggingTransport,
    MessageTransport,
    NotificationChannel,
    PushChannel,
    PushProvider,
    SMSChannel,
)

# Engine components
from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.retry import NotificationRetryWorker
from infrastructure.notifications.receipts import PushReceiptReconciler
from infrastructure.notifications.expiry import ExpiredNotificationSweeper
from infrastructure.notifications.service import NotificationService

__all__ = [
    # Models
    "Channel",
    "ChannelOutcome",
    "DeliveryStats",
    "DeliveryStatus",
    "DispatchIntent",
    "Notification",
    "NotificationData",
    "NotificationPreferences",
    "NotificationPriority",
    "NotificationType",
    "PushMessage",
    "PushReceipt",
    "PushTicket",
    "Recipient",
    # Errors
    "NotificationError",
    "NotificationNotFound",
    "PersistenceFailure",
    "RecipientNotFound",
    "StaleRecordError",
    # Stores and directory
    "UserDirectory",
    "InMemoryUserDirectory",
    "NotificationRepository",
    "InMemoryNotificationRepository",
    "create_notification_repository",
    # Channels
    "NotificationChannel",
    "PushChannel",
    "PushProvider",
    "SMSChannel",
    "EmailChannel",
    "MessageTransport",
    "LoggingTransport",
    # Engine
    "NotificationDispatcher",
    "NotificationRetryWorker",
    "PushReceiptReconciler",
    "ExpiredNotificationSweeper",
    "NotificationService",
]
