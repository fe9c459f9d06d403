"""Email channel implementation."""

import structlog

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.channels.transports import MessageTransport
from infrastructure.notifications.models import (
    Channel,
    ChannelOutcome,
    DeliveryStatus,
    Notification,
    Recipient,
)
from infrastructure.operations import OperationResult

logger = structlog.get_logger()


class EmailChannel(NotificationChannel):
    """Email channel; the title is the subject line."""

    def __init__(self, transport: MessageTransport):
        self._transport = transport
        logger.info("initialized_email_channel")

    @property
    def channel(self) -> Channel:
        return Channel.EMAIL

    def resolve_recipient(self, recipient: Recipient) -> OperationResult:
        if not recipient.email:
            return OperationResult.permanent_error(
                message="Email address required for email",
                error_code="MISSING_EMAIL",
            )
        return OperationResult.success(data={"destination": str(recipient.email)})

    def deliver(self, notification: Notification, destination: str) -> ChannelOutcome:
        body = notification.message
        if notification.data.action_required:
            body = f"{body}\n\nAction required: {notification.data.action_required}"

        result = self._transport.send(destination, notification.title, body)
        if result.is_success:
            logger.info(
                "email_sent",
                notification_id=notification.notification_id,
                priority=notification.priority.value,
            )
            return ChannelOutcome(
                channel=self.channel,
                status=DeliveryStatus.SENT,
                message="Email sent",
                destination=destination,
            )

        logger.warning(
            "email_failed",
            notification_id=notification.notification_id,
            error=result.message,
            error_code=result.error_code,
        )
        return ChannelOutcome(
            channel=self.channel,
            status=DeliveryStatus.FAILED,
            message=result.message,
            destination=destination,
            error_code=result.error_code,
        )
