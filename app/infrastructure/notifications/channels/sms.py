"""SMS channel implementation."""

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

SMS_MAX_LENGTH = 1600


class SMSChannel(NotificationChannel):
    """SMS channel sending ``"<title>: <message>"`` through a transport."""

    def __init__(self, transport: MessageTransport):
        self._transport = transport
        logger.info("initialized_sms_channel")

    @property
    def channel(self) -> Channel:
        return Channel.SMS

    def resolve_recipient(self, recipient: Recipient) -> OperationResult:
        """Recipient phone number, if any."""
        if not recipient.phone:
            return OperationResult.permanent_error(
                message="Phone number required for SMS",
                error_code="MISSING_PHONE",
            )
        return OperationResult.success(data={"destination": recipient.phone.strip()})

    def deliver(self, notification: Notification, destination: str) -> ChannelOutcome:
        text = f"{notification.title}: {notification.message}"
        if len(text) > SMS_MAX_LENGTH:
            text = text[: SMS_MAX_LENGTH - 3] + "..."

        result = self._transport.send(destination, notification.title, text)
        if result.is_success:
            logger.info(
                "sms_sent",
                notification_id=notification.notification_id,
                priority=notification.priority.value,
            )
            return ChannelOutcome(
                channel=self.channel,
                status=DeliveryStatus.SENT,
                message="SMS sent",
                destination=destination,
            )

        logger.warning(
            "sms_failed",
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
