"""Notification channel abstract base class.

All channel implementations (push, SMS, email) implement this interface.
"""

from abc import ABC, abstractmethod

import structlog

from infrastructure.notifications.models import (
    Channel,
    ChannelOutcome,
    Notification,
    Recipient,
)
from infrastructure.operations import OperationResult

logger = structlog.get_logger()


class NotificationChannel(ABC):
    """Abstract base class for delivery channels.

    ``send`` never raises: an unusable destination yields a SKIPPED outcome
    and any transport error yields a FAILED outcome.

    Example Implementation:
        class PagerChannel(NotificationChannel):

            @property
            def channel(self) -> Channel:
                return Channel.SMS

            def resolve_recipient(self, recipient: Recipient) -> OperationResult:
                return OperationResult.success(data={"destination": recipient.phone})

            def deliver(self, notification, destination) -> ChannelOutcome:
                ...
    """

    @property
    @abstractmethod
    def channel(self) -> Channel:
        """Channel this adapter delivers through."""
        pass

    @property
    def channel_name(self) -> str:
        return self.channel.value

    @abstractmethod
    def resolve_recipient(self, recipient: Recipient) -> OperationResult:
        """Find the destination for ``recipient`` on this channel.

        Returns:
            OperationResult with ``{"destination": ...}`` in data on success,
            or a PERMANENT_ERROR when the recipient has no usable destination.
        """
        pass

    @abstractmethod
    def deliver(self, notification: Notification, destination: str) -> ChannelOutcome:
        """Hand the message to the transport for ``destination``."""
        pass

    def send(self, notification: Notification, recipient: Recipient) -> ChannelOutcome:
        """Resolve the destination and deliver, converting errors to outcomes.

        Args:
            notification: Notification whose title and message are sent
            recipient: Recipient resolved from the directory

        Returns:
            ChannelOutcome for this channel
        """
        resolved = self.resolve_recipient(recipient)
        if not resolved.is_success:
            logger.debug(
                "channel_skipped",
                channel=self.channel_name,
                notification_id=notification.notification_id,
                reason=resolved.error_code,
            )
            return ChannelOutcome.skipped(self.channel, resolved.message)

        destination = resolved.data["destination"]
        try:
            return self.deliver(notification, destination)
        except Exception as e:
            logger.error(
                "channel_send_failed",
                channel=self.channel_name,
                notification_id=notification.notification_id,
                error=str(e),
                exc_info=True,
            )
            outcome = ChannelOutcome.failed(
                self.channel,
                f"Channel exception: {str(e)}",
                error_code="CHANNEL_EXCEPTION",
            )
            outcome.destination = destination
            return outcome
