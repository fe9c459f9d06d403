"""Push channel implementation backed by a push provider (Expo)."""

from typing import Any, Dict, List, Protocol

import structlog

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.models import (
    DEVICE_NOT_REGISTERED,
    Channel,
    ChannelOutcome,
    DeliveryStatus,
    Notification,
    NotificationPriority,
    PushMessage,
    PushReceipt,
    PushTicket,
    Recipient,
)
from infrastructure.operations import OperationResult, classify_http_error

logger = structlog.get_logger()

URGENT_ANDROID_CHANNEL = "urgent-alerts"
DEFAULT_ANDROID_CHANNEL = "default"


class PushProvider(Protocol):
    """Push provider client.

    ``send_batch`` returns one ticket per message, in order.
    ``get_receipts`` returns receipts keyed by ticket id; ids without a
    receipt yet are absent from the result.
    """

    def is_valid_token(self, token: str) -> bool: ...

    def send_batch(self, messages: List[PushMessage]) -> List[PushTicket]: ...

    def get_receipts(self, ticket_ids: List[str]) -> Dict[str, PushReceipt]: ...


def build_push_data(notification: Notification) -> Dict[str, Any]:
    """Payload delivered to the mobile client alongside the alert text."""
    data = notification.data
    payload: Dict[str, Any] = dict(data.extra)
    payload.update(
        {
            "notification_id": notification.notification_id,
            "alert_id": notification.alert_id,
            "type": notification.type.value,
            "priority": notification.priority.value,
            "patient_name": data.patient_name,
            "severity": data.severity,
            "stage": data.stage,
        }
    )
    if data.action_required:
        payload["action_required"] = data.action_required
    return payload


class PushChannel(NotificationChannel):
    """Mobile push channel.

    Recipients without a valid push token are skipped. A ticket error is a
    REJECTED outcome; ``DeviceNotRegistered`` rejections are permanent.
    """

    def __init__(self, provider: PushProvider):
        self._provider = provider
        logger.info("initialized_push_channel")

    @property
    def channel(self) -> Channel:
        return Channel.PUSH

    def resolve_recipient(self, recipient: Recipient) -> OperationResult:
        token = recipient.push_token
        if not token:
            return OperationResult.permanent_error(
                message="No push token registered",
                error_code="MISSING_PUSH_TOKEN",
            )
        if not self._provider.is_valid_token(token):
            logger.warning("invalid_push_token", recipient_id=recipient.id)
            return OperationResult.permanent_error(
                message="Invalid push token",
                error_code="INVALID_PUSH_TOKEN",
            )
        return OperationResult.success(data={"destination": token})

    def build_message(self, notification: Notification, token: str) -> PushMessage:
        urgent = notification.priority is NotificationPriority.URGENT
        return PushMessage(
            to=token,
            title=notification.title,
            body=notification.message,
            data=build_push_data(notification),
            sound="default",
            priority="high" if urgent else "normal",
            channel_id=URGENT_ANDROID_CHANNEL if urgent else DEFAULT_ANDROID_CHANNEL,
        )

    def deliver(self, notification: Notification, destination: str) -> ChannelOutcome:
        message = self.build_message(notification, destination)
        try:
            tickets = self._provider.send_batch([message])
        except Exception as e:
            result = classify_http_error(e)
            # A refused token or bad request will keep failing until fixed
            log = logger.warning if result.is_retryable else logger.error
            log(
                "push_send_failed",
                notification_id=notification.notification_id,
                error=result.message,
                error_code=result.error_code,
                retryable=result.is_retryable,
            )
            return ChannelOutcome(
                channel=self.channel,
                status=DeliveryStatus.FAILED,
                message=result.message,
                destination=destination,
                error_code=result.error_code,
            )

        if not tickets:
            return ChannelOutcome(
                channel=self.channel,
                status=DeliveryStatus.FAILED,
                message="Push provider returned no ticket",
                destination=destination,
                error_code="NO_TICKET",
            )

        ticket = tickets[0]
        if ticket.is_ok:
            logger.info(
                "push_ticket_accepted",
                notification_id=notification.notification_id,
                ticket_id=ticket.id,
            )
            return ChannelOutcome(
                channel=self.channel,
                status=DeliveryStatus.SENT,
                message="Push accepted",
                destination=destination,
                ticket_id=ticket.id,
            )

        error_code = ticket.error_code
        logger.warning(
            "push_ticket_rejected",
            notification_id=notification.notification_id,
            error=ticket.message,
            error_code=error_code,
        )
        return ChannelOutcome(
            channel=self.channel,
            status=DeliveryStatus.REJECTED,
            message=ticket.message or error_code or "Push ticket error",
            destination=destination,
            error_code=error_code,
            permanent=error_code == DEVICE_NOT_REGISTERED,
        )
