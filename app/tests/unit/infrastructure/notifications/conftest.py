"""Test fixtures for notification infrastructure tests."""

from typing import Optional
from unittest.mock import MagicMock

import pytest

from infrastructure.notifications.directory import InMemoryUserDirectory
from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.models import (
    Channel,
    ChannelOutcome,
    DeliveryStatus,
    DispatchIntent,
    Notification,
    NotificationData,
    NotificationPreferences,
    NotificationPriority,
    NotificationType,
    PushTicket,
    Recipient,
)
from infrastructure.notifications.repository import InMemoryNotificationRepository
from infrastructure.resilience.retry import RetryConfig

PUSH_TOKEN = "ExponentPushToken[abc123]"


@pytest.fixture
def recipient_factory():
    """Factory for creating Recipient instances.

    Example:
        recipient = recipient_factory(push_token=None)
        sms_only = recipient_factory(push=False, sms=True, email=False)
    """

    def _factory(
        recipient_id: str = "user-1",
        push_token: Optional[str] = PUSH_TOKEN,
        phone: Optional[str] = "+1 555 010 0000",
        email: Optional[str] = "clinician@example.com",
        push: bool = True,
        sms: bool = False,
        email_enabled: bool = True,
        urgent_only: bool = False,
    ) -> Recipient:
        return Recipient(
            id=recipient_id,
            name="Dr. Test",
            push_token=push_token,
            phone=phone,
            email=email,
            notification_preferences=NotificationPreferences(
                push=push, sms=sms, email=email_enabled, urgent_only=urgent_only
            ),
        )

    return _factory


@pytest.fixture
def intent_factory():
    """Factory for creating DispatchIntent instances."""

    def _factory(
        recipient_id: str = "user-1",
        alert_id: str = "alert-1",
        notification_type: NotificationType = NotificationType.ASSIGNED,
        title: str = "New Emergency Alert",
        message: str = "Emergency alert for Jane Doe (high severity)",
        priority: NotificationPriority = NotificationPriority.HIGH,
        **kwargs,
    ) -> DispatchIntent:
        return DispatchIntent(
            recipient_id=recipient_id,
            alert_id=alert_id,
            type=notification_type,
            title=title,
            message=message,
            priority=priority,
            data=NotificationData(
                alert_id=alert_id,
                patient_name="Jane Doe",
                severity="high",
                stage="sent_to_clinician",
                action_required="Review patient and provide initial assessment",
            ),
            **kwargs,
        )

    return _factory


@pytest.fixture
def notification_factory(intent_factory, clock):
    """Factory for creating unsaved Notification records."""

    def _factory(**kwargs) -> Notification:
        intent_kwargs = {
            key: kwargs.pop(key)
            for key in ("recipient_id", "alert_id", "priority", "notification_type")
            if key in kwargs
        }
        notification = Notification.from_intent(intent_factory(**intent_kwargs), clock())
        for key, value in kwargs.items():
            setattr(notification, key, value)
        return notification

    return _factory


@pytest.fixture
def repository(clock):
    return InMemoryNotificationRepository(clock=clock)


@pytest.fixture
def directory(recipient_factory):
    return InMemoryUserDirectory([recipient_factory()])


@pytest.fixture
def retry_config():
    return RetryConfig(
        max_attempts=3,
        base_delay_seconds=1.0,
        backoff_multiplier=2.0,
        max_delay_seconds=60.0,
    )


def make_channel(channel: Channel, status: DeliveryStatus = DeliveryStatus.SENT, **kwargs):
    """Mock channel adapter whose send() returns one fixed outcome."""
    mock = MagicMock()
    mock.channel = channel
    mock.channel_name = channel.value
    mock.send.return_value = ChannelOutcome(channel=channel, status=status, **kwargs)
    return mock


@pytest.fixture
def channel_factory():
    return make_channel


@pytest.fixture
def push_provider():
    """Mock push provider accepting every message."""
    provider = MagicMock()
    provider.is_valid_token.return_value = True
    provider.send_batch.return_value = [PushTicket(status="ok", id="ticket-1")]
    provider.get_receipts.return_value = {}
    return provider


@pytest.fixture
def dispatcher_factory(repository, directory, retry_config, clock):
    """Factory for NotificationDispatcher wired to in-memory stores."""
    created = []

    def _factory(channels, **kwargs) -> NotificationDispatcher:
        kwargs.setdefault("repository", repository)
        kwargs.setdefault("directory", directory)
        kwargs.setdefault("retry_config", retry_config)
        kwargs.setdefault("clock", clock)
        dispatcher = NotificationDispatcher(channels=channels, **kwargs)
        created.append(dispatcher)
        return dispatcher

    yield _factory

    for dispatcher in created:
        dispatcher.shutdown()
