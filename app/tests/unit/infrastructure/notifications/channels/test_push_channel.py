"""Unit tests for PushChannel."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from infrastructure.notifications.channels.push import PushChannel, build_push_data
from infrastructure.notifications.models import (
    Channel,
    DeliveryStatus,
    NotificationPriority,
    PushTicket,
)


@pytest.mark.unit
class TestPushChannelResolve:
    """Tests for destination resolution."""

    def test_missing_token_skipped(
        self, push_provider, recipient_factory, notification_factory
    ):
        channel = PushChannel(push_provider)

        outcome = channel.send(notification_factory(), recipient_factory(push_token=None))

        assert outcome.status == DeliveryStatus.SKIPPED
        push_provider.send_batch.assert_not_called()

    def test_invalid_token_skipped(
        self, push_provider, recipient_factory, notification_factory
    ):
        push_provider.is_valid_token.return_value = False
        channel = PushChannel(push_provider)

        outcome = channel.send(
            notification_factory(), recipient_factory(push_token="garbage")
        )

        assert outcome.status == DeliveryStatus.SKIPPED
        assert outcome.message == "Invalid push token"


@pytest.mark.unit
class TestPushChannelDeliver:
    """Tests for ticket handling."""

    def test_ok_ticket_is_sent(self, push_provider, recipient_factory, notification_factory):
        channel = PushChannel(push_provider)

        outcome = channel.send(notification_factory(), recipient_factory())

        assert outcome.channel == Channel.PUSH
        assert outcome.status == DeliveryStatus.SENT
        assert outcome.ticket_id == "ticket-1"
        assert outcome.destination == "ExponentPushToken[abc123]"

    def test_urgent_message_uses_high_priority_channel(
        self, push_provider, recipient_factory, notification_factory
    ):
        channel = PushChannel(push_provider)

        channel.send(
            notification_factory(priority=NotificationPriority.URGENT),
            recipient_factory(),
        )

        message = push_provider.send_batch.call_args.args[0][0]
        assert message.priority == "high"
        assert message.channel_id == "urgent-alerts"
        assert message.sound == "default"

    def test_non_urgent_message_uses_default_channel(
        self, push_provider, recipient_factory, notification_factory
    ):
        channel = PushChannel(push_provider)

        channel.send(notification_factory(), recipient_factory())

        message = push_provider.send_batch.call_args.args[0][0]
        assert message.priority == "normal"
        assert message.channel_id == "default"

    def test_device_not_registered_is_permanent_rejection(
        self, push_provider, recipient_factory, notification_factory
    ):
        push_provider.send_batch.return_value = [
            PushTicket(
                status="error",
                message="not a registered device",
                details={"error": "DeviceNotRegistered"},
            )
        ]
        channel = PushChannel(push_provider)

        outcome = channel.send(notification_factory(), recipient_factory())

        assert outcome.status == DeliveryStatus.REJECTED
        assert outcome.permanent is True
        assert outcome.error_code == "DeviceNotRegistered"

    def test_other_ticket_error_is_retryable_rejection(
        self, push_provider, recipient_factory, notification_factory
    ):
        push_provider.send_batch.return_value = [
            PushTicket(status="error", details={"error": "MessageRateExceeded"})
        ]
        channel = PushChannel(push_provider)

        outcome = channel.send(notification_factory(), recipient_factory())

        assert outcome.status == DeliveryStatus.REJECTED
        assert outcome.permanent is False
        assert outcome.message == "MessageRateExceeded"

    def test_http_failure_is_transport_failure(
        self, push_provider, recipient_factory, notification_factory
    ):
        response = MagicMock(status_code=503)
        push_provider.send_batch.side_effect = requests.HTTPError(response=response)
        channel = PushChannel(push_provider)

        outcome = channel.send(notification_factory(), recipient_factory())

        assert outcome.status == DeliveryStatus.FAILED
        assert outcome.error_code == "SERVER_ERROR"

    @patch("infrastructure.notifications.channels.push.logger")
    def test_refused_access_token_logged_as_error(
        self, mock_logger, push_provider, recipient_factory, notification_factory
    ):
        response = MagicMock(status_code=401)
        push_provider.send_batch.side_effect = requests.HTTPError(response=response)
        channel = PushChannel(push_provider)

        outcome = channel.send(notification_factory(), recipient_factory())

        assert outcome.status == DeliveryStatus.FAILED
        assert outcome.error_code == "UNAUTHORIZED"
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["retryable"] is False
        mock_logger.warning.assert_not_called()

    @patch("infrastructure.notifications.channels.push.logger")
    def test_server_error_logged_as_warning(
        self, mock_logger, push_provider, recipient_factory, notification_factory
    ):
        response = MagicMock(status_code=502)
        push_provider.send_batch.side_effect = requests.HTTPError(response=response)
        channel = PushChannel(push_provider)

        channel.send(notification_factory(), recipient_factory())

        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.kwargs["retryable"] is True
        mock_logger.error.assert_not_called()

    def test_no_ticket_is_failure(
        self, push_provider, recipient_factory, notification_factory
    ):
        push_provider.send_batch.return_value = []
        channel = PushChannel(push_provider)

        outcome = channel.send(notification_factory(), recipient_factory())

        assert outcome.status == DeliveryStatus.FAILED
        assert outcome.error_code == "NO_TICKET"


@pytest.mark.unit
def test_push_data_carries_alert_context(notification_factory):
    notification = notification_factory()
    notification.data.extra = {"ward": "3B"}

    data = build_push_data(notification)

    assert data["notification_id"] == notification.notification_id
    assert data["alert_id"] == "alert-1"
    assert data["type"] == "assigned"
    assert data["stage"] == "sent_to_clinician"
    assert data["action_required"] == "Review patient and provide initial assessment"
    assert data["ward"] == "3B"
