"""Unit tests for the SMS and email channels and the logging transport."""

from unittest.mock import MagicMock

import pytest

from infrastructure.notifications.channels.email import EmailChannel
from infrastructure.notifications.channels.sms import SMSChannel
from infrastructure.notifications.channels.transports import LoggingTransport
from infrastructure.notifications.models import DeliveryStatus
from infrastructure.operations import OperationResult


@pytest.fixture
def transport():
    mock = MagicMock()
    mock.send.return_value = OperationResult.success(data={"message_id": "m-1"})
    return mock


@pytest.mark.unit
class TestSMSChannel:

    def test_sends_title_and_message(
        self, transport, recipient_factory, notification_factory
    ):
        channel = SMSChannel(transport)

        outcome = channel.send(notification_factory(), recipient_factory())

        destination, title, text = transport.send.call_args.args
        assert destination == "+1 555 010 0000"
        assert text == "New Emergency Alert: Emergency alert for Jane Doe (high severity)"
        assert outcome.status == DeliveryStatus.SENT
        assert outcome.destination == "+1 555 010 0000"

    def test_missing_phone_skipped(
        self, transport, recipient_factory, notification_factory
    ):
        channel = SMSChannel(transport)

        outcome = channel.send(notification_factory(), recipient_factory(phone=None))

        assert outcome.status == DeliveryStatus.SKIPPED
        transport.send.assert_not_called()

    def test_transport_error_is_failure(
        self, transport, recipient_factory, notification_factory
    ):
        transport.send.return_value = OperationResult.transient_error(
            "gateway unavailable", error_code="SERVER_ERROR"
        )
        channel = SMSChannel(transport)

        outcome = channel.send(notification_factory(), recipient_factory())

        assert outcome.status == DeliveryStatus.FAILED
        assert outcome.message == "gateway unavailable"

    def test_transport_exception_is_failure(
        self, transport, recipient_factory, notification_factory
    ):
        transport.send.side_effect = ConnectionError("reset")
        channel = SMSChannel(transport)

        outcome = channel.send(notification_factory(), recipient_factory())

        assert outcome.status == DeliveryStatus.FAILED
        assert outcome.error_code == "CHANNEL_EXCEPTION"


@pytest.mark.unit
class TestEmailChannel:

    def test_body_includes_action_required(
        self, transport, recipient_factory, notification_factory
    ):
        channel = EmailChannel(transport)

        outcome = channel.send(notification_factory(), recipient_factory())

        destination, subject, body = transport.send.call_args.args
        assert destination == "clinician@example.com"
        assert subject == "New Emergency Alert"
        assert body.endswith(
            "Action required: Review patient and provide initial assessment"
        )
        assert outcome.status == DeliveryStatus.SENT

    def test_missing_email_skipped(
        self, transport, recipient_factory, notification_factory
    ):
        channel = EmailChannel(transport)

        outcome = channel.send(notification_factory(), recipient_factory(email=None))

        assert outcome.status == DeliveryStatus.SKIPPED


@pytest.mark.unit
def test_logging_transport_reports_success():
    result = LoggingTransport("sms").send("+15555550100", "title", "message")

    assert result.is_success
    assert result.data["message_id"]
