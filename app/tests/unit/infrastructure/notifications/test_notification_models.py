"""Unit tests for notification models.

Tests cover:
- Intent validation (title/message bounds, retry budget)
- Priority ordering and preference filtering
- Channel delivery invariants
- Retry scheduling bookkeeping
- Push ticket and receipt helpers
"""

import re
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from infrastructure.notifications.models import (
    Channel,
    ChannelDelivery,
    ChannelOutcome,
    DeliveryStatus,
    Notification,
    NotificationPreferences,
    NotificationPriority,
    PushDelivery,
    PushMessage,
    PushReceipt,
    PushTicket,
    Recipient,
    generate_notification_id,
)
from infrastructure.resilience.retry import RetryConfig


@pytest.mark.unit
class TestDispatchIntent:
    """Tests for DispatchIntent validation."""

    def test_title_at_limit_accepted(self, intent_factory):
        intent = intent_factory(title="t" * 100)
        assert len(intent.title) == 100

    def test_title_over_limit_rejected(self, intent_factory):
        with pytest.raises(ValidationError):
            intent_factory(title="t" * 101)

    def test_message_over_limit_rejected(self, intent_factory):
        with pytest.raises(ValidationError):
            intent_factory(message="m" * 501)

    def test_blank_title_rejected(self, intent_factory):
        with pytest.raises(ValidationError):
            intent_factory(title="   ")

    def test_max_retries_bounds(self, intent_factory):
        assert intent_factory(max_retries=0).max_retries == 0
        assert intent_factory(max_retries=10).max_retries == 10
        with pytest.raises(ValidationError):
            intent_factory(max_retries=11)
        with pytest.raises(ValidationError):
            intent_factory(max_retries=-1)

    def test_naive_scheduled_for_taken_as_utc(self, intent_factory):
        intent = intent_factory(scheduled_for=datetime(2025, 1, 15, 13, 0))
        assert intent.scheduled_for.tzinfo == timezone.utc


@pytest.mark.unit
class TestNotificationFromIntent:
    """Tests for building a fresh record."""

    def test_fresh_record_has_nothing_sent(self, intent_factory, clock):
        notification = Notification.from_intent(intent_factory(), clock())

        for _, delivery in notification.channels.items():
            assert delivery.sent is False
            assert delivery.delivered is False
        assert notification.retry_count == 0
        assert notification.next_retry_at is None
        assert notification.is_read is False

    def test_defaults_applied(self, intent_factory, clock):
        notification = Notification.from_intent(
            intent_factory(), clock(), default_max_retries=5
        )

        assert notification.max_retries == 5
        assert notification.scheduled_for == clock()
        assert notification.expires_at == clock() + timedelta(hours=24)

    def test_intent_max_retries_overrides_default(self, intent_factory, clock):
        notification = Notification.from_intent(
            intent_factory(max_retries=0), clock(), default_max_retries=5
        )
        assert notification.max_retries == 0

    def test_notification_id_format(self):
        assert re.match(r"^NOTIF-\d+-[0-9a-z]{9}$", generate_notification_id())

    def test_retry_count_cannot_exceed_max_retries(self, notification_factory):
        data = notification_factory().model_dump()
        data.update(retry_count=4, max_retries=3)
        with pytest.raises(ValidationError):
            Notification.model_validate(data)


@pytest.mark.unit
class TestPriorityAndPreferences:
    """Tests for priority ordering and channel opt-ins."""

    def test_priority_ordering(self):
        assert NotificationPriority.LOW < NotificationPriority.MEDIUM
        assert NotificationPriority.MEDIUM < NotificationPriority.HIGH
        assert NotificationPriority.HIGH < NotificationPriority.URGENT
        assert max(NotificationPriority) == NotificationPriority.URGENT

    def test_default_preferences(self):
        preferences = NotificationPreferences()
        assert preferences.allows(Channel.PUSH, NotificationPriority.LOW)
        assert not preferences.allows(Channel.SMS, NotificationPriority.URGENT)
        assert preferences.allows(Channel.EMAIL, NotificationPriority.LOW)

    @pytest.mark.parametrize(
        "priority",
        [NotificationPriority.LOW, NotificationPriority.MEDIUM, NotificationPriority.HIGH],
    )
    def test_urgent_only_blocks_non_urgent(self, priority):
        preferences = NotificationPreferences(urgent_only=True)
        assert not preferences.allows(Channel.PUSH, priority)

    def test_urgent_only_allows_urgent(self):
        preferences = NotificationPreferences(urgent_only=True)
        assert preferences.allows(Channel.PUSH, NotificationPriority.URGENT)

    def test_invalid_phone_rejected(self):
        with pytest.raises(ValidationError):
            Recipient(id="u1", phone="call me maybe")

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            Recipient(id="u1", email="not-an-email")


@pytest.mark.unit
class TestChannelDelivery:
    """Tests for per-channel delivery state."""

    def test_delivered_without_sent_rejected(self):
        with pytest.raises(ValidationError):
            ChannelDelivery(sent=False, delivered=True)

    def test_mark_delivered_marks_sent(self, clock):
        delivery = ChannelDelivery()
        delivery.mark_delivered(clock())

        assert delivery.sent is True
        assert delivery.delivered is True
        assert delivery.delivered_at == clock()

    def test_mark_sent_clears_previous_error(self, clock):
        delivery = ChannelDelivery(error="Connection error")
        delivery.mark_sent(clock())

        assert delivery.succeeded is True
        assert delivery.error is None

    def test_permanently_failed_push_needs_no_attempt(self):
        push = PushDelivery(sent=True, error="DeviceNotRegistered", permanently_failed=True)
        assert push.needs_attempt is False

    def test_rejected_push_needs_attempt(self):
        push = PushDelivery(sent=True, error="MessageRateExceeded")
        assert push.needs_attempt is True


@pytest.mark.unit
class TestScheduleRetry:
    """Tests for Notification.schedule_retry."""

    def test_delay_uses_count_before_increment(self, notification_factory, clock):
        notification = notification_factory()
        config = RetryConfig()

        notification.schedule_retry(clock(), config)
        assert notification.retry_count == 1
        assert notification.next_retry_at == clock() + timedelta(seconds=1)

        notification.schedule_retry(clock(), config)
        assert notification.retry_count == 2
        assert notification.next_retry_at == clock() + timedelta(seconds=2)

    def test_uncounted_schedule_keeps_count(self, notification_factory, clock):
        notification = notification_factory()

        notification.schedule_retry(clock(), RetryConfig(), count_attempt=False)

        assert notification.retry_count == 0
        assert notification.last_retry_at is None
        assert notification.next_retry_at == clock() + timedelta(seconds=1)

    def test_exhausted_budget_clears_next_retry(self, notification_factory, clock):
        notification = notification_factory(max_retries=1)

        notification.schedule_retry(clock(), RetryConfig())

        assert notification.retry_count == 1
        assert notification.is_retry_exhausted is True
        assert notification.next_retry_at is None

    def test_count_capped_at_max(self, notification_factory, clock):
        notification = notification_factory(max_retries=1, retry_count=1)

        notification.schedule_retry(clock(), RetryConfig())

        assert notification.retry_count == 1


@pytest.mark.unit
class TestChannelOutcome:
    """Tests for ChannelOutcome helpers."""

    def test_failed_is_failure(self):
        outcome = ChannelOutcome.failed(Channel.SMS, "boom", error_code="TIMEOUT")
        assert outcome.is_failure is True
        assert outcome.is_success is False

    def test_permanent_rejection_is_not_retryable_failure(self):
        outcome = ChannelOutcome(
            channel=Channel.PUSH, status=DeliveryStatus.REJECTED, permanent=True
        )
        assert outcome.is_failure is False

    def test_skipped(self):
        outcome = ChannelOutcome.skipped(Channel.EMAIL, "no address")
        assert outcome.status == DeliveryStatus.SKIPPED
        assert outcome.is_failure is False


@pytest.mark.unit
class TestPushModels:
    """Tests for push message, ticket and receipt models."""

    def test_message_payload_uses_channel_id_key(self):
        message = PushMessage(
            to="ExponentPushToken[x]", title="t", body="b", channel_id="urgent-alerts"
        )
        payload = message.to_payload()

        assert payload["channelId"] == "urgent-alerts"
        assert payload["sound"] == "default"

    def test_ticket_error_code(self):
        ticket = PushTicket(
            status="error",
            message="not registered",
            details={"error": "DeviceNotRegistered"},
        )
        assert ticket.is_ok is False
        assert ticket.error_code == "DeviceNotRegistered"

    def test_receipt_device_unregistered(self):
        receipt = PushReceipt(status="error", details={"error": "DeviceNotRegistered"})
        assert receipt.is_device_unregistered is True

    def test_ok_receipt(self):
        assert PushReceipt(status="ok").is_ok is True
