"""Notification engine core models.

A ``Notification`` is the single persisted record per handoff message. It
carries per-channel delivery state, retry bookkeeping and read/click state.
Channel adapters report one ``ChannelOutcome`` per attempt; only the
dispatcher and the background jobs fold outcomes back into the record.

Uses Pydantic BaseModel for:
- Runtime validation of intent content (title/message bounds)
- Document round-tripping to and from the record store
- EmailStr validation of recipient addresses
"""

import random
import string
import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import total_ordering
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from infrastructure.resilience.retry import RetryConfig, next_retry_time

TITLE_MAX_LENGTH = 100
MESSAGE_MAX_LENGTH = 500
MAX_RETRIES_LIMIT = 10
DEFAULT_MAX_RETRIES = 3
DEFAULT_EXPIRY = timedelta(hours=24)

DEVICE_NOT_REGISTERED = "DeviceNotRegistered"

_BASE36 = string.digits + string.ascii_lowercase


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_notification_id() -> str:
    """Public notification id: ``NOTIF-<epoch ms>-<9 base36 chars>``."""
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"NOTIF-{int(time.time() * 1000)}-{suffix}"


class Channel(Enum):
    """Delivery channels, in the order they are attempted."""

    PUSH = "push"
    SMS = "sms"
    EMAIL = "email"


class NotificationType(Enum):
    """What happened to the alert that triggered the notification."""

    ASSIGNED = "assigned"
    FORWARDED = "forwarded"
    RETURNED = "returned"
    COMPLETED = "completed"
    REMINDER = "reminder"


@total_ordering
class NotificationPriority(Enum):
    """Notification priority levels, ordered ``low < medium < high < urgent``.

    ``URGENT`` is the only level that reaches recipients who opted into
    urgent-only delivery.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return list(NotificationPriority).index(self)

    def __lt__(self, other):
        if not isinstance(other, NotificationPriority):
            return NotImplemented
        return self.rank < other.rank


class DeliveryStatus(Enum):
    """Outcome class of a single channel attempt.

    SENT: provider accepted the message
    REJECTED: provider answered but refused it (push ticket error)
    FAILED: transport failure (exception, timeout, error response)
    SKIPPED: no usable destination; nothing attempted
    """

    SENT = "sent"
    REJECTED = "rejected"
    FAILED = "failed"
    SKIPPED = "skipped"


class NotificationPreferences(BaseModel):
    """Per-recipient channel opt-ins.

    Defaults: push on, SMS off, email on, urgent_only off.
    """

    push: bool = True
    sms: bool = False
    email: bool = True
    urgent_only: bool = False

    def allows(self, channel: Channel, priority: NotificationPriority) -> bool:
        """True if ``channel`` is opted in and the priority passes the filter."""
        if not getattr(self, channel.value):
            return False
        return not self.urgent_only or priority is NotificationPriority.URGENT


class Recipient(BaseModel):
    """A user that can receive notifications.

    Attributes:
        id: Directory id, matches ``Notification.recipient_id``
        name: Display name
        push_token: Expo push token registered by the mobile client
        phone: Phone number for SMS
        email: Email address
        notification_preferences: Channel opt-ins
    """

    id: str
    name: str = ""
    push_token: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    notification_preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        """Digits with optional leading ``+``, spaces, dashes and parentheses."""
        if v is None or not v.strip():
            return None
        allowed = set(string.digits + " -()")
        body = v[1:] if v.startswith("+") else v
        if not body or not set(body) <= allowed:
            raise ValueError(f"Invalid phone number: {v}")
        return v


class ChannelDelivery(BaseModel):
    """Delivery state shared by every channel."""

    sent: bool = False
    sent_at: Optional[datetime] = None
    delivered: bool = False
    delivered_at: Optional[datetime] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_delivered_implies_sent(self) -> "ChannelDelivery":
        if self.delivered and not self.sent:
            raise ValueError("a channel cannot be delivered without being sent")
        return self

    @property
    def succeeded(self) -> bool:
        """Sent and no error recorded since."""
        return self.sent and self.error is None

    @property
    def needs_attempt(self) -> bool:
        """True if the channel should be (re-)attempted when enabled."""
        return not self.succeeded

    def mark_sent(self, at: datetime) -> None:
        self.sent = True
        self.sent_at = at
        self.error = None

    def mark_delivered(self, at: datetime) -> None:
        if not self.sent:
            self.mark_sent(at)
        self.delivered = True
        self.delivered_at = at
        self.error = None


class PushDelivery(ChannelDelivery):
    """Push channel state, including the provider ticket and click tracking."""

    ticket_id: Optional[str] = None
    clicked: bool = False
    clicked_at: Optional[datetime] = None
    permanently_failed: bool = False

    @property
    def needs_attempt(self) -> bool:
        return not self.succeeded and not self.permanently_failed


class SmsDelivery(ChannelDelivery):
    phone_number: Optional[str] = None


class EmailDelivery(ChannelDelivery):
    email_address: Optional[str] = None


class ChannelDeliveries(BaseModel):
    """Per-channel delivery state of one notification."""

    push: PushDelivery = Field(default_factory=PushDelivery)
    sms: SmsDelivery = Field(default_factory=SmsDelivery)
    email: EmailDelivery = Field(default_factory=EmailDelivery)

    def get(self, channel: Channel) -> ChannelDelivery:
        return getattr(self, channel.value)

    def items(self) -> List[tuple]:
        return [(channel, self.get(channel)) for channel in Channel]


class NotificationData(BaseModel):
    """Structured alert context carried with every notification.

    ``extra`` is passed through to the push payload untouched.
    """

    alert_id: str
    patient_name: str
    severity: str
    stage: str
    action_required: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


class DispatchIntent(BaseModel):
    """Request to notify one recipient about an alert handoff.

    Example:
        intent = DispatchIntent(
            recipient_id="user-42",
            alert_id="alert-7",
            type=NotificationType.ASSIGNED,
            title="New Emergency Alert",
            message="Emergency alert for Jane Doe (critical severity)",
            priority=NotificationPriority.URGENT,
            data=NotificationData(
                alert_id="alert-7",
                patient_name="Jane Doe",
                severity="critical",
                stage="sent_to_clinician",
            ),
        )
    """

    recipient_id: str
    alert_id: str
    type: NotificationType
    title: str = Field(..., max_length=TITLE_MAX_LENGTH)
    message: str = Field(..., max_length=MESSAGE_MAX_LENGTH)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    data: NotificationData
    scheduled_for: Optional[datetime] = None
    max_retries: Optional[int] = Field(default=None, ge=0, le=MAX_RETRIES_LIMIT)

    @field_validator("title", "message")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Title and message cannot be empty."""
        if not v or not v.strip():
            raise ValueError("Notification title and message cannot be empty")
        return v

    @field_validator("scheduled_for")
    @classmethod
    def validate_scheduled_for(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive datetimes are taken as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class Notification(BaseModel):
    """Persisted notification record.

    ``id`` is the store's record id and is assigned on create;
    ``notification_id`` is the public id handed to clients. ``version`` is
    bumped by the store on every write and must match on update.
    """

    id: Optional[str] = None
    notification_id: str = Field(default_factory=generate_notification_id)
    recipient_id: str
    alert_id: str
    type: NotificationType
    priority: NotificationPriority = NotificationPriority.MEDIUM
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    message: str = Field(..., min_length=1, max_length=MESSAGE_MAX_LENGTH)
    data: NotificationData
    channels: ChannelDeliveries = Field(default_factory=ChannelDeliveries)

    retry_count: int = Field(default=0, ge=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0, le=MAX_RETRIES_LIMIT)
    last_retry_at: Optional[datetime] = None
    next_retry_at: Optional[datetime] = None

    is_read: bool = False
    read_at: Optional[datetime] = None

    scheduled_for: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    @model_validator(mode="after")
    def check_retry_budget(self) -> "Notification":
        if self.retry_count > self.max_retries:
            raise ValueError(
                f"retry_count {self.retry_count} exceeds max_retries {self.max_retries}"
            )
        return self

    @classmethod
    def from_intent(
        cls,
        intent: DispatchIntent,
        now: datetime,
        expires_in: timedelta = DEFAULT_EXPIRY,
        default_max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> "Notification":
        """Build a fresh record for ``intent`` with nothing sent yet."""
        max_retries = intent.max_retries
        if max_retries is None:
            max_retries = default_max_retries
        return cls(
            recipient_id=intent.recipient_id,
            alert_id=intent.alert_id,
            type=intent.type,
            priority=intent.priority,
            title=intent.title,
            message=intent.message,
            data=intent.data.model_copy(deep=True),
            max_retries=max_retries,
            scheduled_for=intent.scheduled_for or now,
            expires_at=now + expires_in,
        )

    @property
    def is_retry_exhausted(self) -> bool:
        return self.retry_count >= self.max_retries

    @property
    def has_pending_channels(self) -> bool:
        """True if some channel has not been sent successfully."""
        return any(delivery.needs_attempt for _, delivery in self.channels.items())

    def schedule_retry(
        self, now: datetime, config: RetryConfig, count_attempt: bool = True
    ) -> None:
        """Schedule the next attempt after a failure.

        The delay is computed from the current ``retry_count`` before it is
        incremented. When the budget is spent ``next_retry_at`` is cleared.
        """
        retry_at = next_retry_time(now, self.retry_count, config)
        if count_attempt:
            self.retry_count = min(self.retry_count + 1, self.max_retries)
            self.last_retry_at = now
        self.next_retry_at = None if self.is_retry_exhausted else retry_at

    def clear_retry(self) -> None:
        self.next_retry_at = None


class ChannelOutcome(BaseModel):
    """Result of one channel attempt, produced by channel adapters.

    Attributes:
        channel: Channel attempted
        status: DeliveryStatus of the attempt
        message: Human-readable result, stored as the channel error on failure
        destination: Phone number, email address or push token used
        ticket_id: Push provider correlation token for receipts
        error_code: Machine code (``DeviceNotRegistered``, ``TIMEOUT``, ...)
        permanent: The destination will never accept this message
    """

    channel: Channel
    status: DeliveryStatus
    message: str = ""
    destination: Optional[str] = None
    ticket_id: Optional[str] = None
    error_code: Optional[str] = None
    permanent: bool = False

    @property
    def is_success(self) -> bool:
        return self.status == DeliveryStatus.SENT

    @property
    def is_failure(self) -> bool:
        """A failure that should be retried."""
        if self.status == DeliveryStatus.FAILED:
            return True
        return self.status == DeliveryStatus.REJECTED and not self.permanent

    @classmethod
    def skipped(cls, channel: Channel, reason: str) -> "ChannelOutcome":
        return cls(channel=channel, status=DeliveryStatus.SKIPPED, message=reason)

    @classmethod
    def failed(
        cls, channel: Channel, message: str, error_code: Optional[str] = None
    ) -> "ChannelOutcome":
        return cls(
            channel=channel,
            status=DeliveryStatus.FAILED,
            message=message,
            error_code=error_code,
        )


class PushMessage(BaseModel):
    """One message for the push provider."""

    to: str
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)
    sound: Optional[str] = "default"
    priority: str = "default"
    channel_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "to": self.to,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "priority": self.priority,
        }
        if self.sound:
            payload["sound"] = self.sound
        if self.channel_id:
            payload["channelId"] = self.channel_id
        return payload


class PushTicket(BaseModel):
    """Provider acknowledgement of one push message.

    ``status`` is ``ok`` (with ``id``) or ``error`` (with ``message`` and
    ``details.error``).
    """

    status: str
    id: Optional[str] = None
    message: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @property
    def error_code(self) -> Optional[str]:
        return self.details.get("error")


class PushReceipt(BaseModel):
    """Final delivery verdict for a ticket, fetched later from the provider."""

    status: str
    message: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @property
    def error_code(self) -> Optional[str]:
        return self.details.get("error")

    @property
    def is_device_unregistered(self) -> bool:
        return self.error_code == DEVICE_NOT_REGISTERED


class DeliveryStats(BaseModel):
    """Push delivery statistics plus a count per notification type."""

    total: int = 0
    sent: int = 0
    delivered: int = 0
    failed: int = 0
    avg_retries: float = 0.0
    by_type: Dict[str, int] = Field(default_factory=dict)
