"""Delivery channel adapters."""

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.channels.email import EmailChannel
from infrastructure.notifications.channels.push import PushChannel, PushProvider
from infrastructure.notifications.channels.sms import SMSChannel
from infrastructure.notifications.channels.transports import (
    LoggingTransport,
    MessageTransport,
)

__all__ = [
    "NotificationChannel",
    "PushChannel",
    "PushProvider",
    "SMSChannel",
    "EmailChannel",
    "MessageTransport",
    "LoggingTransport",
]
