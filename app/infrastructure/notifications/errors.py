"""Errors raised by the notification engine.

Channel delivery failures are not exceptions; they are recorded on the
notification. Only lookups and persistence raise.
"""

from typing import Any, Optional


class NotificationError(Exception):
    """Base class for notification engine errors."""


class RecipientNotFound(NotificationError):
    """The user directory has no recipient with this id."""

    def __init__(self, recipient_id: str):
        super().__init__(f"Recipient not found: {recipient_id}")
        self.recipient_id = recipient_id


class NotificationNotFound(NotificationError):
    """No notification matches the given id (and recipient, when given)."""

    def __init__(self, notification_id: str, recipient_id: Optional[str] = None):
        message = f"Notification not found: {notification_id}"
        if recipient_id is not None:
            message = f"{message} for recipient {recipient_id}"
        super().__init__(message)
        self.notification_id = notification_id
        self.recipient_id = recipient_id


class PersistenceFailure(NotificationError):
    """The record store could not complete a write or read.

    Attributes:
        response: the OperationResult returned by the store adapter, if any
    """

    def __init__(self, message: str, response: Any = None):
        super().__init__(message)
        self.response = response


class StaleRecordError(PersistenceFailure):
    """The record changed since it was read; the write was refused."""

    def __init__(self, record_id: str, expected_version: int):
        super().__init__(
            f"Notification {record_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.record_id = record_id
        self.expected_version = expected_version
