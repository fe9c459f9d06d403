"""User directory lookups for notification recipients."""

import threading
from typing import Dict, Iterable, Optional, Protocol

from infrastructure.notifications.models import Recipient


class UserDirectory(Protocol):
    """Resolves a recipient id to contact details and preferences."""

    def find_by_id(self, recipient_id: str) -> Optional[Recipient]:
        """Return the recipient, or None if unknown."""
        ...


class InMemoryUserDirectory:
    """Thread-safe in-memory directory for development and tests.

    Example:
        directory = InMemoryUserDirectory([Recipient(id="u1", name="Dr. Ada")])
        directory.find_by_id("u1")
    """

    def __init__(self, recipients: Iterable[Recipient] = ()):
        self._recipients: Dict[str, Recipient] = {}
        self._lock = threading.Lock()
        for recipient in recipients:
            self.add(recipient)

    def add(self, recipient: Recipient) -> None:
        with self._lock:
            self._recipients[recipient.id] = recipient.model_copy(deep=True)

    def remove(self, recipient_id: str) -> None:
        with self._lock:
            self._recipients.pop(recipient_id, None)

    def find_by_id(self, recipient_id: str) -> Optional[Recipient]:
        with self._lock:
            recipient = self._recipients.get(recipient_id)
            return recipient.model_copy(deep=True) if recipient else None
