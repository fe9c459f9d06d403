"""Notification record store interface and in-memory implementation.

The selection predicates used by the background jobs live here as plain
functions so every store backend filters records the same way.
"""

import threading
import uuid
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Protocol

import structlog

from infrastructure.notifications.errors import PersistenceFailure, StaleRecordError
from infrastructure.notifications.models import (
    DeliveryStats,
    Notification,
    utc_now,
)

logger = structlog.get_logger()


class NotificationRepository(Protocol):
    """Persistence interface for notification records.

    ``update`` replaces the full record and must refuse a write whose
    ``version`` no longer matches the stored one.
    """

    def create(self, notification: Notification) -> Notification:
        """Persist a new record, assigning ``id``, timestamps and version."""
        ...

    def find_by_id(self, record_id: str) -> Optional[Notification]: ...

    def find_by_notification_id(
        self, notification_id: str, recipient_id: Optional[str] = None
    ) -> Optional[Notification]: ...

    def list_for_recipient(
        self, recipient_id: str, limit: int = 50
    ) -> List[Notification]:
        """Newest first."""
        ...

    def find_due_for_retry(
        self, now: datetime, limit: Optional[int] = None
    ) -> List[Notification]: ...

    def find_pending_receipts(self, since: datetime) -> List[Notification]: ...

    def update(self, notification: Notification) -> Notification:
        """Replace the stored record; raises StaleRecordError on version mismatch."""
        ...

    def delete_expired(self, now: datetime) -> int:
        """Delete records with ``expires_at < now``; returns the count."""
        ...

    def aggregate_stats(self, recipient_id: Optional[str] = None) -> DeliveryStats: ...


def is_due_for_retry(notification: Notification, now: datetime) -> bool:
    """Retry budget left, due, released, unexpired and something unsent."""
    if notification.retry_count >= notification.max_retries:
        return False
    if notification.next_retry_at is None or notification.next_retry_at > now:
        return False
    if notification.scheduled_for is not None and notification.scheduled_for > now:
        return False
    if notification.expires_at is None or notification.expires_at <= now:
        return False
    return notification.has_pending_channels


def is_awaiting_receipt(notification: Notification, since: datetime) -> bool:
    """Push sent with a ticket, not yet delivered, created after ``since``."""
    push = notification.channels.push
    if not push.sent or push.delivered or not push.ticket_id:
        return False
    return notification.created_at is not None and notification.created_at >= since


def is_expired(notification: Notification, now: datetime) -> bool:
    return notification.expires_at is not None and notification.expires_at < now


def build_delivery_stats(notifications: Iterable[Notification]) -> DeliveryStats:
    """Aggregate push delivery counts and a count per notification type."""
    stats = DeliveryStats()
    retries = 0
    for notification in notifications:
        push = notification.channels.push
        stats.total += 1
        stats.sent += int(push.sent)
        stats.delivered += int(push.delivered)
        stats.failed += int(push.error is not None)
        retries += notification.retry_count
        type_name = notification.type.value
        stats.by_type[type_name] = stats.by_type.get(type_name, 0) + 1
    if stats.total:
        stats.avg_retries = retries / stats.total
    return stats


def newest_first(notifications: Iterable[Notification]) -> List[Notification]:
    return sorted(
        notifications,
        key=lambda n: n.created_at.timestamp() if n.created_at else 0.0,
        reverse=True,
    )


class InMemoryNotificationRepository:
    """Thread-safe in-memory notification store.

    Records are copied on the way in and out so callers never share state
    with the store, mirroring a document database.

    Example:
        repository = InMemoryNotificationRepository()
        saved = repository.create(notification)
        saved.is_read = True
        repository.update(saved)
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._records: Dict[str, Notification] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def create(self, notification: Notification) -> Notification:
        with self._lock:
            if any(
                record.notification_id == notification.notification_id
                for record in self._records.values()
            ):
                raise PersistenceFailure(
                    f"Duplicate notification_id: {notification.notification_id}"
                )
            now = self._clock()
            record = notification.model_copy(deep=True)
            record.id = notification.id or str(uuid.uuid4())
            if record.id in self._records:
                raise PersistenceFailure(f"Duplicate record id: {record.id}")
            record.created_at = now
            record.updated_at = now
            record.version = 1
            self._records[record.id] = record
            logger.debug(
                "notification_record_created",
                record_id=record.id,
                notification_id=record.notification_id,
            )
            return record.model_copy(deep=True)

    def find_by_id(self, record_id: str) -> Optional[Notification]:
        with self._lock:
            record = self._records.get(record_id)
            return record.model_copy(deep=True) if record else None

    def find_by_notification_id(
        self, notification_id: str, recipient_id: Optional[str] = None
    ) -> Optional[Notification]:
        with self._lock:
            for record in self._records.values():
                if record.notification_id != notification_id:
                    continue
                if recipient_id is not None and record.recipient_id != recipient_id:
                    continue
                return record.model_copy(deep=True)
            return None

    def list_for_recipient(
        self, recipient_id: str, limit: int = 50
    ) -> List[Notification]:
        with self._lock:
            matches = [
                record.model_copy(deep=True)
                for record in self._records.values()
                if record.recipient_id == recipient_id
            ]
        return newest_first(matches)[:limit]

    def find_due_for_retry(
        self, now: datetime, limit: Optional[int] = None
    ) -> List[Notification]:
        with self._lock:
            due = [
                record.model_copy(deep=True)
                for record in self._records.values()
                if is_due_for_retry(record, now)
            ]
        due.sort(key=lambda n: n.next_retry_at)
        return due[:limit] if limit is not None else due

    def find_pending_receipts(self, since: datetime) -> List[Notification]:
        with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self._records.values()
                if is_awaiting_receipt(record, since)
            ]

    def update(self, notification: Notification) -> Notification:
        if not notification.id:
            raise PersistenceFailure("Cannot update a notification without an id")
        with self._lock:
            stored = self._records.get(notification.id)
            if stored is None:
                raise PersistenceFailure(
                    f"Notification record no longer exists: {notification.id}"
                )
            if stored.version != notification.version:
                raise StaleRecordError(notification.id, notification.version)
            record = notification.model_copy(deep=True)
            record.created_at = stored.created_at
            record.updated_at = self._clock()
            record.version = stored.version + 1
            self._records[record.id] = record
            return record.model_copy(deep=True)

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [
                record_id
                for record_id, record in self._records.items()
                if is_expired(record, now)
            ]
            for record_id in expired:
                del self._records[record_id]
            return len(expired)

    def aggregate_stats(self, recipient_id: Optional[str] = None) -> DeliveryStats:
        with self._lock:
            records = [
                record
                for record in self._records.values()
                if recipient_id is None or record.recipient_id == recipient_id
            ]
            return build_delivery_stats(records)
