"""Unit tests for the in-memory notification store and selection predicates."""

from datetime import timedelta

import pytest

from infrastructure.notifications.errors import PersistenceFailure, StaleRecordError
from infrastructure.notifications.models import NotificationType
from infrastructure.notifications.repository import (
    build_delivery_stats,
    is_awaiting_receipt,
    is_due_for_retry,
)


@pytest.mark.unit
class TestInMemoryRepositoryWrites:
    """Tests for create and update."""

    def test_create_assigns_identity(self, repository, notification_factory, clock):
        saved = repository.create(notification_factory())

        assert saved.id
        assert saved.version == 1
        assert saved.created_at == clock()
        assert saved.updated_at == clock()

    def test_create_duplicate_notification_id_rejected(
        self, repository, notification_factory
    ):
        notification = notification_factory()
        repository.create(notification)

        with pytest.raises(PersistenceFailure):
            repository.create(notification)

    def test_update_bumps_version(self, repository, notification_factory, clock):
        saved = repository.create(notification_factory())
        clock.advance(seconds=5)
        saved.is_read = True

        updated = repository.update(saved)

        assert updated.version == 2
        assert updated.updated_at == clock()
        assert repository.find_by_id(saved.id).is_read is True

    def test_stale_write_refused(self, repository, notification_factory):
        saved = repository.create(notification_factory())
        first = repository.find_by_id(saved.id)
        second = repository.find_by_id(saved.id)

        first.is_read = True
        repository.update(first)
        second.channels.push.error = "late writer"

        with pytest.raises(StaleRecordError):
            repository.update(second)
        assert repository.find_by_id(saved.id).channels.push.error is None

    def test_update_missing_record_fails(self, repository, notification_factory):
        notification = notification_factory(id="missing")

        with pytest.raises(PersistenceFailure):
            repository.update(notification)

    def test_returned_records_are_copies(self, repository, notification_factory):
        saved = repository.create(notification_factory())
        saved.is_read = True

        assert repository.find_by_id(saved.id).is_read is False


@pytest.mark.unit
class TestInMemoryRepositoryQueries:
    """Tests for lookups and listings."""

    def test_find_by_notification_id_scoped_to_recipient(
        self, repository, notification_factory
    ):
        saved = repository.create(notification_factory())

        assert repository.find_by_notification_id(saved.notification_id) == saved
        assert (
            repository.find_by_notification_id(saved.notification_id, "user-1")
            == saved
        )
        assert (
            repository.find_by_notification_id(saved.notification_id, "user-2")
            is None
        )

    def test_list_for_recipient_newest_first_with_limit(
        self, repository, notification_factory, clock
    ):
        ids = []
        for _ in range(3):
            ids.append(repository.create(notification_factory()).id)
            clock.advance(minutes=1)
        repository.create(notification_factory(recipient_id="user-2"))

        listed = repository.list_for_recipient("user-1", limit=2)

        assert [n.id for n in listed] == [ids[2], ids[1]]

    def test_find_due_for_retry_ordered_and_limited(
        self, repository, notification_factory, clock
    ):
        now = clock()
        later = repository.create(
            notification_factory(next_retry_at=now - timedelta(seconds=1))
        )
        earlier = repository.create(
            notification_factory(next_retry_at=now - timedelta(seconds=10))
        )
        repository.create(notification_factory(next_retry_at=now + timedelta(hours=1)))

        due = repository.find_due_for_retry(now)
        assert [n.id for n in due] == [earlier.id, later.id]
        assert len(repository.find_due_for_retry(now, limit=1)) == 1

    def test_delete_expired(self, repository, notification_factory, clock):
        repository.create(notification_factory())
        clock.advance(hours=25)
        fresh = repository.create(
            notification_factory(expires_at=clock() + timedelta(hours=24))
        )

        assert repository.delete_expired(clock()) == 1
        assert repository.delete_expired(clock()) == 0
        assert repository.find_by_id(fresh.id) is not None


@pytest.mark.unit
class TestSelectionPredicates:
    """Tests for retry and receipt selection."""

    def test_due_for_retry(self, notification_factory, clock):
        notification = notification_factory(next_retry_at=clock())
        assert is_due_for_retry(notification, clock()) is True

    def test_not_due_without_next_retry(self, notification_factory, clock):
        assert is_due_for_retry(notification_factory(), clock()) is False

    def test_not_due_when_budget_spent(self, notification_factory, clock):
        notification = notification_factory(
            next_retry_at=clock(), retry_count=3, max_retries=3
        )
        assert is_due_for_retry(notification, clock()) is False

    def test_not_due_when_expired(self, notification_factory, clock):
        notification = notification_factory(
            next_retry_at=clock(), expires_at=clock() - timedelta(seconds=1)
        )
        assert is_due_for_retry(notification, clock()) is False

    def test_not_due_when_nothing_pending(self, notification_factory, clock):
        notification = notification_factory(next_retry_at=clock())
        for _, delivery in notification.channels.items():
            delivery.mark_sent(clock())
        assert is_due_for_retry(notification, clock()) is False

    def test_awaiting_receipt(self, notification_factory, clock):
        notification = notification_factory(created_at=clock())
        notification.channels.push.mark_sent(clock())
        notification.channels.push.ticket_id = "ticket-1"

        assert is_awaiting_receipt(notification, clock() - timedelta(hours=24))

        notification.channels.push.mark_delivered(clock())
        assert not is_awaiting_receipt(notification, clock() - timedelta(hours=24))

    def test_delivery_stats(self, notification_factory, clock):
        sent = notification_factory(retry_count=2)
        sent.channels.push.mark_delivered(clock())
        failed = notification_factory(notification_type=NotificationType.COMPLETED)
        failed.channels.push.error = "Connection error"

        stats = build_delivery_stats([sent, failed])

        assert stats.total == 2
        assert stats.sent == 1
        assert stats.delivered == 1
        assert stats.failed == 1
        assert stats.avg_retries == 1.0
        assert stats.by_type == {"assigned": 1, "completed": 1}
