"""DynamoDB-backed notification store.

Each notification is one item: the full record as a JSON ``document`` plus
the scalar attributes the table indexes and filters on.

Table layout:
    id (S)                partition key
    notification_id (S)   GSI ``notification_id-index``
    recipient_id (S)      GSI ``recipient_id-created_at-index`` (sort: created_at)
    created_at (N)        epoch milliseconds
    expires_at (N)        epoch seconds, also the table TTL attribute ``ttl``
    next_retry_at (N)     epoch milliseconds, present while a retry is scheduled
    push_ticket_id (S)    present while a push receipt is outstanding
    version (N)           optimistic concurrency counter

The recipient GSI must be created with ``ProjectionType=ALL``: listings are
decoded straight from its items, which therefore need ``document`` and
``version``. Lookups by notification id re-read the base item, so
``notification_id-index`` may be ``KEYS_ONLY``.
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import structlog

from infrastructure.notifications.errors import PersistenceFailure, StaleRecordError
from infrastructure.notifications.models import DeliveryStats, Notification, utc_now
from infrastructure.notifications.repository import (
    build_delivery_stats,
    is_awaiting_receipt,
    is_due_for_retry,
    newest_first,
)
from integrations.aws.dynamodb import DynamoDBClient

logger = structlog.get_logger()

NOTIFICATION_ID_INDEX = "notification_id-index"
RECIPIENT_INDEX = "recipient_id-created_at-index"


def _epoch_ms(value: datetime) -> str:
    return str(int(value.timestamp() * 1000))


def _epoch_seconds(value: datetime) -> str:
    return str(int(value.timestamp()))


class DynamoDBNotificationRepository:
    """Notification store persisted in a DynamoDB table.

    Writes are conditional on ``version`` so concurrent writers cannot
    silently overwrite each other.

    Example:
        repository = DynamoDBNotificationRepository(
            DynamoDBClient(region_name="ca-central-1"),
            table_name="care-escalation-notifications",
        )
    """

    def __init__(
        self,
        client: DynamoDBClient,
        table_name: str,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.client = client
        self.table_name = table_name
        self._clock = clock
        logger.info("dynamodb_notification_store_initialized", table=table_name)

    def create(self, notification: Notification) -> Notification:
        now = self._clock()
        record = notification.model_copy(deep=True)
        record.id = notification.id or str(uuid.uuid4())
        record.created_at = now
        record.updated_at = now
        record.version = 1

        result = self.client.put_item(
            self.table_name,
            Item=self._to_item(record),
            ConditionExpression="attribute_not_exists(id)",
        )
        if not result.is_success:
            raise PersistenceFailure(
                f"Failed to create notification {record.notification_id}: {result.message}",
                response=result,
            )
        logger.debug(
            "notification_record_created",
            record_id=record.id,
            notification_id=record.notification_id,
        )
        return record

    def find_by_id(self, record_id: str) -> Optional[Notification]:
        result = self.client.get_item(self.table_name, Key={"id": {"S": record_id}})
        if not result.is_success:
            raise PersistenceFailure(
                f"Failed to read notification {record_id}: {result.message}",
                response=result,
            )
        return self._from_item(result.data) if result.data else None

    def find_by_notification_id(
        self, notification_id: str, recipient_id: Optional[str] = None
    ) -> Optional[Notification]:
        items = self._query(
            IndexName=NOTIFICATION_ID_INDEX,
            KeyConditionExpression="notification_id = :nid",
            ExpressionAttributeValues={":nid": {"S": notification_id}},
        )
        for item in items:
            # GSI projections are eventually consistent; read the base item
            notification = self.find_by_id(item["id"]["S"])
            if notification is None:
                continue
            if recipient_id is not None and notification.recipient_id != recipient_id:
                continue
            return notification
        return None

    def list_for_recipient(
        self, recipient_id: str, limit: int = 50
    ) -> List[Notification]:
        items = self._query(
            IndexName=RECIPIENT_INDEX,
            KeyConditionExpression="recipient_id = :rid",
            ExpressionAttributeValues={":rid": {"S": recipient_id}},
            ScanIndexForward=False,
            Limit=limit,
        )
        return newest_first(self._from_item(item) for item in items)[:limit]

    def find_due_for_retry(
        self, now: datetime, limit: Optional[int] = None
    ) -> List[Notification]:
        items = self._scan(
            FilterExpression="next_retry_at <= :now_ms AND expires_at > :now_s",
            ExpressionAttributeValues={
                ":now_ms": {"N": _epoch_ms(now)},
                ":now_s": {"N": _epoch_seconds(now)},
            },
        )
        due = [
            notification
            for notification in (self._from_item(item) for item in items)
            if is_due_for_retry(notification, now)
        ]
        due.sort(key=lambda n: n.next_retry_at)
        return due[:limit] if limit is not None else due

    def find_pending_receipts(self, since: datetime) -> List[Notification]:
        items = self._scan(
            FilterExpression="attribute_exists(push_ticket_id) AND created_at >= :since",
            ExpressionAttributeValues={":since": {"N": _epoch_ms(since)}},
        )
        return [
            notification
            for notification in (self._from_item(item) for item in items)
            if is_awaiting_receipt(notification, since)
        ]

    def update(self, notification: Notification) -> Notification:
        if not notification.id:
            raise PersistenceFailure("Cannot update a notification without an id")

        record = notification.model_copy(deep=True)
        record.updated_at = self._clock()
        record.version = notification.version + 1

        result = self.client.put_item(
            self.table_name,
            Item=self._to_item(record),
            ConditionExpression="version = :expected",
            ExpressionAttributeValues={":expected": {"N": str(notification.version)}},
        )
        if result.is_success:
            return record
        if result.error_code == "ConditionalCheckFailedException":
            logger.warning(
                "notification_stale_write_refused",
                record_id=notification.id,
                expected_version=notification.version,
            )
            raise StaleRecordError(notification.id, notification.version)
        raise PersistenceFailure(
            f"Failed to update notification {notification.id}: {result.message}",
            response=result,
        )

    def delete_expired(self, now: datetime) -> int:
        items = self._scan(
            FilterExpression="expires_at < :now_s",
            ExpressionAttributeValues={":now_s": {"N": _epoch_seconds(now)}},
            ProjectionExpression="id",
        )
        deleted = 0
        for item in items:
            result = self.client.delete_item(self.table_name, Key={"id": item["id"]})
            if result.is_success:
                deleted += 1
            else:
                logger.error(
                    "expired_notification_delete_failed",
                    record_id=item["id"]["S"],
                    error=result.message,
                )
        return deleted

    def aggregate_stats(self, recipient_id: Optional[str] = None) -> DeliveryStats:
        kwargs: Dict[str, Any] = {}
        if recipient_id is not None:
            kwargs["FilterExpression"] = "recipient_id = :rid"
            kwargs["ExpressionAttributeValues"] = {":rid": {"S": recipient_id}}
        items = self._scan(**kwargs)
        return build_delivery_stats(self._from_item(item) for item in items)

    def _query(self, **kwargs) -> List[Dict[str, Any]]:
        result = self.client.query(self.table_name, **kwargs)
        if not result.is_success:
            raise PersistenceFailure(
                f"Notification query failed: {result.message}", response=result
            )
        return result.data

    def _scan(self, **kwargs) -> List[Dict[str, Any]]:
        result = self.client.scan(self.table_name, **kwargs)
        if not result.is_success:
            raise PersistenceFailure(
                f"Notification scan failed: {result.message}", response=result
            )
        return result.data

    def _to_item(self, notification: Notification) -> Dict[str, Any]:
        item: Dict[str, Any] = {
            "id": {"S": notification.id},
            "notification_id": {"S": notification.notification_id},
            "recipient_id": {"S": notification.recipient_id},
            "created_at": {"N": _epoch_ms(notification.created_at)},
            "version": {"N": str(notification.version)},
            "document": {"S": notification.model_dump_json()},
        }
        if notification.expires_at is not None:
            item["expires_at"] = {"N": _epoch_seconds(notification.expires_at)}
            item["ttl"] = {"N": _epoch_seconds(notification.expires_at)}
        if notification.next_retry_at is not None:
            item["next_retry_at"] = {"N": _epoch_ms(notification.next_retry_at)}
        ticket_id = notification.channels.push.ticket_id
        if ticket_id:
            item["push_ticket_id"] = {"S": ticket_id}
        return item

    def _from_item(self, item: Dict[str, Any]) -> Notification:
        notification = Notification.model_validate_json(item["document"]["S"])
        notification.version = int(item["version"]["N"])
        return notification
