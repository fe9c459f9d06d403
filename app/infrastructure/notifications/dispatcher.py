"""Notification dispatcher with concurrent multi-channel delivery.

Creates the notification record, attempts every enabled channel in
parallel on a thread pool, waits for all of them (bounded by a per-send
timeout), then folds the per-channel outcomes into the record and persists
it once.

Usage Example:
    from infrastructure.notifications import NotificationDispatcher

    dispatcher = NotificationDispatcher(
        repository=repository,
        directory=directory,
        channels={Channel.PUSH: push_channel, Channel.EMAIL: email_channel},
    )
    notification = dispatcher.send(intent)
"""

import contextvars
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Set, Tuple

import structlog

from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.directory import UserDirectory
from infrastructure.notifications.errors import RecipientNotFound
from infrastructure.notifications.models import (
    DEFAULT_EXPIRY,
    Channel,
    ChannelOutcome,
    DeliveryStatus,
    DispatchIntent,
    EmailDelivery,
    Notification,
    PushDelivery,
    Recipient,
    SmsDelivery,
    utc_now,
)
from infrastructure.notifications.repository import NotificationRepository
from infrastructure.resilience.retry import RetryConfig, RetryResult

logger = structlog.get_logger()

DEFAULT_SEND_TIMEOUT_SECONDS = 10.0


class NotificationDispatcher:
    """Multi-channel notification dispatcher.

    Attributes:
        repository: Notification record store
        directory: User directory used to resolve recipients
        channels: Dict mapping Channel to its adapter
        retry_config: Backoff parameters and default retry budget
        send_timeout_seconds: Upper bound on waiting for channel sends
        expires_in: Lifetime of a new notification
        clock: Returns the current aware UTC datetime

    Example:
        dispatcher = NotificationDispatcher(
            repository=InMemoryNotificationRepository(),
            directory=InMemoryUserDirectory(recipients),
            channels={
                Channel.PUSH: PushChannel(ExpoPushClient()),
                Channel.SMS: SMSChannel(LoggingTransport("sms")),
                Channel.EMAIL: EmailChannel(LoggingTransport("email")),
            },
        )
        notification = dispatcher.send(intent)
    """

    def __init__(
        self,
        repository: NotificationRepository,
        directory: UserDirectory,
        channels: Dict[Channel, NotificationChannel],
        retry_config: Optional[RetryConfig] = None,
        send_timeout_seconds: float = DEFAULT_SEND_TIMEOUT_SECONDS,
        expires_in: timedelta = DEFAULT_EXPIRY,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.directory = directory
        self.channels = channels
        self.retry_config = retry_config or RetryConfig()
        self.send_timeout_seconds = send_timeout_seconds
        self.expires_in = expires_in
        self.clock = clock
        self._abandoned: Set[ThreadPoolExecutor] = set()
        self._abandoned_lock = threading.Lock()

        logger.info(
            "initialized_notification_dispatcher",
            channels=[channel.value for channel in channels],
            send_timeout_seconds=send_timeout_seconds,
            max_retries=self.retry_config.max_attempts,
        )

    def send(self, intent: DispatchIntent) -> Notification:
        """Create a notification for ``intent`` and deliver it.

        Process:
        1. Resolve the recipient (RecipientNotFound if unknown)
        2. Persist the new record with nothing sent
        3. If scheduled in the future, hand it to the retry job and stop
        4. Attempt enabled channels concurrently, join, apply outcomes
        5. Persist the updated record once

        Args:
            intent: What to send, to whom

        Returns:
            The persisted notification after the first delivery attempt

        Raises:
            RecipientNotFound: The directory has no such recipient
            PersistenceFailure: The store refused the create or update
        """
        recipient = self._resolve_recipient(intent.recipient_id)
        now = self.clock()

        notification = Notification.from_intent(
            intent,
            now=now,
            expires_in=self.expires_in,
            default_max_retries=self.retry_config.max_attempts,
        )
        deferred = notification.scheduled_for > now
        if deferred:
            notification.next_retry_at = notification.scheduled_for

        notification = self.repository.create(notification)

        if deferred:
            logger.info(
                "notification_deferred",
                notification_id=notification.notification_id,
                recipient_id=notification.recipient_id,
                scheduled_for=notification.scheduled_for.isoformat(),
            )
            return notification

        channels = self.enabled_channels(recipient, notification)
        if not channels:
            logger.info(
                "notification_no_enabled_channels",
                notification_id=notification.notification_id,
                recipient_id=notification.recipient_id,
                priority=notification.priority.value,
            )
            return notification

        outcomes = self._fan_out(notification, recipient, channels)
        self.apply_outcomes(notification, outcomes, self.clock(), retry_attempt=False)
        notification = self.repository.update(notification)

        logger.info(
            "notification_dispatched",
            notification_id=notification.notification_id,
            recipient_id=notification.recipient_id,
            alert_id=notification.alert_id,
            type=notification.type.value,
            priority=notification.priority.value,
            **_outcome_summary(outcomes),
        )
        return notification

    def redeliver(self, notification: Notification) -> Tuple[Notification, RetryResult]:
        """Re-attempt every enabled channel that has not succeeded yet.

        Used by the retry job. Stored content is sent as-is.

        Args:
            notification: A notification selected as due for retry

        Returns:
            Tuple of the persisted notification and the RetryResult

        Raises:
            RecipientNotFound: The recipient was removed from the directory
            PersistenceFailure: The store refused the update
        """
        recipient = self._resolve_recipient(notification.recipient_id)
        channels = [
            channel
            for channel in self.enabled_channels(recipient, notification)
            if notification.channels.get(channel).needs_attempt
        ]

        if not channels:
            notification.clear_retry()
            notification = self.repository.update(notification)
            logger.info(
                "notification_retry_nothing_to_attempt",
                notification_id=notification.notification_id,
            )
            return notification, RetryResult.SKIPPED

        outcomes = self._fan_out(notification, recipient, channels)
        result = self.apply_outcomes(
            notification, outcomes, self.clock(), retry_attempt=True
        )
        notification = self.repository.update(notification)

        logger.info(
            "notification_redelivered",
            notification_id=notification.notification_id,
            retry_count=notification.retry_count,
            max_retries=notification.max_retries,
            result=result.value,
            **_outcome_summary(outcomes),
        )
        return notification, result

    def enabled_channels(
        self, recipient: Recipient, notification: Notification
    ) -> List[Channel]:
        """Channels the recipient opted into that pass the priority filter."""
        preferences = recipient.notification_preferences
        return [
            channel
            for channel in Channel
            if channel in self.channels
            and preferences.allows(channel, notification.priority)
        ]

    def apply_outcomes(
        self,
        notification: Notification,
        outcomes: List[ChannelOutcome],
        now: datetime,
        retry_attempt: bool,
    ) -> RetryResult:
        """Fold channel outcomes into ``notification`` and update retry state.

        First dispatch: a transport failure consumes one retry; a push
        rejection only schedules the next attempt at the initial delay.
        Retry run: any failure consumes one retry. In both cases the delay is
        computed from the retry count before it is incremented.

        A permanent push rejection still schedules like any other, but the
        push channel is never re-attempted, so the record is only picked up
        again if another channel is pending.

        Returns:
            RetryResult describing the resulting retry state
        """
        transport_failed = False
        rejected = False

        for outcome in outcomes:
            delivery = notification.channels.get(outcome.channel)
            if outcome.status == DeliveryStatus.SKIPPED:
                continue

            if outcome.status == DeliveryStatus.SENT:
                delivery.mark_sent(now)
                _record_destination(delivery, outcome)
            elif outcome.status == DeliveryStatus.REJECTED:
                delivery.sent = True
                delivery.sent_at = now
                delivery.error = outcome.message
                _record_destination(delivery, outcome)
                if outcome.permanent and isinstance(delivery, PushDelivery):
                    delivery.permanently_failed = True
                rejected = True
            else:
                delivery.error = outcome.message
                _record_destination(delivery, outcome)
                transport_failed = True

        if retry_attempt:
            if transport_failed or rejected:
                notification.schedule_retry(now, self.retry_config, count_attempt=True)
                return (
                    RetryResult.EXHAUSTED
                    if notification.next_retry_at is None
                    else RetryResult.RETRY
                )
            notification.clear_retry()
            return RetryResult.SUCCESS

        if transport_failed:
            notification.schedule_retry(now, self.retry_config, count_attempt=True)
        elif rejected:
            notification.schedule_retry(now, self.retry_config, count_attempt=False)
        else:
            return RetryResult.SUCCESS
        return (
            RetryResult.EXHAUSTED
            if notification.next_retry_at is None
            else RetryResult.RETRY
        )

    def shutdown(self, wait_for_sends: bool = True) -> None:
        """Stop the pools still running sends that outlived their timeout."""
        with self._abandoned_lock:
            executors = list(self._abandoned)
            self._abandoned.clear()
        for executor in executors:
            executor.shutdown(wait=wait_for_sends, cancel_futures=True)

    def _resolve_recipient(self, recipient_id: str) -> Recipient:
        recipient = self.directory.find_by_id(recipient_id)
        if recipient is None:
            logger.warning("notification_recipient_not_found", recipient_id=recipient_id)
            raise RecipientNotFound(recipient_id)
        return recipient

    def _fan_out(
        self,
        notification: Notification,
        recipient: Recipient,
        channels: List[Channel],
    ) -> List[ChannelOutcome]:
        """Attempt ``channels`` concurrently and wait for all of them.

        Each fan-out gets its own pool with one thread per channel, so every
        channel starts immediately no matter what earlier sends are doing.
        A send still running after the timeout yields a FAILED outcome; its
        late result is discarded.
        """
        executor = ThreadPoolExecutor(
            max_workers=len(channels),
            thread_name_prefix="notification-send",
        )
        futures: Dict[Channel, Future] = {}
        for channel in channels:
            # Worker threads inherit the caller's log context
            context = contextvars.copy_context()
            futures[channel] = executor.submit(
                context.run, self._attempt, channel, notification, recipient
            )

        _, not_done = wait(list(futures.values()), timeout=self.send_timeout_seconds)
        executor.shutdown(wait=False, cancel_futures=True)
        if not_done:
            self._track_abandoned(executor, not_done)

        outcomes: List[ChannelOutcome] = []
        for channel, future in futures.items():
            if future in not_done:
                logger.warning(
                    "channel_send_timed_out",
                    channel=channel.value,
                    notification_id=notification.notification_id,
                    timeout_seconds=self.send_timeout_seconds,
                )
                outcomes.append(
                    ChannelOutcome.failed(
                        channel,
                        f"Send timed out after {self.send_timeout_seconds}s",
                        error_code="TIMEOUT",
                    )
                )
                continue
            outcomes.append(future.result())
        return outcomes

    def _track_abandoned(self, executor: ThreadPoolExecutor, pending) -> None:
        remaining = set(pending)
        with self._abandoned_lock:
            self._abandoned.add(executor)

        def _release(future: Future) -> None:
            with self._abandoned_lock:
                remaining.discard(future)
                if not remaining:
                    self._abandoned.discard(executor)

        for future in pending:
            future.add_done_callback(_release)

    def _attempt(
        self, channel: Channel, notification: Notification, recipient: Recipient
    ) -> ChannelOutcome:
        try:
            return self.channels[channel].send(notification, recipient)
        except Exception as e:
            logger.error(
                "channel_send_exception",
                channel=channel.value,
                notification_id=notification.notification_id,
                error=str(e),
                exc_info=True,
            )
            return ChannelOutcome.failed(
                channel, f"Channel exception: {str(e)}", error_code="CHANNEL_EXCEPTION"
            )


def _record_destination(delivery, outcome: ChannelOutcome) -> None:
    if isinstance(delivery, PushDelivery):
        delivery.ticket_id = outcome.ticket_id
    elif isinstance(delivery, SmsDelivery) and outcome.destination:
        delivery.phone_number = outcome.destination
    elif isinstance(delivery, EmailDelivery) and outcome.destination:
        delivery.email_address = outcome.destination


def _outcome_summary(outcomes: List[ChannelOutcome]) -> Dict[str, List[str]]:
    summary: Dict[str, List[str]] = {status.value: [] for status in DeliveryStatus}
    for outcome in outcomes:
        summary[outcome.status.value].append(outcome.channel.value)
    return summary
