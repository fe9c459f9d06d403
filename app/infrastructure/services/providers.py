"""
Factory functions for dependency injection.

Provides application-scoped singleton providers for the notification engine.
"""

from datetime import timedelta
from functools import lru_cache

from infrastructure.configuration import Settings
from infrastructure.notifications.channels import (
    EmailChannel,
    LoggingTransport,
    PushChannel,
    SMSChannel,
)
from infrastructure.notifications.directory import InMemoryUserDirectory, UserDirectory
from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.expiry import ExpiredNotificationSweeper
from infrastructure.notifications.factory import create_notification_repository
from infrastructure.notifications.models import Channel
from infrastructure.notifications.receipts import PushReceiptReconciler
from infrastructure.notifications.repository import NotificationRepository
from infrastructure.notifications.retry import NotificationRetryWorker
from infrastructure.notifications.service import NotificationService
from infrastructure.resilience.retry import RetryConfig
from integrations.expo.client import ExpoPushClient


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    The @lru_cache decorator ensures only ONE instance is created per process.

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


@lru_cache
def get_retry_config() -> RetryConfig:
    """Backoff parameters built from notification settings."""
    notifications = get_settings().notifications
    return RetryConfig(
        max_attempts=notifications.max_retries,
        base_delay_seconds=notifications.retry_initial_delay_seconds,
        backoff_multiplier=notifications.retry_backoff_multiplier,
        max_delay_seconds=notifications.retry_max_delay_seconds,
        batch_size=notifications.retry_batch_size,
    )


@lru_cache
def get_notification_repository() -> NotificationRepository:
    """Notification store selected by NOTIFICATION_STORE_BACKEND."""
    return create_notification_repository(get_settings())


@lru_cache
def get_user_directory() -> UserDirectory:
    """User directory; recipients are registered by the hosting application."""
    return InMemoryUserDirectory()


@lru_cache
def get_push_provider() -> ExpoPushClient:
    """Expo push API client configured from settings."""
    expo = get_settings().expo
    return ExpoPushClient(
        api_url=expo.EXPO_API_URL,
        access_token=expo.EXPO_ACCESS_TOKEN,
        timeout_seconds=expo.EXPO_TIMEOUT_SECONDS,
    )


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    """Dispatcher wired with push, SMS and email channels."""
    notifications = get_settings().notifications
    return NotificationDispatcher(
        repository=get_notification_repository(),
        directory=get_user_directory(),
        channels={
            Channel.PUSH: PushChannel(get_push_provider()),
            Channel.SMS: SMSChannel(LoggingTransport(Channel.SMS.value)),
            Channel.EMAIL: EmailChannel(LoggingTransport(Channel.EMAIL.value)),
        },
        retry_config=get_retry_config(),
        send_timeout_seconds=notifications.send_timeout_seconds,
        expires_in=timedelta(hours=notifications.expiry_hours),
    )


@lru_cache
def get_receipt_reconciler() -> PushReceiptReconciler:
    notifications = get_settings().notifications
    return PushReceiptReconciler(
        repository=get_notification_repository(),
        provider=get_push_provider(),
        retry_config=get_retry_config(),
        batch_size=notifications.receipt_batch_size,
        lookback=timedelta(hours=notifications.receipt_lookback_hours),
    )


@lru_cache
def get_retry_worker() -> NotificationRetryWorker:
    return NotificationRetryWorker(
        repository=get_notification_repository(),
        dispatcher=get_notification_dispatcher(),
    )


@lru_cache
def get_expiry_sweeper() -> ExpiredNotificationSweeper:
    return ExpiredNotificationSweeper(repository=get_notification_repository())


@lru_cache
def get_notification_service() -> NotificationService:
    """
    Get application-scoped notification service singleton.

    Usage:
        from infrastructure.services import get_notification_service

        notification = get_notification_service().dispatch(intent)
    """
    return NotificationService(
        dispatcher=get_notification_dispatcher(),
        repository=get_notification_repository(),
        reconciler=get_receipt_reconciler(),
    )
