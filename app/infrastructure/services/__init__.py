"""
Dependency injection services.

Provides provider functions returning application-scoped singletons.
"""

from infrastructure.services.providers import (
    get_expiry_sweeper,
    get_notification_dispatcher,
    get_notification_repository,
    get_notification_service,
    get_push_provider,
    get_receipt_reconciler,
    get_retry_config,
    get_retry_worker,
    get_settings,
    get_user_directory,
)

__all__ = [
    "get_settings",
    "get_retry_config",
    "get_notification_repository",
    "get_user_directory",
    "get_push_provider",
    "get_notification_dispatcher",
    "get_receipt_reconciler",
    "get_retry_worker",
    "get_expiry_sweeper",
    "get_notification_service",
]
