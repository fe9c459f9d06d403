"""Delete notifications past their expiry."""

from infrastructure.logging import bind_request_context, get_module_logger
from infrastructure.services.providers import get_expiry_sweeper

logger = get_module_logger()


def cleanup_expired_notifications() -> int:
    with bind_request_context(job="cleanup_expired_notifications"):
        deleted = get_expiry_sweeper().run()
        logger.info("cleanup_expired_notifications_completed", deleted_count=deleted)
        return deleted
