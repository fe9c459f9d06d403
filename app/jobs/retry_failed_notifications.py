"""Retry notifications whose channels failed, once they are due."""

from infrastructure.logging import bind_request_context, get_module_logger
from infrastructure.services.providers import get_retry_worker

logger = get_module_logger()


def retry_failed_notifications() -> dict:
    """Run one retry pass; returns the worker's batch statistics."""
    with bind_request_context(job="retry_failed_notifications"):
        logger.info("retry_failed_notifications_started")
        stats = get_retry_worker().process_batch()
        logger.info("retry_failed_notifications_completed", **stats)
        return stats
