"""Job and dispatch context binding for structured logging.

Binds correlation data (job name, notification id) to every log entry
emitted inside a block, including entries from channel worker threads
started within it.

Usage:
    from infrastructure.logging import bind_request_context

    with bind_request_context(job="retry_failed_notifications"):
        logger.info("retry_run_started")
"""

import uuid
from contextlib import contextmanager
from typing import Optional, Any, Generator
import structlog


@contextmanager
def bind_request_context(
    correlation_id: Optional[str] = None,
    job: Optional[str] = None,
    notification_id: Optional[str] = None,
    recipient_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[None, None, None]:
    """Bind scoped context to all logs within the context manager.

    Args:
        correlation_id: Identifier for this unit of work. Auto-generated if
            not provided.
        job: Name of the background job running the block.
        notification_id: Public id of the notification being processed.
        recipient_id: Recipient the notification is addressed to.
        **extra_context: Additional key-value pairs to include in logs.

    Yields:
        None - context is bound to structlog's context vars.

    Example:
        with bind_request_context(notification_id=notification.notification_id):
            dispatcher.redeliver(notification)
    """
    context: dict[str, Any] = {}

    context["correlation_id"] = correlation_id or str(uuid.uuid4())

    if job is not None:
        context["job"] = job

    if notification_id is not None:
        context["notification_id"] = notification_id

    if recipient_id is not None:
        context["recipient_id"] = recipient_id

    context.update(extra_context)

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())


def get_correlation_id() -> Optional[str]:
    """Return the correlation ID bound to the current context, if any."""
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("correlation_id")


def clear_request_context() -> None:
    """Clear all scoped context from the logging context."""
    structlog.contextvars.clear_contextvars()
