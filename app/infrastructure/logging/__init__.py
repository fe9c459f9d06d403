"""Structured logging infrastructure.

Centralized structlog configuration for the notification engine.

Public API:
    - configure_logging(): Initialize logging for the application
    - get_module_logger(): Get a logger for the calling module
    - bind_request_context(): Context manager for job/dispatch scoped logging
    - get_correlation_id(): Get current correlation ID from context
    - clear_request_context(): Clear all scoped context

Example:
    from infrastructure.logging import get_module_logger, bind_request_context

    logger = get_module_logger()

    with bind_request_context(job="check_push_receipts"):
        logger.info("receipt_check_started")
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
)

from infrastructure.logging.context import (
    bind_request_context,
    get_correlation_id,
    clear_request_context,
)

from infrastructure.logging.formatters import (
    add_app_info,
    mask_sensitive_data,
    SENSITIVE_PATTERNS,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "bind_request_context",
    "get_correlation_id",
    "clear_request_context",
    "add_app_info",
    "mask_sensitive_data",
    "SENSITIVE_PATTERNS",
]
