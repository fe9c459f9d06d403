"""Poll push receipts for notifications that are not yet confirmed delivered."""

from infrastructure.logging import bind_request_context, get_module_logger
from infrastructure.services.providers import get_receipt_reconciler

logger = get_module_logger()


def check_push_receipts() -> dict:
    with bind_request_context(job="check_push_receipts"):
        logger.info("check_push_receipts_started")
        stats = get_receipt_reconciler().run()
        logger.info("check_push_receipts_completed", **stats)
        return stats
