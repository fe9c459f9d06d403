"""Infrastructure modules for the care-escalation notification engine.

Centralized infrastructure components:
- configuration: Settings management (Settings, NotificationSettings, JobSettings)
- logging: Structured logging (get_module_logger, bind_request_context)
- notifications: Dispatcher, channels, record stores and background workers
- operations: Operation results and error classification
- resilience: Retry backoff
- services: Application-scoped providers (get_settings, get_notification_service)
"""

# Operations
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
]
