"""Result type handed back by transports, the push client and store clients.

Expected failures (unreachable provider, refused write) come back as an
``OperationResult`` rather than an exception; the caller decides whether the
failure is stored on a channel, raised as a PersistenceFailure or logged.
"""

from dataclasses import dataclass
from typing import Any, Optional

from infrastructure.operations.status import OperationStatus


@dataclass
class OperationResult:
    """Outcome of one call.

    Attributes:
        status: OperationStatus of the call
        message: Human-readable text, stored as the channel error on failure
        data: Payload on success (destination, DynamoDB item, receipts, ...)
        error_code: Machine code on failure (``TIMEOUT``,
            ``ConditionalCheckFailedException``, ...)
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def is_retryable(self) -> bool:
        """The failure may clear up on a later attempt."""
        return self.status == OperationStatus.TRANSIENT_ERROR

    @classmethod
    def success(
        cls, data: Optional[Any] = None, message: str = "ok"
    ) -> "OperationResult":
        return cls(status=OperationStatus.SUCCESS, message=message, data=data)

    @classmethod
    def transient_error(
        cls, message: str, error_code: Optional[str] = None
    ) -> "OperationResult":
        return cls(
            status=OperationStatus.TRANSIENT_ERROR,
            message=message,
            error_code=error_code,
        )

    @classmethod
    def permanent_error(
        cls, message: str, error_code: Optional[str] = None
    ) -> "OperationResult":
        return cls(
            status=OperationStatus.PERMANENT_ERROR,
            message=message,
            error_code=error_code,
        )
