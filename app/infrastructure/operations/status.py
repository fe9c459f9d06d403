"""Outcome classes for transport, provider and store calls."""

from enum import Enum


class OperationStatus(Enum):
    """How a transport, provider or store call ended.

    Attributes:
        SUCCESS: The call did what was asked
        TRANSIENT_ERROR: Timeouts, 5xx, throttling; the next attempt may work
        PERMANENT_ERROR: Bad destination, refused credentials, failed condition
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
