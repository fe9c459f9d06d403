"""Outbound message transports for the SMS and email channels."""

import uuid
from typing import Protocol

import structlog

from infrastructure.operations import OperationResult

logger = structlog.get_logger()


class MessageTransport(Protocol):
    """Sends one text message to a phone number or email address.

    Implementations return an OperationResult instead of raising; a failed
    result is always treated as transient by the engine.
    """

    def send(self, destination: str, title: str, message: str) -> OperationResult:
        ...


class LoggingTransport:
    """Transport that records the message in the log and reports success.

    Used for SMS and email until a real provider is wired in.

    Example:
        transport = LoggingTransport("sms")
        result = transport.send("+15555550100", "New Emergency Alert", "...")
        result.data["message_id"]
    """

    def __init__(self, channel_name: str):
        self.channel_name = channel_name

    def send(self, destination: str, title: str, message: str) -> OperationResult:
        message_id = str(uuid.uuid4())
        logger.info(
            "message_transport_stub_send",
            channel=self.channel_name,
            destination=destination,
            title=title,
            message_length=len(message),
            message_id=message_id,
        )
        return OperationResult.success(
            data={"message_id": message_id},
            message=f"{self.channel_name} message logged",
        )
