"""Custom structlog processors.

Usage:
    from infrastructure.logging.formatters import add_app_info, mask_sensitive_data
"""

import re
from typing import Any

APP_NAME = "care-escalation-notifications"
REDACTED = "***REDACTED***"

# Keys containing any of these fragments are redacted
SENSITIVE_PATTERNS = frozenset(
    {
        "password",
        "secret",
        "token",
        "authorization",
        "phone",
        "email_address",
        "destination",
    }
)

# Provider correlation ids that contain a sensitive fragment but are safe to log
ALLOWED_KEYS = frozenset({"ticket_id", "ticket_ids", "ticket_count"})

# Expo echoes the device token back in ticket and receipt error messages
PUSH_TOKEN_RE = re.compile(r"Expo(?:nent)?PushToken\[[^\]]*\]")


def add_app_info(app_version: str = "unknown"):
    """Create a processor that stamps the application name and deployed version."""

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["app_name"] = APP_NAME
        event_dict["app_version"] = app_version
        return event_dict

    return processor


def _is_sensitive(key: str) -> bool:
    key_lower = key.lower()
    if key_lower in ALLOWED_KEYS:
        return False
    return any(pattern in key_lower for pattern in SENSITIVE_PATTERNS)


def mask_sensitive_data(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Redact contact details and credentials from a log event.

    Values under sensitive keys are replaced outright. Push tokens quoted
    inside any other string value (provider error messages, for instance)
    are replaced in place so the rest of the message survives.
    """
    for key, value in event_dict.items():
        if value is None:
            continue
        if _is_sensitive(key):
            event_dict[key] = REDACTED
        elif isinstance(value, str) and "PushToken[" in value:
            event_dict[key] = PUSH_TOKEN_RE.sub(REDACTED, value)
    return event_dict
