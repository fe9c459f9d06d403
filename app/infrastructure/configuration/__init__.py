"""Infrastructure configuration module - public API.

Centralized configuration for the notification engine using Pydantic
BaseSettings with domain-based organization.

Exports:
    Settings: Main settings class
    NotificationSettings: Delivery and retry settings
    JobSettings: Background job cadence
    ExpoSettings: Push provider settings
    AwsSettings: AWS settings

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()
    max_retries = settings.notifications.max_retries
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.infrastructure import (
    JobSettings,
    NotificationSettings,
)
from infrastructure.configuration.integrations import AwsSettings, ExpoSettings

__all__ = [
    "Settings",
    "NotificationSettings",
    "JobSettings",
    "ExpoSettings",
    "AwsSettings",
]
