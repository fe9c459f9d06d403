"""Notification engine configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from infrastructure.configuration.integrations import AwsSettings, ExpoSettings
from infrastructure.configuration.infrastructure import (
    JobSettings,
    NotificationSettings,
)


class Settings(BaseSettings):
    """Notification engine configuration settings - main aggregator.

    Settings are organized by concern:

    - **Integrations**: External services (Expo push API, AWS)
    - **Infrastructure**: Delivery, retry and job cadence

    Environment Variables:
        PREFIX: Environment prefix; empty in production
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        if settings.jobs.enabled:
            interval = settings.jobs.retry_interval_minutes
        ```
    """

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Integration settings
    aws: AwsSettings
    expo: ExpoSettings

    # Infrastructure settings
    notifications: NotificationSettings
    jobs: JobSettings

    @property
    def is_production(self) -> bool:
        """True if PREFIX is empty (production)."""
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings, instantiating any section not passed in.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            "aws": AwsSettings,
            "expo": ExpoSettings,
            "notifications": NotificationSettings,
            "jobs": JobSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )
