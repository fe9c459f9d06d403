"""Expo push service integration settings."""

from typing import Optional

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class ExpoSettings(IntegrationSettings):
    """Expo push API configuration.

    Environment Variables:
        EXPO_API_URL: Base URL of the push API (default: https://exp.host/--/api/v2)
        EXPO_ACCESS_TOKEN: Optional access token for enhanced push security
        EXPO_TIMEOUT_SECONDS: HTTP timeout per request (default: 10)
    """

    EXPO_API_URL: str = Field(
        default="https://exp.host/--/api/v2", alias="EXPO_API_URL"
    )
    EXPO_ACCESS_TOKEN: Optional[str] = Field(default=None, alias="EXPO_ACCESS_TOKEN")
    EXPO_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, alias="EXPO_TIMEOUT_SECONDS")
