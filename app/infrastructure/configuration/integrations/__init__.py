"""Integration settings __init__ - exports all integration settings."""

from infrastructure.configuration.integrations.aws import AwsSettings
from infrastructure.configuration.integrations.expo import ExpoSettings

__all__ = [
    "AwsSettings",
    "ExpoSettings",
]
