"""Expo push API integration."""

from integrations.expo.client import (
    ExpoPushClient,
    ExpoPushError,
    is_expo_push_token,
)

__all__ = ["ExpoPushClient", "ExpoPushError", "is_expo_push_token"]
