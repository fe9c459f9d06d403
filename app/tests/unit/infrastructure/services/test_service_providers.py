"""Unit tests for the application-scoped providers."""

import pytest

from infrastructure.notifications import (
    Channel,
    EmailChannel,
    InMemoryNotificationRepository,
    NotificationService,
    PushChannel,
    SMSChannel,
)
from infrastructure.services import providers


@pytest.mark.unit
class TestProviders:

    def test_settings_singleton(self):
        assert providers.get_settings() is providers.get_settings()

    def test_retry_config_from_settings(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_MAX_RETRIES", "5")
        monkeypatch.setenv("NOTIFICATION_RETRY_MAX_DELAY_SECONDS", "30")

        config = providers.get_retry_config()

        assert config.max_attempts == 5
        assert config.max_delay_seconds == 30.0

    def test_dispatcher_wires_all_channels(self):
        dispatcher = providers.get_notification_dispatcher()

        assert isinstance(dispatcher.channels[Channel.PUSH], PushChannel)
        assert isinstance(dispatcher.channels[Channel.SMS], SMSChannel)
        assert isinstance(dispatcher.channels[Channel.EMAIL], EmailChannel)
        assert isinstance(dispatcher.repository, InMemoryNotificationRepository)

    def test_components_share_one_store(self):
        repository = providers.get_notification_repository()

        assert providers.get_retry_worker().repository is repository
        assert providers.get_receipt_reconciler().repository is repository
        assert providers.get_expiry_sweeper().repository is repository
        assert isinstance(providers.get_notification_service(), NotificationService)
