"""Shared pytest fixtures."""

from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Fixed clock starting at 2025-01-15 12:00 UTC."""
    return FakeClock()


@pytest.fixture(autouse=True)
def clear_provider_caches():
    """Reset application-scoped singletons between tests."""
    yield
    from infrastructure.services import providers

    for name in dir(providers):
        provider = getattr(providers, name)
        if name.startswith("get_") and hasattr(provider, "cache_clear"):
            provider.cache_clear()
