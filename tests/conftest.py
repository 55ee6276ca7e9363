"""Shared fixtures for service sync tests."""

import pytest

from service_sync.broker import MemoryBroker, MemoryHub
from service_sync.settings import Settings, get_settings


@pytest.fixture
def hub() -> MemoryHub:
    """A fresh in-memory broker hub, standing in for one Redis server."""
    return MemoryHub()


@pytest.fixture
def memory_settings() -> Settings:
    """Settings for the in-memory backend, ignoring env and .env files."""
    return Settings(_env_file=None, backend="memory", db="memory://", connect_delay=0)


@pytest.fixture
def broker_factory(hub: MemoryHub):
    """Create in-memory connections on the test hub."""

    def factory(_settings: Settings) -> MemoryBroker:
        return MemoryBroker(hub)

    return factory


@pytest.fixture
def fresh_settings_cache():
    """Clear the cached settings before and after a test that mutates them."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
