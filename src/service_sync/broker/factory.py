"""Broker construction from settings."""

from collections.abc import Callable

from service_sync.settings import Settings

from .base import Broker
from .memory_broker import MemoryBroker
from .redis_broker import RedisBroker

BrokerFactory = Callable[[Settings], Broker]


def create_broker(settings: Settings) -> Broker:
    """Create a broker connection of the configured backend.

    The connection is not opened; call ``connect`` before using it.
    """
    backend = settings.backend.lower()

    if backend == "redis":
        return RedisBroker(settings.db)
    elif backend == "memory":
        return MemoryBroker()
    else:
        raise ValueError(f"Unknown broker backend: {backend}")
