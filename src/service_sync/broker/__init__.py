"""Broker adapters.

This package provides the adapter pattern implementation for the pub/sub
backends the relay can run on (Redis, in-memory).
"""

from .base import Broker, BrokerError, MessageHandler, PublishError, SubscriptionError
from .factory import BrokerFactory, create_broker
from .memory_broker import MemoryBroker, MemoryHub, get_memory_hub
from .redis_broker import RedisBroker

__all__ = [
    "Broker",
    "BrokerError",
    "BrokerFactory",
    "MemoryBroker",
    "MemoryHub",
    "MessageHandler",
    "PublishError",
    "RedisBroker",
    "SubscriptionError",
    "create_broker",
    "get_memory_hub",
]
