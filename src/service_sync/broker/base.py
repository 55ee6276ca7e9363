"""Base broker interface.

Every service owns two ``Broker`` connections: one it publishes on and one it
subscribes with. Implementations wrap a concrete pub/sub client (Redis, an
in-process hub) behind the same contract so the relay stays backend-agnostic.
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from loguru import logger

from service_sync.exceptions import SyncError

# Receives (channel, payload text)
MessageHandler = Callable[[str, str], Awaitable[None] | None]


class Broker(ABC):
    """Abstract pub/sub connection.

    Inbound messages are delivered to handlers registered with ``on_message``
    as callbacks on the running event loop.
    """

    def __init__(self) -> None:
        self._handlers: list[MessageHandler] = []

    @abstractmethod
    async def connect(self) -> None:
        """Establish the connection.

        Raises:
            ConnectionError: If the broker cannot be reached
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection and stop message delivery."""

    @abstractmethod
    async def publish(self, channel: str, payload: str) -> int:
        """Publish ``payload`` on ``channel``.

        Returns:
            Number of subscribers the broker delivered the message to

        Raises:
            PublishError: If the message could not be published
            ConnectionError: If not connected
        """

    @abstractmethod
    async def subscribe(self, *channels: str) -> None:
        """Start receiving messages published on ``channels``.

        Raises:
            SubscriptionError: If the subscription could not be created
            ConnectionError: If not connected
        """

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the connection is open."""

    @property
    def name(self) -> str:
        """Return the broker name for logging."""
        return self.__class__.__name__

    def on_message(self, handler: MessageHandler) -> None:
        """Register a handler for every inbound message on this connection."""
        self._handlers.append(handler)

    async def _dispatch(self, channel: str, payload: str) -> None:
        """Deliver one inbound message to all handlers.

        Handler failures are logged so one bad message cannot stop the
        connection from delivering the next one.
        """
        for handler in list(self._handlers):
            try:
                result = handler(channel, payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"{self.name}: message handler {handler} failed on channel {channel!r}")


class BrokerError(SyncError):
    """Base exception for broker errors."""


class PublishError(BrokerError):
    """Raised when a message could not be published."""


class SubscriptionError(BrokerError):
    """Raised when a subscription could not be created."""
