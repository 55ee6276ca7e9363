"""In-memory broker for service sync.

This broker is primarily used for:
- Unit testing the relay without a Redis server
- Running several application instances inside one process
- Local development

Connections created on the same ``MemoryHub`` behave like connections to the
same Redis server: a publish reaches every connection subscribed to the
channel, the publisher's own subscribe connection included.
"""

from functools import lru_cache

from loguru import logger

from .base import Broker


class MemoryHub:
    """Channel table shared by in-memory connections."""

    def __init__(self) -> None:
        self._channels: dict[str, list["MemoryBroker"]] = {}

    def subscribe(self, channel: str, broker: "MemoryBroker") -> None:
        subscribers = self._channels.setdefault(channel, [])
        if broker not in subscribers:
            subscribers.append(broker)

    def unsubscribe_all(self, broker: "MemoryBroker") -> None:
        for channel in list(self._channels):
            subscribers = self._channels[channel]
            if broker in subscribers:
                subscribers.remove(broker)
            if not subscribers:
                del self._channels[channel]

    def subscribers(self, channel: str) -> list["MemoryBroker"]:
        return list(self._channels.get(channel, []))

    def channels(self) -> list[str]:
        return list(self._channels)

    def reset(self) -> None:
        self._channels.clear()


@lru_cache
def get_memory_hub() -> MemoryHub:
    """Get the process-wide in-memory hub."""
    return MemoryHub()


class MemoryBroker(Broker):
    """In-memory pub/sub connection.

    Messages are delivered to subscribers before ``publish`` returns, so tests
    can assert on listener side effects right after awaiting an emit.
    """

    def __init__(self, hub: MemoryHub | None = None) -> None:
        super().__init__()
        self._hub = hub if hub is not None else get_memory_hub()
        self._connected = False

    @property
    def hub(self) -> MemoryHub:
        return self._hub

    async def connect(self) -> None:
        """Mark the connection as open."""
        if self._connected:
            logger.warning("Memory broker already connected")
            return
        self._connected = True
        logger.debug("Memory broker connected")

    async def disconnect(self) -> None:
        """Drop all subscriptions of this connection."""
        self._hub.unsubscribe_all(self)
        self._connected = False
        logger.debug("Memory broker disconnected")

    async def publish(self, channel: str, payload: str) -> int:
        """Deliver ``payload`` to all connections subscribed to ``channel``."""
        if not self._connected:
            raise ConnectionError("Memory broker not connected")

        subscribers = self._hub.subscribers(channel)
        logger.trace(f"Publishing to {channel!r} ({len(subscribers)} receivers)")
        for subscriber in subscribers:
            await subscriber._dispatch(channel, payload)
        return len(subscribers)

    async def subscribe(self, *channels: str) -> None:
        """Register this connection for ``channels`` on the hub."""
        if not self._connected:
            raise ConnectionError("Memory broker not connected")

        for channel in channels:
            self._hub.subscribe(channel, self)
            logger.debug(f"Subscribed to {channel!r}")

    @property
    def is_connected(self) -> bool:
        """Check if the connection is open."""
        return self._connected
