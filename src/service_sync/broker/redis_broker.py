"""Redis broker for service sync.

Uses Redis pub/sub: ``PUBLISH`` on the publish connection and a ``PubSub``
listener task on the subscribe connection. Redis delivers a message to every
subscribed connection, including those owned by the publishing process.

Responses are read as raw bytes and decoded per message, so a payload that is
not valid UTF-8 is dropped without stopping the listener.
"""

import asyncio

import redis.asyncio as aioredis
from loguru import logger
from redis.exceptions import RedisError

from .base import Broker, PublishError, SubscriptionError


class RedisBroker(Broker):
    """Redis pub/sub connection.

    Features:
    - Lazy client creation; nothing touches the network before ``connect``
    - One background listener task per subscribing connection
    - UTF-8 decoded channel names and payloads; undecodable messages are skipped
    """

    def __init__(self, url: str = "redis://localhost:6379/0") -> None:
        """Initialize the Redis broker.

        Args:
            url: Redis URL, e.g. ``redis://host:6379/0``
        """
        super().__init__()
        self._url = url
        self._client: aioredis.Redis | None = None
        self._pubsub: aioredis.client.PubSub | None = None
        self._listener: asyncio.Task | None = None

    @property
    def url(self) -> str:
        return self._url

    async def connect(self) -> None:
        """Connect to Redis and verify the connection with ``PING``."""
        if self._client is not None:
            logger.warning(f"Already connected to Redis at {self._url}")
            return

        logger.debug(f"Connecting to Redis at {self._url}")
        client = aioredis.from_url(self._url)
        try:
            await client.ping()
        except RedisError as e:
            await client.aclose()
            logger.error(f"Failed to connect to Redis: {e}")
            raise ConnectionError(f"Failed to connect to Redis at {self._url}: {e}") from e

        self._client = client
        logger.debug(f"Connected to Redis at {self._url}")

    async def disconnect(self) -> None:
        """Stop the listener and close the connection."""
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception(f"Redis listener on {self._url} had failed")
            self._listener = None

        try:
            if self._pubsub is not None:
                await self._pubsub.aclose()
        finally:
            self._pubsub = None
            if self._client is not None:
                await self._client.aclose()
                self._client = None
                logger.debug(f"Disconnected from Redis at {self._url}")

    async def publish(self, channel: str, payload: str) -> int:
        """Publish ``payload`` on ``channel`` and return the receiver count."""
        if self._client is None:
            raise ConnectionError("Not connected to Redis")

        try:
            receivers = await self._client.publish(channel, payload)
        except RedisError as e:
            logger.error(f"Failed to publish to {channel!r}: {e}")
            raise PublishError(f"Failed to publish to {channel!r}: {e}") from e

        logger.trace(f"Published to {channel!r} ({receivers} receivers)")
        return receivers

    async def subscribe(self, *channels: str) -> None:
        """Subscribe to ``channels`` and make sure the listener is running."""
        if self._client is None:
            raise ConnectionError("Not connected to Redis")

        if self._pubsub is None:
            self._pubsub = self._client.pubsub()

        try:
            await self._pubsub.subscribe(*channels)
        except RedisError as e:
            logger.error(f"Failed to subscribe to {channels}: {e}")
            raise SubscriptionError(f"Failed to subscribe to {channels}: {e}") from e

        for channel in channels:
            logger.debug(f"Subscribed to {channel!r}")

        if self._listener is None or self._listener.done():
            self._listener = asyncio.create_task(self._listen(self._pubsub))

    @property
    def is_connected(self) -> bool:
        """Check if a Redis client is open."""
        return self._client is not None

    async def _listen(self, pubsub: aioredis.client.PubSub) -> None:
        """Forward ``message`` entries from the subscription to the handlers."""
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    channel = _as_text(message["channel"])
                    payload = _as_text(message["data"])
                except UnicodeDecodeError as e:
                    logger.warning(f"Dropping message on {message['channel']!r}: payload is not UTF-8 ({e})")
                    continue
                await self._dispatch(channel, payload)
        except RedisError as e:
            logger.error(f"Redis listener on {self._url} stopped: {e}")
        except Exception:
            logger.exception(f"Redis listener on {self._url} stopped")


def _as_text(value: bytes | str) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value
