"""Publisher hook.

Replaces a service's ``emit`` with one that serializes the event data and
publishes it on the service's channel for that event. The replaced emit does
not deliver locally; local listeners are reached through the subscriber
relay once the broker delivers the message back.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from service_sync.broker import Broker
from service_sync.channels import channel_name
from service_sync.codec import EnvelopeCodec, get_default_codec
from service_sync.host.service import has_event_capability

EmitFn = Callable[..., Any]


@dataclass(frozen=True)
class EmitHook:
    """The emit a service had before the hook and the one replacing it."""

    original: EmitFn
    wrapped: Callable[[str, Any], Awaitable[int]]


class PublisherHook:
    """Installs the publishing emit on one service."""

    def __init__(self, path: str, broker: Broker, codec: EnvelopeCodec | None = None) -> None:
        """Initialize the hook.

        Args:
            path: The service path used to derive channel names
            broker: The service's publish connection
            codec: Envelope codec, defaults to the shared codec
        """
        self.path = path
        self.broker = broker
        self.codec = codec or get_default_codec()

    async def publish(self, event: str, data: Any = None) -> int:
        """Serialize ``data`` and publish it on the channel of ``event``.

        Returns:
            Whatever the broker's publish returns (receiver count)

        Raises:
            SerializationError: If ``data`` cannot be serialized
        """
        channel = channel_name(self.path, event)
        payload = self.codec.encode(data)
        logger.debug(f"Emitting event to channel {channel!r}")
        return await self.broker.publish(channel, payload)

    def install(self, service: Any) -> EmitHook | None:
        """Replace ``service.emit`` with ``publish``.

        Returns:
            The installed hook, or None if the service lacks emit/on
        """
        if not has_event_capability(service):
            logger.debug(f"Service {self.path!r} has no emit/on capability, not hooking emit")
            return None

        hook = EmitHook(original=service.emit, wrapped=self.publish)
        service.mixin(emit=hook.wrapped)
        return hook
