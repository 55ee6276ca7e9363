"""Subscriber relay.

Subscribes a service's inbound connection to the channel of every declared
event and turns inbound messages back into local events. Messages are
re-emitted through the emit the service had *before* the publisher hook was
installed, so a relayed event is never published again.
"""

import inspect
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from service_sync.broker import Broker
from service_sync.channels import channel_name
from service_sync.codec import EnvelopeCodec, get_default_codec
from service_sync.exceptions import DecodeError

from .publisher import EmitFn


@dataclass(frozen=True)
class SubscriptionRegistration:
    """One subscribed channel and the local event it maps to."""

    channel: str
    event: str


class SubscriberRelay:
    """Relays broker messages into a service's local emit."""

    def __init__(
        self,
        path: str,
        emit: EmitFn,
        events: Iterable[str],
        codec: EnvelopeCodec | None = None,
    ) -> None:
        """Initialize the relay.

        Args:
            path: The service path used to derive channel names
            emit: The service's original emit
            events: Event names the service declares
            codec: Envelope codec, defaults to the shared codec
        """
        self.path = path
        self.codec = codec or get_default_codec()
        self._emit = emit
        self._registrations: dict[str, SubscriptionRegistration] = {}
        for event in events:
            channel = channel_name(path, event)
            self._registrations[channel] = SubscriptionRegistration(channel=channel, event=event)

    @property
    def registrations(self) -> list[SubscriptionRegistration]:
        return list(self._registrations.values())

    @property
    def channels(self) -> list[str]:
        return list(self._registrations)

    async def attach(self, broker: Broker) -> None:
        """Register the message handler on ``broker`` and subscribe to all channels."""
        broker.on_message(self.handle_message)
        for channel in self._registrations:
            logger.debug(f"Subscribing to handler {channel!r}")
        if self._registrations:
            await broker.subscribe(*self._registrations)

    async def handle_message(self, channel: str, payload: str) -> None:
        """Re-emit one inbound message locally.

        Messages on channels this relay did not subscribe to are ignored.
        Undecodable payloads are dropped.
        """
        registration = self._registrations.get(channel)
        if registration is None:
            return

        try:
            data = self.codec.decode(payload)
        except DecodeError as e:
            logger.warning(f"Dropping message on {channel!r}: {e}")
            return

        logger.debug(f"Got event {channel!r}, calling original emit")
        result: Any = self._emit(registration.event, data)
        if inspect.isawaitable(result):
            await result
