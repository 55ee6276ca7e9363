"""Attachment and bootstrap of the event relay.

``ServiceSync`` is an application plugin. Once configured on an application
it gives every evented service its own publish and subscribe broker
connections, subscribes to the channels of the service's events and
replaces the service's emit with one that publishes.

```python
app = Application()
app.configure(sync(db="redis://localhost:6379/0"))
app.use("messages", MessageService())
await app.setup()

await app.service("messages").emit("created", {"text": "hi"})
# every process with a "messages" service now sees "created"
```
"""

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from service_sync.attach import AttachmentStrategy, select_strategy
from service_sync.broker import Broker, BrokerFactory, create_broker
from service_sync.channels import validate_event_name
from service_sync.codec import EnvelopeCodec, get_default_codec
from service_sync.exceptions import AttachmentError
from service_sync.host.service import get_service_events, has_event_capability
from service_sync.relay import EmitHook, PublisherHook, SubscriberRelay
from service_sync.settings import Settings, get_settings

ConnectCallback = Callable[[], Any]


@dataclass
class ServiceBinding:
    """Relay state owned by one service for its lifetime."""

    path: str
    service: Any
    publisher: Broker
    subscriber: Broker
    events: list[str] = field(default_factory=list)
    relay: SubscriberRelay | None = None
    hook: EmitHook | None = None
    connect_handle: asyncio.TimerHandle | None = None

    @property
    def started(self) -> bool:
        return self.relay is not None


class ServiceSync:
    """Application plugin relaying service events through a broker."""

    def __init__(
        self,
        settings: Settings | None = None,
        connect: ConnectCallback | None = None,
        broker_factory: BrokerFactory | None = None,
        strategy: AttachmentStrategy | None = None,
        codec: EnvelopeCodec | None = None,
    ) -> None:
        """Initialize the plugin.

        Args:
            settings: Broker and bootstrap settings, defaults to ``get_settings()``
            connect: Optional callback invoked shortly after each service is hooked
            broker_factory: Creates one broker connection from settings
            strategy: Attachment strategy, detected from the app when omitted
            codec: Envelope codec shared by all services
        """
        self.settings = settings or get_settings()
        self.codec = codec or get_default_codec()
        self._connect = connect
        self._broker_factory = broker_factory or create_broker
        self._strategy = strategy
        self._bindings: dict[str, ServiceBinding] = {}
        self._connect_tasks: set[asyncio.Future] = set()
        logger.debug(f"Setting up {self.settings.backend} broker {self.settings.db}")

    @property
    def bindings(self) -> dict[str, ServiceBinding]:
        return dict(self._bindings)

    def __call__(self, app: Any) -> None:
        """Attach to ``app``: hook service registration and wrap setup/teardown."""
        if not callable(getattr(app, "setup", None)):
            raise AttachmentError(f"{type(app).__name__} has no setup hook")

        strategy = self._strategy or select_strategy(app)
        strategy.install(app, self.configure_service)
        self._wrap_lifecycle(app)

    def configure_service(self, service: Any, path: str) -> ServiceBinding | None:
        """Create the broker connections for a newly registered service.

        Services without ``emit``/``on`` are left untouched.

        Raises:
            ChannelNameError: If a declared event name contains the channel separator
        """
        if not has_event_capability(service):
            logger.debug(f"Skipping service {path!r}: no emit/on capability")
            return None

        if path in self._bindings:
            return self._bindings[path]

        events = [validate_event_name(event) for event in get_service_events(service)]
        binding = ServiceBinding(
            path=path,
            service=service,
            publisher=self._broker_factory(self.settings),
            subscriber=self._broker_factory(self.settings),
            events=events,
        )
        self._bindings[path] = binding
        logger.debug(f"Configured service {path!r} with events {events}")
        return binding

    async def start(self) -> None:
        """Subscribe and hook every configured service that is not started yet."""
        for binding in list(self._bindings.values()):
            if not binding.started:
                await self._start_binding(binding)

    async def close(self) -> None:
        """Cancel pending connect callbacks and release all broker connections.

        A connection that fails to disconnect is logged and does not keep the
        others open.
        """
        for binding in self._bindings.values():
            if binding.connect_handle is not None:
                binding.connect_handle.cancel()
                binding.connect_handle = None
            for broker in (binding.publisher, binding.subscriber):
                try:
                    await broker.disconnect()
                except Exception:
                    logger.exception(f"Failed to disconnect {broker.name} of service {binding.path!r}")
        logger.debug(f"Closed broker connections of {len(self._bindings)} services")

    async def _start_binding(self, binding: ServiceBinding) -> None:
        await binding.publisher.connect()
        await binding.subscriber.connect()

        # Subscriptions first so the earliest publish has a listener
        relay = SubscriberRelay(binding.path, binding.service.emit, binding.events, self.codec)
        await relay.attach(binding.subscriber)
        binding.relay = relay

        binding.hook = PublisherHook(binding.path, binding.publisher, self.codec).install(binding.service)

        if callable(self._connect):
            loop = asyncio.get_running_loop()
            binding.connect_handle = loop.call_later(self.settings.connect_delay, self._fire_connect)

    def _fire_connect(self) -> None:
        result = self._connect()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._connect_tasks.add(task)
            task.add_done_callback(self._connect_tasks.discard)

    def _wrap_lifecycle(self, app: Any) -> None:
        old_setup = app.setup

        async def setup(*args: Any, **kwargs: Any) -> Any:
            result = old_setup(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            await self.start()
            return result

        app.setup = setup

        old_teardown = getattr(app, "teardown", None)
        if callable(old_teardown):

            async def teardown(*args: Any, **kwargs: Any) -> Any:
                try:
                    await self.close()
                finally:
                    result = old_teardown(*args, **kwargs)
                    if inspect.isawaitable(result):
                        result = await result
                return result

            app.teardown = teardown


def sync(
    settings: Settings | None = None,
    *,
    db: str | None = None,
    backend: str | None = None,
    connect: ConnectCallback | None = None,
    broker_factory: BrokerFactory | None = None,
    strategy: AttachmentStrategy | None = None,
) -> ServiceSync:
    """Create the relay plugin.

    Args:
        settings: Base settings, defaults to ``get_settings()``
        db: Broker address override
        backend: Broker backend override (``redis`` or ``memory``)
        connect: Callback invoked shortly after each service is hooked
        broker_factory: Custom broker connection factory
        strategy: Explicit attachment strategy

    Returns:
        The plugin, to be passed to ``app.configure``

    Raises:
        ValidationError: If an override is not a valid setting value
    """
    settings = settings or get_settings()

    overrides: dict[str, Any] = {}
    if db is not None:
        overrides["db"] = db
    if backend is not None:
        overrides["backend"] = backend
    if overrides:
        settings = settings.with_overrides(**overrides)

    return ServiceSync(settings, connect=connect, broker_factory=broker_factory, strategy=strategy)
