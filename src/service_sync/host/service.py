"""Evented services.

A service is a named component that emits events (``created``, ``updated``,
...) to listeners registered with ``on``. The relay only needs three
capabilities from it: ``emit``, ``on`` and ``mixin``, plus the list of event
names it may emit.
"""

from collections.abc import Sequence
from typing import Any, ClassVar

from .emitter import EventEmitter, Listener

# Standard method -> event mapping
STANDARD_EVENTS: tuple[tuple[str, str], ...] = (
    ("create", "created"),
    ("update", "updated"),
    ("patch", "patched"),
    ("remove", "removed"),
)


def has_event_capability(target: Any) -> bool:
    """Return True if ``target`` exposes callable ``emit`` and ``on``."""
    return callable(getattr(target, "emit", None)) and callable(getattr(target, "on", None))


def infer_service_events(service: Any) -> list[str]:
    """Infer the events a service emits from its type.

    Standard events are included when the service implements the matching
    method; custom events come from an ``events`` attribute.
    """
    events = [event for method, event in STANDARD_EVENTS if callable(getattr(service, method, None))]
    for event in getattr(service, "events", ()) or ():
        if event not in events:
            events.append(event)
    return events


def get_service_events(service: Any) -> list[str]:
    """Return the declared events of ``service``, inferring them if undeclared."""
    declared = getattr(service, "service_events", None)
    if declared is None:
        return infer_service_events(service)
    return list(declared)


class Service:
    """Base class for services that emit events.

    Subclasses declare custom events in ``events`` and implement any of the
    standard methods (``create``, ``update``, ``patch``, ``remove``) to emit
    the corresponding standard event.

    Example:
        ```python
        class MessageService(Service):
            events = ("typing",)

            async def create(self, data):
                await self.emit("created", data)
                return data
        ```
    """

    events: ClassVar[Sequence[str]] = ()

    def __init__(self, events: Sequence[str] | None = None) -> None:
        self._emitter = EventEmitter()
        self.service_events: list[str] = list(events) if events is not None else infer_service_events(self)

    async def emit(self, event: str, data: Any = None) -> list[Any]:
        """Deliver an event to this service's local listeners."""
        return await self._emitter.emit_and_wait(event, data)

    def on(self, event: str, listener: Listener) -> "Service":
        """Register a local listener for an event."""
        self._emitter.on(event, listener)
        return self

    def remove_listener(self, event: str, listener: Listener) -> bool:
        return self._emitter.remove_listener(event, listener)

    def listener_count(self, event: str) -> int:
        return self._emitter.listener_count(event)

    def mixin(self, **methods: Any) -> "Service":
        """Attach methods to this instance, shadowing those of the class."""
        for name, method in methods.items():
            setattr(self, name, method)
        return self

    def setup(self, app: Any, path: str) -> Any:
        """Lifecycle hook called once by the application's ``setup``."""
        return None
