"""Host application model.

Services mounted on an ``Application`` emit events to local listeners; the
relay plugin hooks into registration and setup to share those events with
other processes.
"""

from .application import Application, HostApplication, LegacyApplication
from .emitter import EventEmitter
from .registry import ServiceRegistry
from .service import Service, get_service_events, has_event_capability, infer_service_events

__all__ = [
    "Application",
    "EventEmitter",
    "HostApplication",
    "LegacyApplication",
    "Service",
    "ServiceRegistry",
    "get_service_events",
    "has_event_capability",
    "infer_service_events",
]
