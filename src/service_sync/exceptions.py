"""Exception hierarchy for service event synchronisation.

All errors raised by this package derive from ``SyncError`` so callers can
catch them in one place:

```python
try:
    payload = encode(data)
except SyncError as e:
    logger.error(f"Sync error: {e}")
```

Broker errors live in ``service_sync.broker.base`` and share the same root.
"""


class SyncError(Exception):
    """Base exception for all service sync related errors."""


class SerializationError(SyncError):
    """Raised when an event payload cannot be converted to wire text.

    This occurs when the decycled tree still holds values that carry
    non-serializable native state (open files, sockets, locks, ...).
    """


class DecodeError(SyncError):
    """Raised when an inbound payload is not valid JSON text."""

    def __init__(self, message: str, payload: str | bytes | None = None):
        self.payload = payload
        super().__init__(message)


class CapabilityMissing(SyncError):
    """Raised when a target lacks the ``emit``/``on`` capability.

    The bootstrap treats a missing capability as a no-op and never raises
    this itself; it is offered for callers that want to enforce the check.
    """


class ChannelNameError(SyncError, ValueError):
    """Raised when an event name cannot be mapped to an unambiguous channel."""


class AttachmentError(SyncError):
    """Raised when the host application offers no way to attach to services."""
