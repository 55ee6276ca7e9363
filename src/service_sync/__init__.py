"""Relay service events between application processes over a pub/sub broker.

Each process mounts services that emit events such as ``created`` or
``removed``. With the ``sync`` plugin configured, every emit is published on
the channel ``"{service path} {event}"`` and every process hosting a service
on the same path re-emits it to its local listeners.

## Quick Start

```python
from service_sync import Application, Service, sync

class MessageService(Service):
    async def create(self, data):
        await self.emit("created", data)
        return data

app = Application()
app.configure(sync(db="redis://localhost:6379/0"))
app.use("messages", MessageService())
await app.setup()

app.service("messages").on("created", print)
await app.service("messages").create({"text": "hi"})
```

## Data Flow

local emit -> publisher hook -> envelope codec -> broker channel ->
subscriber relay (any process) -> original emit -> local listeners
"""

from .channels import channel_name
from .codec import EnvelopeCodec, decode, decycle, encode
from .exceptions import (
    AttachmentError,
    CapabilityMissing,
    ChannelNameError,
    DecodeError,
    SerializationError,
    SyncError,
)
from .host import Application, LegacyApplication, Service
from .plugin import ServiceBinding, ServiceSync, sync
from .settings import Settings, get_settings

__version__ = "0.1.0"

__all__ = [
    "Application",
    "AttachmentError",
    "CapabilityMissing",
    "ChannelNameError",
    "DecodeError",
    "EnvelopeCodec",
    "LegacyApplication",
    "SerializationError",
    "Service",
    "ServiceBinding",
    "ServiceSync",
    "Settings",
    "SyncError",
    "channel_name",
    "decode",
    "decycle",
    "encode",
    "get_settings",
    "sync",
]
