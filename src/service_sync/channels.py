"""Channel naming for service events.

Publishers and subscribers on every process derive the same broker channel
from a service path and an event name, e.g. ``"messages created"``.
"""

from service_sync.exceptions import ChannelNameError

CHANNEL_SEPARATOR = " "


def channel_name(service_id: str, event: str) -> str:
    """Return the broker channel for ``event`` emitted by ``service_id``."""
    return f"{service_id}{CHANNEL_SEPARATOR}{event}"


def validate_event_name(event: str) -> str:
    """Check that ``event`` can be the last segment of a channel name.

    Event names may not contain the separator, so the event is always the
    text after the last separator and two distinct pairs never collide.

    Raises:
        ChannelNameError: If the name is empty or contains the separator
    """
    if not event:
        raise ChannelNameError("Event name must not be empty")
    if CHANNEL_SEPARATOR in event:
        raise ChannelNameError(f"Event name must not contain {CHANNEL_SEPARATOR!r}: {event!r}")
    return event


def split_channel_name(channel: str) -> tuple[str, str]:
    """Split a channel back into ``(service_id, event)``.

    Raises:
        ChannelNameError: If the channel has no separator
    """
    service_id, sep, event = channel.rpartition(CHANNEL_SEPARATOR)
    if not sep:
        raise ChannelNameError(f"Not a service channel: {channel!r}")
    return service_id, event


__all__ = ["CHANNEL_SEPARATOR", "channel_name", "split_channel_name", "validate_event_name"]
