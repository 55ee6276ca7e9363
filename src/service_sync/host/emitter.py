"""Local event emitter.

This module provides the ``EventEmitter`` each service uses to deliver its
events to in-process listeners. Events are addressed by name and carry an
arbitrary data payload.

## Key Features

- **Sync and Async Listeners**: Coroutine results are awaited concurrently
- **Error Isolation**: Listener failures don't affect other listeners
- **Optional Isolation**: Each listener can receive a deep copy of the data

## Usage

```python
emitter = EventEmitter()

async def notify(data):
    print(f"created: {data}")

emitter.on("created", notify)
results = await emitter.emit_and_wait("created", {"text": "hi"})
```
"""

import asyncio
import copy
import inspect
from collections.abc import Callable
from typing import Any

from loguru import logger

Listener = Callable[[Any], Any]


class EventEmitter:
    """Name-keyed listener registry with concurrent delivery."""

    def __init__(self, isolate_events: bool = False) -> None:
        """Initialize a new EventEmitter instance.

        Args:
            isolate_events: If True, each listener receives a deep copy of the data.
                           Can be overridden per emit call. Default is False.
        """
        self._listeners: dict[str, list[Listener]] = {}
        self._isolate_events = isolate_events

    def on(self, event: str, listener: Listener) -> None:
        """Register a listener for an event name.

        Raises:
            TypeError: If listener is not callable
        """
        if not callable(listener):
            raise TypeError(f"Listener must be callable: {listener}")

        self._listeners.setdefault(event, []).append(listener)
        logger.trace(f"Registered listener for {event!r}: {listener}")

    def remove_listener(self, event: str, listener: Listener) -> bool:
        """Remove a specific listener for an event name."""
        if event in self._listeners:
            try:
                self._listeners[event].remove(listener)
                return True
            except ValueError:
                pass
        return False

    def clear_listeners(self, event: str | None = None) -> None:
        """Clear listeners for a specific event name or all events."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        """Get the number of listeners registered for an event name."""
        return len(self._listeners.get(event, []))

    def event_names(self) -> list[str]:
        """Get all event names that have registered listeners."""
        return [name for name, listeners in self._listeners.items() if listeners]

    async def emit_and_wait(self, event: str, data: Any = None, isolate: bool | None = None) -> list[Any]:
        """Deliver an event to all listeners and wait for them to complete.

        Args:
            event: The event name
            data: The event payload
            isolate: If True, each listener receives a deep copy of the data.
                    If None (default), uses the emitter-level setting.

        Returns:
            List of results from all listeners (including exceptions)
        """
        listeners = list(self._listeners.get(event, []))

        if not listeners:
            logger.trace(f"No listeners registered for {event!r}")
            return []

        should_isolate = isolate if isolate is not None else self._isolate_events

        tasks = [
            self._execute_listener(listener, copy.deepcopy(data) if should_isolate else data)
            for listener in listeners
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        failed = sum(1 for r in results if isinstance(r, Exception))
        if failed > 0:
            logger.warning(f"Event {event!r}: {len(results) - failed} successful, {failed} failed listeners")

        return results

    async def _execute_listener(self, listener: Listener, data: Any) -> Any:
        """Call a single listener, awaiting coroutine results."""
        try:
            result = listener(data)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            logger.error(f"Listener {listener} failed: {e}")
            return e
