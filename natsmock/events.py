"""Minimal event emitter for connection lifecycle notifications."""

import asyncio
from collections import defaultdict
from typing import Any, Callable


class EventEmitter:
    """Listener registry keyed by event name.

    Listeners run synchronously, in registration order, inside ``emit``.
    """

    def __init__(self):
        self._listeners: dict[str, list[Callable]] = defaultdict(list)

    def on(self, event: str, listener: Callable) -> Callable:
        self._listeners[event].append(listener)
        return listener

    def once(self, event: str, listener: Callable) -> Callable:
        def wrapper(*args):
            self.remove_listener(event, wrapper)
            listener(*args)

        wrapper.listener = listener
        self._listeners[event].append(wrapper)
        return wrapper

    def remove_listener(self, event: str, listener: Callable):
        """Remove ``listener``, whether added with :meth:`on` or :meth:`once`."""
        listeners = self._listeners.get(event, [])
        for index, registered in enumerate(listeners):
            if registered == listener or getattr(registered, "listener", None) == listener:
                del listeners[index]
                return

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener for ``event``. Returns False if there were none."""
        listeners = list(self._listeners.get(event, []))
        for listener in listeners:
            listener(*args)
        return bool(listeners)

    def wait_for(self, event: str) -> asyncio.Future:
        """Return a future resolved with the arguments of the next ``event``."""
        future = asyncio.get_running_loop().create_future()

        def resolve(*args):
            if not future.done():
                future.set_result(args[0] if len(args) == 1 else (args or None))

        self.once(event, resolve)
        return future
