"""Small synchronous publish/subscribe bus.

Listeners are registered per event name. A name ending in ``*`` subscribes
to every event starting with the text before it; such wildcard listeners
are called with ``(event, data)`` instead of just ``data``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class EventEmitter:
    def __init__(self) -> None:
        # dicts keep registration order and give set-like uniqueness
        self._listeners: dict[str, dict[Listener, None]] = {}

    def on(self, event: str, callback: Listener) -> Callable[[], None]:
        """Subscribe ``callback``. Returns a function that unsubscribes it."""
        self._listeners.setdefault(event, {})[callback] = None
        return lambda: self.off(event, callback)

    def off(self, event: str, callback: Listener) -> None:
        listeners = self._listeners.get(event)
        if listeners is not None:
            listeners.pop(callback, None)

    def once(self, event: str, callback: Listener) -> Callable[[], None]:
        def wrapper(*args: Any) -> Any:
            self.off(event, wrapper)
            return callback(*args)

        return self.on(event, wrapper)

    def emit(self, event: str, data: Any = None) -> None:
        """Deliver to exact then wildcard listeners.

        Every listener runs; if any raised, the first exception is re-raised
        once delivery is complete.
        """
        errors: list[Exception] = []

        for callback in list(self._listeners.get(event, ())):
            self._deliver(event, callback, (data,), errors)

        for pattern, callbacks in list(self._listeners.items()):
            if pattern.endswith("*") and event.startswith(pattern[:-1]):
                for callback in list(callbacks):
                    self._deliver(event, callback, (event, data), errors)

        if errors:
            raise errors[0]

    def remove_all_listeners(self, event: str | None = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    @staticmethod
    def _deliver(
        event: str, callback: Listener, args: tuple[Any, ...], errors: list[Exception]
    ) -> None:
        try:
            callback(*args)
        except Exception as exc:
            logger.error("Listener %r for %r failed: %s", callback, event, exc)
            errors.append(exc)
