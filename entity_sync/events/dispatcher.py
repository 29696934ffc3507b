"""Ordered event dispatcher."""

from typing import Any, Callable, Dict, List, Tuple, TypeVar
import inspect
import itertools
import logging

logger = logging.getLogger(__name__)

# Listeners run in descending priority; equal priorities run in registration
# order. Default providers subscribe with PRIORITY_DEFAULTS so that listeners
# running after them can override what they set.
PRIORITY_FIRST = 2000
PRIORITY_DEFAULTS = 1000
PRIORITY_NORMAL = 0
PRIORITY_LAST = -1000

Listener = Callable[[Any], Any]
E = TypeVar("E")


class EventDispatcher:
    """Publishes events to the listeners subscribed to their name."""

    def __init__(self):
        self._listeners: Dict[str, List[Tuple[int, int, Listener]]] = {}
        self._sequence = itertools.count()

    def subscribe(self, event_name: str, listener: Listener, priority: int = PRIORITY_NORMAL) -> None:
        """Subscribe a listener, sync or async, to an event."""
        self._listeners.setdefault(event_name, []).append(
            (priority, next(self._sequence), listener)
        )

    def add_subscriber(self, subscriber: Any) -> None:
        """Subscribe the listeners declared by a subscriber object.

        The subscriber's `subscribed_events()` maps event names to a
        `(method_name, priority)` pair.
        """
        for event_name, (method_name, priority) in subscriber.subscribed_events().items():
            self.subscribe(event_name, getattr(subscriber, method_name), priority)

    def unsubscribe(self, event_name: str, listener: Listener) -> None:
        self._listeners[event_name] = [
            entry for entry in self._listeners.get(event_name, [])
            if entry[2] != listener
        ]

    def listeners(self, event_name: str) -> List[Listener]:
        """Get the listeners of an event in the order they are called."""
        entries = sorted(
            self._listeners.get(event_name, []),
            key=lambda entry: (-entry[0], entry[1]),
        )
        return [entry[2] for entry in entries]

    def has_listeners(self, event_name: str) -> bool:
        return bool(self._listeners.get(event_name))

    async def dispatch(self, event_name: str, event: E) -> E:
        """Call the listeners of an event in order and return the event."""
        for listener in self.listeners(event_name):
            result = listener(event)
            if inspect.isawaitable(result):
                await result
        return event
