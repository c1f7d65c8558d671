from collections import defaultdict
from typing import Callable, List, Type, Dict, Any
from .events import Event

Handler = Callable[[Any], None]


class MessageBus:
    """
    A simple in-memory message bus for dispatching events to subscribers.
    """

    def __init__(self):
        self._subscribers: Dict[Type[Event], List[Handler]] = defaultdict(list)
        self._wildcard_subscribers: List[Handler] = []

    def subscribe(self, event_type: Type[Event], handler: Handler):
        """Register a handler for a specific event type, or for every event via `Event`."""
        if event_type is Event:
            self._wildcard_subscribers.append(handler)
        else:
            self._subscribers[event_type].append(handler)

    def publish(self, event: Event):
        """Dispatch an event to all relevant subscribers."""
        # Exact type first, then anything subscribed to a base class of it
        for event_type in type(event).__mro__:
            if event_type is Event:
                break
            for handler in self._subscribers.get(event_type, []):
                handler(event)

        for handler in self._wildcard_subscribers:
            handler(event)
