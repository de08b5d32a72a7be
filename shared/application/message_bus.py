"""
Message Bus

In-process dispatch of domain events to handlers. Handlers subscribe to an
event class and also receive events of its subclasses, so a handler on
``DomainEvent`` sees everything. Subscriptions are made from
``AppConfig.ready()``.
"""

from typing import Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    def __init__(self):
        self._subscribers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """Subscribe ``handler``; subscribing the same pair twice has no effect."""
        handlers = self._subscribers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def handlers_for(self, event: DomainEvent) -> List[EventHandler]:
        found: List[EventHandler] = []
        for klass in type(event).__mro__:
            for handler in self._subscribers.get(klass, ()):
                if handler not in found:
                    found.append(handler)
        return found

    def publish_events(self, events: Iterable[DomainEvent]):
        """
        Deliver each event to its handlers in subscription order.

        A failing handler is logged and skipped; the caller's transaction
        has already been decided by the time events go out.
        """
        for event in events:
            handlers = self.handlers_for(event)
            if not handlers:
                logger.debug(f"No subscribers for {event.name} ({event.event_id})")
                continue
            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Handler {getattr(handler, '__name__', handler)!s} failed for {event.name} "
                        f"({event.event_id}): {e}",
                        exc_info=True,
                    )


message_bus = MessageBus()
