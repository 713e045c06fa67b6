"""
Event Bus - publish/subscribe routing for animation events

Animation layers publish load progress and frame changes on it; a shared
controller bus carries playback commands (start, pause, time changes...)
to every registered layer.

Handlers run in priority order (highest first, registration order for
ties). Sync and async handlers are both accepted. A failing handler is
logged and the remaining handlers still run.
"""

import inspect
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional

from models.events import Event, EventType
from utils.logger import LogCategory, get_category_logger

log = get_category_logger(LogCategory.EVENT)

Handler = Callable[[Event], None]
Middleware = Callable[[Event], Optional[Event]]


@dataclass
class Subscription:
    handler: Handler
    priority: int
    filter_fn: Optional[Callable[[Event], bool]]

    def accepts(self, event: Event) -> bool:
        return self.filter_fn is None or self.filter_fn(event)


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", repr(handler))


class EventBus:
    """
    Example:
        bus = EventBus()
        bus.subscribe(EventType.TIME_CHANGED, on_time, priority=10)
        await bus.publish(TimeChangedEvent(1714564800000))
    """

    def __init__(self, history_limit: int = 100):
        self._subscriptions: Dict[EventType, List[Subscription]] = {}
        self._middleware: List[Middleware] = []
        self._history: Deque[Event] = deque(maxlen=history_limit)

    def subscribe(
        self,
        event_type: EventType,
        handler: Handler,
        priority: int = 0,
        filter_fn: Optional[Callable[[Event], bool]] = None
    ) -> None:
        """
        Register handler for event_type.

        Args:
            event_type: Which events to listen for
            handler: Sync or async callable taking the event
            priority: Higher runs first
            filter_fn: Skip events for which it returns False
        """
        entries = self._subscriptions.setdefault(event_type, [])
        entries.append(Subscription(handler, priority, filter_fn))
        entries.sort(key=lambda s: s.priority, reverse=True)

        log.debug(
            "Handler subscribed",
            event_type=event_type.name,
            handler=_handler_name(handler),
            priority=priority
        )

    def unsubscribe(self, event_type: EventType, handler: Handler) -> bool:
        """Remove every registration of handler; True if any was removed."""
        entries = self._subscriptions.get(event_type, [])
        remaining = [s for s in entries if s.handler != handler]
        if len(remaining) == len(entries):
            return False

        if remaining:
            self._subscriptions[event_type] = remaining
        else:
            del self._subscriptions[event_type]

        log.debug("Handler unsubscribed", event_type=event_type.name, handler=_handler_name(handler))
        return True

    def handler_count(self, event_type: EventType) -> int:
        return len(self._subscriptions.get(event_type, []))

    def add_middleware(self, middleware: Middleware) -> None:
        """
        Middleware sees every event before handlers, in registration order.
        It returns the (possibly replaced) event, or None to drop it.
        """
        self._middleware.append(middleware)
        log.debug("Middleware registered", middleware=_handler_name(middleware))

    async def publish(self, event: Event) -> None:
        for middleware in self._middleware:
            event = middleware(event)
            if event is None:
                return

        self._history.append(event)

        # copy: handlers may unsubscribe during dispatch
        subscriptions = list(self._subscriptions.get(event.type, []))
        if not subscriptions:
            log.debug("No handlers for event", event_type=event.type.name, payload=event.payload())
            return

        for subscription in subscriptions:
            if not subscription.accepts(event):
                continue
            try:
                if inspect.iscoroutinefunction(subscription.handler):
                    await subscription.handler(event)
                else:
                    subscription.handler(event)
            except Exception as e:
                log.error(
                    f"Handler {_handler_name(subscription.handler)} failed for {event.type.name}",
                    exception=e
                )

    def get_event_history(self, limit: int = 10) -> List[Event]:
        """Most recent events, oldest first."""
        return list(self._history)[-limit:]

    def clear_history(self) -> None:
        self._history.clear()
