"""
Event Bus - Fan-out of simulation events to subscribers

This module provides:
- Per event type and catch-all subscriptions
- Isolated handler invocation (a failing handler is logged and skipped)
- Scheduling of coroutine handlers on the running event loop
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, Iterable, List, Optional

from geosim.models.events import EventType, SimulationEvent
from geosim.utils.logger import get_logger

EventHandler = Callable[[SimulationEvent], Any]

ALL_EVENTS = "all"


class EventBus:
    """Synchronous publish/subscribe for SimulationEvent"""

    def __init__(self):
        self.logger = get_logger(__name__)
        self.event_handlers: Dict[Any, List[EventHandler]] = {}
        self.events_published = 0
        self.handler_errors = 0
        self._pending_tasks: set = set()

    def subscribe(self, handler: EventHandler,
                  event_types: Optional[Iterable[EventType]] = None) -> Callable[[], None]:
        """Register handler for the given event types (all events when None)"""

        keys = [ALL_EVENTS] if event_types is None else [EventType(t) for t in event_types]

        for key in keys:
            self.event_handlers.setdefault(key, []).append(handler)

        def unsubscribe() -> None:
            for key in keys:
                handlers = self.event_handlers.get(key, [])
                if handler in handlers:
                    handlers.remove(handler)

        return unsubscribe

    def publish(self, event: SimulationEvent) -> None:
        """Deliver event to matching handlers in registration order"""

        self.events_published += 1

        handlers = list(self.event_handlers.get(event.event_type, []))
        handlers.extend(self.event_handlers.get(ALL_EVENTS, []))

        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    self._schedule(result, event)
            except Exception as e:
                self.handler_errors += 1
                self.logger.error(f"Error in {event.event_type.value} handler: {e}")

    def _schedule(self, awaitable: Any, event: SimulationEvent) -> None:
        """Run a coroutine handler on the current loop and log its failure"""

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.warning(
                f"No running event loop for async {event.event_type.value} handler; skipped"
            )
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending_tasks.add(task)

        def _done(finished: asyncio.Future) -> None:
            self._pending_tasks.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                self.handler_errors += 1
                self.logger.error(
                    f"Error in async {event.event_type.value} handler: {finished.exception()}"
                )

        task.add_done_callback(_done)

    def handler_count(self) -> int:
        return sum(len(handlers) for handlers in self.event_handlers.values())
