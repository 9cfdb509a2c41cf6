"""Async event bus for in-process pub/sub.

Publishers emit activity events; subscribers (notifications, audit
views) receive the event types they registered for.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.events.base import Event
from src.events.store import EventStore

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Event)
EventHandler = Callable[[Event], None] | Callable[[Event], Awaitable[None]]


class EventBus:
    """Simple async event bus.

    Handler failures are logged and isolated from other handlers and from
    the publisher. Persistence failures are raised.
    """

    def __init__(self, store: EventStore | None = None):
        """Initialize event bus.

        Args:
            store: Optional EventStore for persistence
        """
        self._subscribers: dict[type[Event], list[EventHandler]] = {}
        self._store = store

    def subscribe(
        self,
        event_type: type[T],
        handler: Callable[[T], None] | Callable[[T], Awaitable[None]],
    ) -> None:
        """Subscribe a handler to an event type."""
        self._subscribers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type.__name__}")

    async def publish(self, event: Event, persist: bool = False) -> None:
        """Publish an event to all subscribers.

        Args:
            event: The event to publish
            persist: Whether to persist event to store (if available)
        """
        handlers = self._subscribers.get(type(event), [])
        logger.debug(f"Publishing {event.event_type} to {len(handlers)} handler(s)")

        if persist and self._store:
            try:
                await self._store.append(event)
            except Exception as e:
                logger.error(f"Failed to persist event: {e}")
                raise

        tasks = []
        for handler in handlers:
            if inspect.iscoroutinefunction(handler):
                tasks.append(handler(event))
            else:
                tasks.append(asyncio.to_thread(handler, event))

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Handler error for {event.event_type}: {result}")

    async def publish_and_store(self, event: Event) -> None:
        """Publish event and persist to store."""
        await self.publish(event, persist=True)

    def subscriber_count(self, event_type: type[Event]) -> int:
        """Get number of subscribers for an event type."""
        return len(self._subscribers.get(event_type, []))
