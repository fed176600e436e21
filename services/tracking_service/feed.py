"""
In-process publish/subscribe for location updates, keyed by order id.

Subscribers of one order see updates in insertion order because appends for
that order hold the order's lock through commit and publish. Nothing is
guaranteed across different orders, and nothing is replayed: a tracking
view must read the history itself (see TrackingService.list_location_updates).
"""
import asyncio
import inspect
import weakref
from typing import Any, Awaitable, Callable, Dict, List, Union

import structlog

logger = structlog.get_logger(__name__)

Callback = Callable[[Any], Union[None, Awaitable[None]]]


class LocationFeed:
    def __init__(self):
        self.rooms: Dict[str, List[Callback]] = {}
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def subscribe(self, order_id: str, callback: Callback) -> Callable[[], None]:
        """Register callback for new updates of order_id; returns the unsubscribe function."""
        self.rooms.setdefault(order_id, []).append(callback)

        def unsubscribe():
            self._remove(order_id, callback)

        return unsubscribe

    def _remove(self, order_id: str, callback: Callback):
        callbacks = self.rooms.get(order_id)
        if not callbacks:
            return
        if callback in callbacks:
            callbacks.remove(callback)
        if not callbacks:
            self.rooms.pop(order_id, None)

    def subscriber_count(self, order_id: str) -> int:
        return len(self.rooms.get(order_id, ()))

    def lock(self, order_id: str) -> asyncio.Lock:
        lock = self._locks.get(order_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[order_id] = lock
        return lock

    async def publish(self, order_id: str, update: Any):
        for callback in list(self.rooms.get(order_id, ())):
            try:
                result = callback(update)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning("location_subscriber_dropped", order_id=order_id, error=str(e))
                self._remove(order_id, callback)

    def clear(self):
        self.rooms.clear()
        self._locks.clear()


location_feed = LocationFeed()
