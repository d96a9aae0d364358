"""
Change notification for the catalog stores.

Every store mutation calls ``notify()``; each live ``watch()`` re-runs its
query and yields the fresh result. Wake-ups are coalesced, so a burst of
writes produces at most one pending re-query per subscriber.
"""

from __future__ import annotations

import asyncio
import threading
from typing import AsyncIterator, Callable, List, Optional, Tuple, TypeVar

from peripheral_catalog.integrations.contracts import (
    HistoryEntry,
    Peripheral,
)

T = TypeVar("T")

_Subscriber = Tuple[asyncio.AbstractEventLoop, "asyncio.Queue[None]"]


class ChangeNotifier:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: List[_Subscriber] = []

    def subscribe(self) -> _Subscriber:
        subscriber = (asyncio.get_running_loop(), asyncio.Queue(maxsize=1))
        with self._lock:
            self._subscribers.append(subscriber)
        return subscriber

    def unsubscribe(self, subscriber: _Subscriber) -> None:
        with self._lock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    def notify(self) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for loop, queue in subscribers:
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(_signal, queue)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


def _signal(queue: "asyncio.Queue[None]") -> None:
    if queue.empty():
        queue.put_nowait(None)


class ObservableStore:
    """Reactive queries shared by the in-memory and SQL stores.

    Subclasses implement the point reads and call ``self._changes.notify()``
    after every write.
    """

    _changes: ChangeNotifier

    async def watch(self, query: Callable[[], T]) -> AsyncIterator[T]:
        subscriber = self._changes.subscribe()
        try:
            yield query()
            _, queue = subscriber
            while True:
                await queue.get()
                yield query()
        finally:
            self._changes.unsubscribe(subscriber)

    def observe_peripherals(self) -> AsyncIterator[List[Peripheral]]:
        return self.watch(self.get_peripherals)

    def observe_peripheral(self, peripheral_id: str) -> AsyncIterator[Optional[Peripheral]]:
        return self.watch(lambda: self.get_peripheral(peripheral_id))

    def observe_favorites(self) -> AsyncIterator[List[Peripheral]]:
        return self.watch(self.get_favorites)

    def observe_history(self) -> AsyncIterator[List[HistoryEntry]]:
        return self.watch(self.get_history)

    # Point reads provided by the concrete stores.
    def get_peripherals(self) -> List[Peripheral]:
        raise NotImplementedError

    def get_peripheral(self, peripheral_id: str) -> Optional[Peripheral]:
        raise NotImplementedError

    def get_favorites(self) -> List[Peripheral]:
        raise NotImplementedError

    def get_history(self) -> List[HistoryEntry]:
        raise NotImplementedError
