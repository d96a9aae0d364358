"""
Single owner of the catalog UI state.

All changes, whether they come from the store streams, from background
refreshes or from client intents, are queued as tagged events and applied one
at a time by a single consumer task. Readers get immutable snapshots.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Callable, List, Optional, Set, Tuple

from peripheral_catalog.catalog.comparison import ComparisonTable, build_comparison
from peripheral_catalog.catalog.filters import FeatureFlag
from peripheral_catalog.catalog.service import CatalogService
from peripheral_catalog.catalog.state import (
    BrandSelected,
    CatalogEvent,
    CatalogUiState,
    CategoriesLoaded,
    CategorySelected,
    ComparisonCleared,
    ComparisonRemoved,
    ComparisonToggled,
    FavoritesChanged,
    FeatureToggled,
    FiltersCleared,
    HistoryChanged,
    PeripheralsChanged,
    PriceRangeChanged,
    RefreshFailed,
    RefreshStarted,
    RefreshSucceeded,
    SearchTermChanged,
    reduce_state,
)
from peripheral_catalog.error_handler import ErrorHandler
from peripheral_catalog.integrations.contracts import HistoryEntry, Peripheral

logger = logging.getLogger(__name__)

_QueueItem = Tuple[CatalogEvent, Optional["asyncio.Future[CatalogUiState]"]]


class CatalogStateHolder:
    def __init__(self, service: CatalogService, error_handler: Optional[ErrorHandler] = None):
        self.service = service
        self.error_handler = error_handler or ErrorHandler()
        self._state = CatalogUiState(is_loading=True)
        self._events: Optional["asyncio.Queue[_QueueItem]"] = None
        self._changed: Optional[asyncio.Condition] = None
        self._tasks: List[asyncio.Task] = []
        self._background: Set[asyncio.Task] = set()

    @property
    def state(self) -> CatalogUiState:
        return self._state

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    async def start(self, refresh: bool = True) -> None:
        """Start consuming events and subscribe to the store streams."""
        if self.is_running:
            return
        self._events = asyncio.Queue()
        self._changed = asyncio.Condition()
        self._tasks = [
            asyncio.create_task(self._consume(), name="catalog-state"),
            asyncio.create_task(
                self._pump(self.service.observe_peripherals(), PeripheralsChanged), name="catalog-peripherals"
            ),
            asyncio.create_task(
                self._pump(self.service.observe_favorites(), FavoritesChanged), name="catalog-favorites"
            ),
            asyncio.create_task(
                self._pump(self.service.observe_history(), HistoryChanged), name="catalog-history"
            ),
        ]
        if refresh:
            self.refresh()
            self.load_categories()

    async def stop(self) -> None:
        tasks = self._tasks + list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []
        self._background.clear()

    # ------------------------------------------------------------------ #
    # Event entry points
    # ------------------------------------------------------------------ #
    def _queue(self) -> "asyncio.Queue[_QueueItem]":
        if self._events is None:
            raise RuntimeError("CatalogStateHolder is not running; call start() first")
        return self._events

    def dispatch(self, event: CatalogEvent) -> None:
        """Queue an event without waiting for it to be applied."""
        self._queue().put_nowait((event, None))

    async def send(self, event: CatalogEvent) -> CatalogUiState:
        """Queue an event and return the snapshot produced by it."""
        future = asyncio.get_running_loop().create_future()
        self._queue().put_nowait((event, future))
        return await future

    async def _consume(self) -> None:
        queue = self._queue()
        while True:
            event, future = await queue.get()
            try:
                self._state = reduce_state(self._state, event)
            except Exception as exc:
                logger.exception("Failed to apply %s", type(event).__name__)
                if future is not None and not future.done():
                    future.set_exception(exc)
            else:
                if future is not None and not future.done():
                    future.set_result(self._state)
                async with self._changed:
                    self._changed.notify_all()
            finally:
                queue.task_done()

    async def _pump(self, stream: AsyncIterator, make_event: Callable) -> None:
        try:
            async for items in stream:
                self.dispatch(make_event(tuple(items)))
        except Exception:
            logger.exception("Catalog stream for %s stopped", make_event.__name__)
            raise

    # ------------------------------------------------------------------ #
    # Observation
    # ------------------------------------------------------------------ #
    async def subscribe(self) -> AsyncIterator[CatalogUiState]:
        """Yield the current snapshot, then each newer one (intermediate ones may be skipped)."""
        last = self._state
        yield last
        while True:
            async with self._changed:
                await self._changed.wait_for(lambda: self._state is not last)
                last = self._state
            yield last

    async def wait_for(self, predicate: Callable[[CatalogUiState], bool], timeout: float = 5.0) -> CatalogUiState:
        async def _wait() -> CatalogUiState:
            async with self._changed:
                await self._changed.wait_for(lambda: predicate(self._state))
                return self._state

        return await asyncio.wait_for(_wait(), timeout)

    async def settle(self) -> None:
        """Wait until every queued event has been applied."""
        await self._queue().join()

    async def wait_until_synced(self, timeout: float = 5.0) -> CatalogUiState:
        """Wait for queued events, then for the snapshot to show the current store contents."""
        await self.settle()
        peripherals = tuple(self.service.get_peripherals())
        return await self.wait_for(lambda s: s.all_peripherals == peripherals, timeout)

    # ------------------------------------------------------------------ #
    # Background work
    # ------------------------------------------------------------------ #
    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background catalog task failed", exc_info=task.exception())

    def refresh(self, category: Optional[str] = None) -> asyncio.Task:
        """Start a refresh in the background; the outcome arrives as state."""
        return self._spawn(self._refresh(category))

    async def _refresh(self, category: Optional[str]) -> None:
        self.dispatch(RefreshStarted())
        try:
            result = await self.service.refresh(category)
        except Exception as exc:
            self.error_handler.handle_exception(exc, context={"operation": "refresh", "category": category})
            self.dispatch(RefreshFailed(self.error_handler.describe(exc)))
        else:
            self.dispatch(RefreshSucceeded(result.last_updated))

    def load_categories(self) -> asyncio.Task:
        return self._spawn(self._load_categories())

    async def _load_categories(self) -> None:
        categories = await self.service.fetch_categories()
        self.dispatch(CategoriesLoaded(tuple(categories)))

    # ------------------------------------------------------------------ #
    # Filter intents
    # ------------------------------------------------------------------ #
    async def set_search_term(self, term: str) -> CatalogUiState:
        return await self.send(SearchTermChanged(term))

    async def select_category(self, category: Optional[str]) -> CatalogUiState:
        return await self.send(CategorySelected(category))

    async def select_brand(self, brand: Optional[str]) -> CatalogUiState:
        return await self.send(BrandSelected(brand))

    async def update_price_range(self, low: float, high: float) -> CatalogUiState:
        return await self.send(PriceRangeChanged(low, high))

    async def toggle_feature(self, flag: FeatureFlag) -> CatalogUiState:
        return await self.send(FeatureToggled(flag))

    async def toggle_wireless(self) -> CatalogUiState:
        return await self.toggle_feature(FeatureFlag.WIRELESS)

    async def toggle_rgb(self) -> CatalogUiState:
        return await self.toggle_feature(FeatureFlag.RGB)

    async def toggle_mechanical(self) -> CatalogUiState:
        return await self.toggle_feature(FeatureFlag.MECHANICAL)

    async def clear_filters(self) -> CatalogUiState:
        return await self.send(FiltersCleared())

    # ------------------------------------------------------------------ #
    # Comparison
    # ------------------------------------------------------------------ #
    async def toggle_comparison(self, peripheral_id: str) -> CatalogUiState:
        return await self.send(ComparisonToggled(peripheral_id))

    async def remove_from_comparison(self, peripheral_id: str) -> CatalogUiState:
        return await self.send(ComparisonRemoved(peripheral_id))

    async def clear_comparison(self) -> CatalogUiState:
        return await self.send(ComparisonCleared())

    def comparison_peripherals(self) -> List[Peripheral]:
        return self.service.get_peripherals_by_ids(self._state.comparison_selection)

    def comparison_table(self) -> ComparisonTable:
        return build_comparison(self.comparison_peripherals())

    # ------------------------------------------------------------------ #
    # Store-backed actions (results arrive through the streams)
    # ------------------------------------------------------------------ #
    def toggle_favorite(self, peripheral_id: str) -> Optional[bool]:
        return self.service.toggle_favorite(peripheral_id)

    def set_favorite(self, peripheral_id: str, is_favorite: bool) -> bool:
        return self.service.set_favorite(peripheral_id, is_favorite)

    def record_view(self, peripheral_id: str) -> HistoryEntry:
        return self.service.record_view(peripheral_id)

    def delete_history_entry(self, peripheral_id: str) -> None:
        self.service.delete_history_entry(peripheral_id)

    def clear_history(self) -> None:
        self.service.clear_history()

    async def get_peripheral(self, peripheral_id: str) -> Optional[Peripheral]:
        return await self.service.get_peripheral_once(peripheral_id)
