"""
Catalog service: keeps the local store in sync with the peripheral source and
exposes the reactive reads the state holder consumes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Iterable, List, Optional

from peripheral_catalog.catalog.filters import distinct_sorted
from peripheral_catalog.error_handler import SourceUnavailableError
from peripheral_catalog.integrations.contracts import (
    HistoryEntry,
    Peripheral,
    PeripheralHistoryItem,
    PeripheralSource,
)

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class SyncResult:
    count: int
    last_updated: int


def join_history(history: Iterable[HistoryEntry], peripherals: Iterable[Peripheral]) -> List[PeripheralHistoryItem]:
    """Attach each history entry to its peripheral; entries without one are dropped."""
    by_id = {p.id: p for p in peripherals}
    return [
        PeripheralHistoryItem(peripheral=by_id[entry.peripheral_id], viewed_at=entry.viewed_at)
        for entry in history
        if entry.peripheral_id in by_id
    ]


class CatalogService:
    def __init__(self, source: PeripheralSource, store, clock: Callable[[], int] = now_ms):
        self.source = source
        self.store = store
        self.clock = clock

    # ------------------------------------------------------------------ #
    # Streams
    # ------------------------------------------------------------------ #
    def observe_peripherals(self) -> AsyncIterator[List[Peripheral]]:
        return self.store.observe_peripherals()

    def observe_peripheral(self, peripheral_id: str) -> AsyncIterator[Optional[Peripheral]]:
        return self.store.observe_peripheral(peripheral_id)

    def observe_favorites(self) -> AsyncIterator[List[Peripheral]]:
        return self.store.observe_favorites()

    def observe_history(self) -> AsyncIterator[List[PeripheralHistoryItem]]:
        return self.store.watch(self.get_history)

    def get_peripherals(self) -> List[Peripheral]:
        return self.store.get_peripherals()

    def get_history(self) -> List[PeripheralHistoryItem]:
        return join_history(self.store.get_history(), self.store.get_peripherals())

    def get_favorites(self) -> List[Peripheral]:
        return self.store.get_favorites()

    # ------------------------------------------------------------------ #
    # Synchronization
    # ------------------------------------------------------------------ #
    async def refresh(self, category: Optional[str] = None) -> SyncResult:
        """Pull the catalogue and upsert it, keeping local favorite flags.

        Every row gets the same last_updated stamp, returned with the count.
        Raises SourceUnavailableError without touching the store when the
        source fails.
        """
        try:
            remote = await self.source.fetch_peripherals(category)
        except SourceUnavailableError as e:
            logger.warning("Catalog refresh failed (category=%s): %s", category, e)
            raise

        favorites = set(self.store.get_favorite_ids())
        timestamp = self.clock()
        self.store.upsert_peripherals(
            [p.with_favorite(p.id in favorites) for p in remote],
            last_updated=timestamp,
        )
        logger.info("Synchronized %d peripherals (category=%s)", len(remote), category)
        return SyncResult(count=len(remote), last_updated=timestamp)

    async def fetch_categories(self) -> List[str]:
        try:
            return await self.source.fetch_categories()
        except SourceUnavailableError as e:
            logger.info("Falling back to cached categories: %s", e)
            return distinct_sorted(p.category for p in self.store.get_peripherals())

    async def get_peripheral_once(self, peripheral_id: str) -> Optional[Peripheral]:
        local = self.store.get_peripheral(peripheral_id)
        if local is not None:
            return local
        try:
            remote = await self.source.fetch_peripheral(peripheral_id)
        except SourceUnavailableError as e:
            logger.info("Peripheral %s not cached and source unavailable: %s", peripheral_id, e)
            return None
        if remote is None:
            return None
        remote = remote.with_favorite(False)
        self.store.upsert_peripherals([remote], last_updated=self.clock())
        return remote

    def get_peripherals_by_ids(self, peripheral_ids: Iterable[str]) -> List[Peripheral]:
        peripheral_ids = list(peripheral_ids)
        if not peripheral_ids:
            return []
        by_id = {p.id: p for p in self.store.get_peripherals()}
        return [by_id[i] for i in peripheral_ids if i in by_id]

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #
    def toggle_favorite(self, peripheral_id: str) -> Optional[bool]:
        """Flip the favorite flag; returns the new value, or None for unknown ids."""
        current = self.store.get_peripheral(peripheral_id)
        if current is None:
            return None
        self.store.set_favorite(peripheral_id, not current.is_favorite)
        return not current.is_favorite

    def set_favorite(self, peripheral_id: str, is_favorite: bool) -> bool:
        """Persist an explicit flag; returns False for unknown ids."""
        if self.store.get_peripheral(peripheral_id) is None:
            return False
        self.store.set_favorite(peripheral_id, is_favorite)
        return True

    def record_view(self, peripheral_id: str) -> HistoryEntry:
        return self.store.upsert_history(peripheral_id, self.clock())

    def delete_history_entry(self, peripheral_id: str) -> None:
        self.store.delete_history(peripheral_id)

    def clear_history(self) -> None:
        self.store.clear_history()
