"""
Lightweight in-memory CatalogStore for local development and tests.

Implements the same interface as catalog_store_real (SQLAlchemy) so the
service and the API can run without a database file. Nothing survives a
restart.
"""

from __future__ import annotations

import itertools
from typing import Dict, Iterable, List, Optional

from peripheral_catalog.database.changes import ChangeNotifier, ObservableStore
from peripheral_catalog.integrations.contracts import HistoryEntry, Peripheral


class CatalogStore(ObservableStore):
    """
    In-memory stand-in for the SQL-backed catalog store.
    """

    def __init__(self) -> None:
        self._changes = ChangeNotifier()
        self._peripherals: Dict[str, Peripheral] = {}
        self._last_updated: Dict[str, int] = {}
        self._history: Dict[str, HistoryEntry] = {}
        self._history_ids = itertools.count(1)

    # ------------------------------------------------------------------ #
    # Schema / lifecycle
    # ------------------------------------------------------------------ #
    def create_tables(self) -> None:
        """
        No-op for the in-memory implementation. Kept for compatibility
        with the startup hook in `peripheral_catalog/api/main.py`.
        """
        return None

    # ------------------------------------------------------------------ #
    # Peripherals
    # ------------------------------------------------------------------ #
    def upsert_peripherals(self, peripherals: Iterable[Peripheral], last_updated: int) -> None:
        for peripheral in peripherals:
            self._peripherals[peripheral.id] = peripheral
            self._last_updated[peripheral.id] = last_updated
        self._changes.notify()

    def get_peripherals(self) -> List[Peripheral]:
        return sorted(self._peripherals.values(), key=lambda p: p.name)

    def get_peripheral(self, peripheral_id: str) -> Optional[Peripheral]:
        return self._peripherals.get(peripheral_id)

    def get_favorites(self) -> List[Peripheral]:
        return [p for p in self.get_peripherals() if p.is_favorite]

    def get_favorite_ids(self) -> List[str]:
        return [p.id for p in self._peripherals.values() if p.is_favorite]

    def get_last_updated(self, peripheral_id: str) -> Optional[int]:
        return self._last_updated.get(peripheral_id)

    def set_favorite(self, peripheral_id: str, is_favorite: bool) -> None:
        current = self._peripherals.get(peripheral_id)
        if current is None:
            return
        self._peripherals[peripheral_id] = current.with_favorite(is_favorite)
        self._changes.notify()

    # ------------------------------------------------------------------ #
    # History
    # ------------------------------------------------------------------ #
    def upsert_history(self, peripheral_id: str, viewed_at: int) -> HistoryEntry:
        # Replacing gives the entry a new surrogate key, like REPLACE on a unique index.
        entry = HistoryEntry(peripheral_id=peripheral_id, viewed_at=viewed_at, id=next(self._history_ids))
        self._history[peripheral_id] = entry
        self._changes.notify()
        return entry

    def get_history(self) -> List[HistoryEntry]:
        return sorted(self._history.values(), key=lambda e: e.viewed_at, reverse=True)

    def delete_history(self, peripheral_id: str) -> None:
        if self._history.pop(peripheral_id, None) is not None:
            self._changes.notify()

    def clear_history(self) -> None:
        self._history.clear()
        self._changes.notify()
