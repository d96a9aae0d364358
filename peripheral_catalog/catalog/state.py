"""
Catalog UI state and the reducer that derives it.

``reduce_state`` is pure: given a snapshot and one tagged event it returns the
next snapshot. Every change to the peripheral list or to the filter criteria
re-derives the filtered list in the same step.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional, Tuple, Type

from peripheral_catalog.catalog.filters import (
    FeatureFlag,
    FilterCriteria,
    PriceRange,
    adjust_price_range,
    apply_filters,
    distinct_sorted,
    price_bounds,
)
from peripheral_catalog.integrations.contracts import Peripheral, PeripheralHistoryItem

MAX_COMPARISON = 3


@dataclass(frozen=True)
class CatalogUiState:
    is_loading: bool = False
    is_refreshing: bool = False
    all_peripherals: Tuple[Peripheral, ...] = ()
    filtered_peripherals: Tuple[Peripheral, ...] = ()
    favorites: Tuple[Peripheral, ...] = ()
    history: Tuple[PeripheralHistoryItem, ...] = ()
    categories: Tuple[str, ...] = ()
    brands: Tuple[str, ...] = ()
    comparison_selection: Tuple[str, ...] = ()
    filters: FilterCriteria = field(default_factory=FilterCriteria)
    last_updated: Optional[int] = None
    error_message: Optional[str] = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class CatalogEvent:
    """Marker base for everything the reducer accepts."""


@dataclass(frozen=True)
class PeripheralsChanged(CatalogEvent):
    peripherals: Tuple[Peripheral, ...]


@dataclass(frozen=True)
class FavoritesChanged(CatalogEvent):
    favorites: Tuple[Peripheral, ...]


@dataclass(frozen=True)
class HistoryChanged(CatalogEvent):
    history: Tuple[PeripheralHistoryItem, ...]


@dataclass(frozen=True)
class CategoriesLoaded(CatalogEvent):
    categories: Tuple[str, ...]


@dataclass(frozen=True)
class RefreshStarted(CatalogEvent):
    pass


@dataclass(frozen=True)
class RefreshSucceeded(CatalogEvent):
    timestamp: int


@dataclass(frozen=True)
class RefreshFailed(CatalogEvent):
    message: str


@dataclass(frozen=True)
class SearchTermChanged(CatalogEvent):
    term: str


@dataclass(frozen=True)
class CategorySelected(CatalogEvent):
    category: Optional[str]


@dataclass(frozen=True)
class BrandSelected(CatalogEvent):
    brand: Optional[str]


@dataclass(frozen=True)
class PriceRangeChanged(CatalogEvent):
    low: float
    high: float


@dataclass(frozen=True)
class FeatureToggled(CatalogEvent):
    flag: FeatureFlag


@dataclass(frozen=True)
class FiltersCleared(CatalogEvent):
    pass


@dataclass(frozen=True)
class ComparisonToggled(CatalogEvent):
    peripheral_id: str


@dataclass(frozen=True)
class ComparisonRemoved(CatalogEvent):
    peripheral_id: str


@dataclass(frozen=True)
class ComparisonCleared(CatalogEvent):
    pass


# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------

def _with_filters(state: CatalogUiState, criteria: FilterCriteria) -> CatalogUiState:
    return replace(
        state,
        filters=criteria,
        filtered_peripherals=tuple(apply_filters(state.all_peripherals, criteria)),
    )


def _on_peripherals_changed(state: CatalogUiState, event: PeripheralsChanged) -> CatalogUiState:
    peripherals = tuple(event.peripherals)
    criteria = adjust_price_range(state.filters, price_bounds(peripherals))
    known_ids = {p.id for p in peripherals}
    return replace(
        state,
        is_loading=False,
        all_peripherals=peripherals,
        filtered_peripherals=tuple(apply_filters(peripherals, criteria)),
        categories=tuple(distinct_sorted(p.category for p in peripherals)),
        brands=tuple(distinct_sorted(p.brand for p in peripherals)),
        comparison_selection=tuple(i for i in state.comparison_selection if i in known_ids),
        filters=criteria,
    )


def _on_favorites_changed(state: CatalogUiState, event: FavoritesChanged) -> CatalogUiState:
    return replace(state, favorites=tuple(event.favorites))


def _on_history_changed(state: CatalogUiState, event: HistoryChanged) -> CatalogUiState:
    return replace(state, history=tuple(event.history))


def _on_categories_loaded(state: CatalogUiState, event: CategoriesLoaded) -> CatalogUiState:
    if not event.categories:
        return state
    return replace(state, categories=tuple(sorted(event.categories)))


def _on_refresh_started(state: CatalogUiState, event: RefreshStarted) -> CatalogUiState:
    return replace(state, is_refreshing=True, error_message=None)


def _on_refresh_succeeded(state: CatalogUiState, event: RefreshSucceeded) -> CatalogUiState:
    return replace(state, is_refreshing=False, last_updated=event.timestamp)


def _on_refresh_failed(state: CatalogUiState, event: RefreshFailed) -> CatalogUiState:
    return replace(state, is_refreshing=False, is_loading=False, error_message=event.message)


def _on_search_term(state: CatalogUiState, event: SearchTermChanged) -> CatalogUiState:
    return _with_filters(state, replace(state.filters, search_term=event.term))


def _on_category(state: CatalogUiState, event: CategorySelected) -> CatalogUiState:
    return _with_filters(state, replace(state.filters, category=event.category))


def _on_brand(state: CatalogUiState, event: BrandSelected) -> CatalogUiState:
    return _with_filters(state, replace(state.filters, brand=event.brand))


def _on_price_range(state: CatalogUiState, event: PriceRangeChanged) -> CatalogUiState:
    return _with_filters(state, state.filters.with_price_range(PriceRange(event.low, event.high)))


def _on_feature_toggled(state: CatalogUiState, event: FeatureToggled) -> CatalogUiState:
    return _with_filters(state, state.filters.toggled(event.flag))


def _on_filters_cleared(state: CatalogUiState, event: FiltersCleared) -> CatalogUiState:
    return _with_filters(state, state.filters.cleared())


def _on_comparison_toggled(state: CatalogUiState, event: ComparisonToggled) -> CatalogUiState:
    selection = state.comparison_selection
    if event.peripheral_id in selection:
        selection = tuple(i for i in selection if i != event.peripheral_id)
    elif len(selection) < MAX_COMPARISON:
        selection = selection + (event.peripheral_id,)
    return replace(state, comparison_selection=selection)


def _on_comparison_removed(state: CatalogUiState, event: ComparisonRemoved) -> CatalogUiState:
    return replace(
        state,
        comparison_selection=tuple(i for i in state.comparison_selection if i != event.peripheral_id),
    )


def _on_comparison_cleared(state: CatalogUiState, event: ComparisonCleared) -> CatalogUiState:
    return replace(state, comparison_selection=())


_REDUCERS: Dict[Type[CatalogEvent], Callable[[CatalogUiState, CatalogEvent], CatalogUiState]] = {
    PeripheralsChanged: _on_peripherals_changed,
    FavoritesChanged: _on_favorites_changed,
    HistoryChanged: _on_history_changed,
    CategoriesLoaded: _on_categories_loaded,
    RefreshStarted: _on_refresh_started,
    RefreshSucceeded: _on_refresh_succeeded,
    RefreshFailed: _on_refresh_failed,
    SearchTermChanged: _on_search_term,
    CategorySelected: _on_category,
    BrandSelected: _on_brand,
    PriceRangeChanged: _on_price_range,
    FeatureToggled: _on_feature_toggled,
    FiltersCleared: _on_filters_cleared,
    ComparisonToggled: _on_comparison_toggled,
    ComparisonRemoved: _on_comparison_removed,
    ComparisonCleared: _on_comparison_cleared,
}


def reduce_state(state: CatalogUiState, event: CatalogEvent) -> CatalogUiState:
    try:
        reducer = _REDUCERS[type(event)]
    except KeyError:
        raise TypeError(f"Unsupported catalog event: {type(event).__name__}") from None
    return reducer(state, event)
