"""
Filter criteria and the filtering pipeline for the catalog list.

All predicates are conjunctive and run in a fixed order: category, brand,
search term, price range, then the wireless / RGB / mechanical toggles. The
result is sorted by name with plain code-point ordering (case-sensitive,
stable).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from peripheral_catalog.integrations.contracts import Peripheral

WIRELESS_FEATURES = frozenset({"wireless", "bluetooth"})
RGB_FEATURE = "rgb"
MECHANICAL_FEATURE = "mechanical"


class FeatureFlag(str, Enum):
    WIRELESS = "wireless"
    RGB = "rgb"
    MECHANICAL = "mechanical"


@dataclass(frozen=True)
class PriceRange:
    """Closed price interval. (0, 0) means "unset" and matches every price."""

    low: float = 0.0
    high: float = 0.0

    @property
    def is_unset(self) -> bool:
        return self.low == 0 and self.high == 0

    def contains(self, price: float) -> bool:
        return self.is_unset or self.low <= price <= self.high

    def ordered(self) -> "PriceRange":
        if self.low > self.high:
            return PriceRange(self.high, self.low)
        return self

    def clamp(self, bounds: "PriceRange") -> "PriceRange":
        low = min(max(self.low, bounds.low), bounds.high)
        high = min(max(self.high, bounds.low), bounds.high)
        if high < low:
            high = low
        return PriceRange(low, high)


@dataclass(frozen=True)
class FilterCriteria:
    search_term: str = ""
    category: Optional[str] = None
    brand: Optional[str] = None
    bounds: PriceRange = PriceRange()
    price_range: PriceRange = PriceRange()
    only_wireless: bool = False
    only_rgb: bool = False
    only_mechanical: bool = False

    def toggled(self, flag: FeatureFlag) -> "FilterCriteria":
        if flag is FeatureFlag.WIRELESS:
            return replace(self, only_wireless=not self.only_wireless)
        if flag is FeatureFlag.RGB:
            return replace(self, only_rgb=not self.only_rgb)
        return replace(self, only_mechanical=not self.only_mechanical)

    def with_price_range(self, price_range: PriceRange) -> "FilterCriteria":
        price_range = price_range.ordered()
        if not self.bounds.is_unset:
            price_range = price_range.clamp(self.bounds)
        return replace(self, price_range=price_range)

    def cleared(self) -> "FilterCriteria":
        """Reset everything except the bounds; the range re-widens to the bounds."""
        return FilterCriteria(bounds=self.bounds, price_range=self.bounds)


def price_bounds(peripherals: Sequence[Peripheral]) -> PriceRange:
    if not peripherals:
        return PriceRange()
    prices = [p.price for p in peripherals]
    return PriceRange(min(prices), max(prices))


def distinct_sorted(values: Iterable[str]) -> List[str]:
    return sorted(set(values))


def adjust_price_range(criteria: FilterCriteria, bounds: PriceRange) -> FilterCriteria:
    """Fit the selected range to freshly observed bounds.

    An unset range snaps to the full bounds; otherwise both ends are clamped
    independently. Applying it twice with the same bounds is a no-op.
    """
    if bounds.is_unset:
        return replace(criteria, bounds=bounds, price_range=bounds)
    if criteria.price_range.is_unset:
        return replace(criteria, bounds=bounds, price_range=bounds)
    return replace(criteria, bounds=bounds, price_range=criteria.price_range.clamp(bounds))


def _has_feature(peripheral: Peripheral, wanted: Iterable[str]) -> bool:
    wanted = set(wanted)
    return any(feature.lower() in wanted for feature in peripheral.features)


def _matches_text(peripheral: Peripheral, term: str) -> bool:
    return (
        term in peripheral.name.lower()
        or term in peripheral.brand.lower()
        or term in peripheral.description.lower()
    )


def apply_filters(peripherals: Iterable[Peripheral], criteria: FilterCriteria) -> List[Peripheral]:
    result = list(peripherals)

    if criteria.category is not None:
        category = criteria.category.lower()
        result = [p for p in result if p.category.lower() == category]
    if criteria.brand is not None:
        brand = criteria.brand.lower()
        result = [p for p in result if p.brand.lower() == brand]
    if criteria.search_term.strip():
        term = criteria.search_term.lower()
        result = [p for p in result if _matches_text(p, term)]
    if not criteria.price_range.is_unset:
        result = [p for p in result if criteria.price_range.contains(p.price)]
    if criteria.only_wireless:
        result = [p for p in result if _has_feature(p, WIRELESS_FEATURES)]
    if criteria.only_rgb:
        result = [p for p in result if _has_feature(p, {RGB_FEATURE})]
    if criteria.only_mechanical:
        result = [p for p in result if _has_feature(p, {MECHANICAL_FEATURE})]

    return sorted(result, key=lambda p: p.name)
