"""Side-by-side comparison table for the selected peripherals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from peripheral_catalog.integrations.contracts import Peripheral

MISSING_SPEC = "-"


@dataclass(frozen=True)
class ComparisonRow:
    label: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class ComparisonTable:
    peripherals: Tuple[Peripheral, ...] = ()
    spec_rows: Tuple[ComparisonRow, ...] = ()
    feature_rows: Tuple[ComparisonRow, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.peripherals


def build_comparison(peripherals: Sequence[Peripheral]) -> ComparisonTable:
    """Spec labels appear in first-seen order; one value per peripheral."""
    labels: List[str] = []
    for peripheral in peripherals:
        for label in peripheral.specs:
            if label not in labels:
                labels.append(label)

    spec_rows = tuple(
        ComparisonRow(label, tuple(p.specs.get(label, MISSING_SPEC) for p in peripherals))
        for label in labels
    )
    feature_rows: Tuple[ComparisonRow, ...] = ()
    if any(p.features for p in peripherals):
        feature_rows = tuple(ComparisonRow(p.name, (", ".join(p.features),)) for p in peripherals)

    return ComparisonTable(peripherals=tuple(peripherals), spec_rows=spec_rows, feature_rows=feature_rows)
