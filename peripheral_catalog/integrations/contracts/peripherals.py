"""
Peripheral catalogue contract: domain values, remote payload schema and the
source interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Domain values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Peripheral:
    id: str
    name: str
    brand: str
    category: str
    price: float
    image_url: str = ""
    description: str = ""
    specs: Dict[str, str] = field(default_factory=dict)
    features: Tuple[str, ...] = ()
    is_favorite: bool = False

    def with_favorite(self, is_favorite: bool) -> "Peripheral":
        return replace(self, is_favorite=is_favorite)


@dataclass(frozen=True)
class HistoryEntry:
    peripheral_id: str
    viewed_at: int                       # ms since epoch
    id: Optional[int] = None             # surrogate key assigned by the store


@dataclass(frozen=True)
class PeripheralHistoryItem:
    peripheral: Peripheral
    viewed_at: int


@dataclass(frozen=True)
class PeripheralQuery:
    """Server-side filters understood by the peripheral API."""
    brand: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    features: Tuple[str, ...] = ()

    def to_params(self) -> List[Tuple[str, str]]:
        params: List[Tuple[str, str]] = []
        if self.brand:
            params.append(("brand", self.brand))
        if self.search:
            params.append(("search", self.search))
        if self.min_price is not None:
            params.append(("minPrice", str(self.min_price)))
        if self.max_price is not None:
            params.append(("maxPrice", str(self.max_price)))
        params.extend(("feature", feature) for feature in self.features)
        return params


# ---------------------------------------------------------------------------
# Remote payload
# ---------------------------------------------------------------------------

class PeripheralPayload(BaseModel):
    """One peripheral as served by the remote API."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    name: str
    brand: str
    category: str
    price: float = Field(ge=0)
    image_url: str = Field(default="", alias="imageUrl")
    description: str = ""
    specs: Dict[str, str] = Field(default_factory=dict)
    features: List[str] = Field(default_factory=list)

    def to_peripheral(self, is_favorite: bool = False) -> Peripheral:
        return Peripheral(
            id=self.id,
            name=self.name,
            brand=self.brand,
            category=self.category,
            price=self.price,
            image_url=self.image_url,
            description=self.description,
            specs=dict(self.specs),
            features=tuple(self.features),
            is_favorite=is_favorite,
        )


# ---------------------------------------------------------------------------
# Source interface
# ---------------------------------------------------------------------------

class PeripheralSource(ABC):
    """Read-only provider of the authoritative catalogue.

    Implementations raise ``SourceUnavailableError`` when the catalogue cannot
    be reached; a missing peripheral is reported as ``None``.
    """

    @abstractmethod
    async def fetch_peripherals(
        self,
        category: Optional[str] = None,
        query: Optional[PeripheralQuery] = None,
    ) -> List[Peripheral]:
        """Return every peripheral, optionally narrowed by category and query."""

    @abstractmethod
    async def fetch_peripheral(self, peripheral_id: str) -> Optional[Peripheral]:
        """Fetch a single peripheral by ID."""

    @abstractmethod
    async def fetch_categories(self) -> List[str]:
        """Return the list of known categories."""
