"""
Catalog routes: state snapshot, filter intents, favorites, history and
comparison.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from peripheral_catalog.catalog.comparison import ComparisonTable
from peripheral_catalog.catalog.filters import FeatureFlag
from peripheral_catalog.catalog.state import CatalogUiState
from peripheral_catalog.catalog.state_holder import CatalogStateHolder
from peripheral_catalog.integrations.contracts import Peripheral

router = APIRouter()


class FilterUpdateRequest(BaseModel):
    """Partial filter update. Only fields present in the body are applied;
    an explicit null clears category or brand."""

    search_term: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    price_low: Optional[float] = Field(default=None, ge=0)
    price_high: Optional[float] = Field(default=None, ge=0)


class FavoriteUpdateRequest(BaseModel):
    is_favorite: bool


def get_holder(request: Request) -> CatalogStateHolder:
    return request.app.state.catalog


def _state_payload(state: CatalogUiState) -> Dict[str, Any]:
    return dataclasses.asdict(state)


def _peripheral_payload(peripheral: Peripheral) -> Dict[str, Any]:
    return dataclasses.asdict(peripheral)


def _comparison_payload(table: ComparisonTable) -> Dict[str, Any]:
    payload = dataclasses.asdict(table)
    payload["ids"] = [p.id for p in table.peripherals]
    return payload


# ---------------------------------------------------------------------------
# Catalog state
# ---------------------------------------------------------------------------

@router.get("/catalog", tags=["Catalog"])
async def get_catalog(holder: CatalogStateHolder = Depends(get_holder)):
    return _state_payload(holder.state)


@router.get("/catalog/peripherals", tags=["Catalog"])
async def get_filtered_peripherals(holder: CatalogStateHolder = Depends(get_holder)):
    return [_peripheral_payload(p) for p in holder.state.filtered_peripherals]


@router.get("/catalog/categories", tags=["Catalog"])
async def get_categories(holder: CatalogStateHolder = Depends(get_holder)):
    return list(holder.state.categories)


@router.post("/catalog/refresh", tags=["Catalog"], status_code=status.HTTP_202_ACCEPTED)
async def refresh_catalog(
    category: Optional[str] = Query(default=None),
    wait: bool = Query(default=False, description="Block until the refresh has finished"),
    holder: CatalogStateHolder = Depends(get_holder),
):
    task = holder.refresh(category)
    if not wait:
        return {"status": "scheduled", "category": category}
    await task
    state = await holder.wait_until_synced()
    return {"status": "finished", "category": category, "state": _state_payload(state)}


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

@router.patch("/catalog/filters", tags=["Filters"])
async def update_filters(body: FilterUpdateRequest, holder: CatalogStateHolder = Depends(get_holder)):
    fields = body.model_fields_set
    state = holder.state
    if "search_term" in fields:
        state = await holder.set_search_term(body.search_term or "")
    if "category" in fields:
        state = await holder.select_category(body.category)
    if "brand" in fields:
        state = await holder.select_brand(body.brand)
    if fields & {"price_low", "price_high"}:
        current = holder.state.filters.price_range
        low = body.price_low if body.price_low is not None else current.low
        high = body.price_high if body.price_high is not None else current.high
        state = await holder.update_price_range(low, high)
    return _state_payload(state)


@router.post("/catalog/filters/toggles/{flag}", tags=["Filters"])
async def toggle_filter(flag: FeatureFlag, holder: CatalogStateHolder = Depends(get_holder)):
    return _state_payload(await holder.toggle_feature(flag))


@router.post("/catalog/filters/clear", tags=["Filters"])
async def clear_filters(holder: CatalogStateHolder = Depends(get_holder)):
    return _state_payload(await holder.clear_filters())


# ---------------------------------------------------------------------------
# Peripherals, favorites, history
# ---------------------------------------------------------------------------

@router.get("/peripherals/{peripheral_id}", tags=["Peripherals"])
async def get_peripheral(peripheral_id: str, holder: CatalogStateHolder = Depends(get_holder)):
    peripheral = await holder.get_peripheral(peripheral_id)
    if peripheral is None:
        raise HTTPException(status_code=404, detail="Peripheral not found")
    return _peripheral_payload(peripheral)


@router.post("/peripherals/{peripheral_id}/favorite", tags=["Peripherals"])
async def toggle_favorite(peripheral_id: str, holder: CatalogStateHolder = Depends(get_holder)):
    is_favorite = holder.toggle_favorite(peripheral_id)
    if is_favorite is None:
        raise HTTPException(status_code=404, detail="Peripheral not found")
    return {"id": peripheral_id, "is_favorite": is_favorite}


@router.put("/peripherals/{peripheral_id}/favorite", tags=["Peripherals"])
async def set_favorite(
    peripheral_id: str, body: FavoriteUpdateRequest, holder: CatalogStateHolder = Depends(get_holder)
):
    if not holder.set_favorite(peripheral_id, body.is_favorite):
        raise HTTPException(status_code=404, detail="Peripheral not found")
    return {"id": peripheral_id, "is_favorite": body.is_favorite}


@router.post("/peripherals/{peripheral_id}/views", tags=["History"])
async def record_view(peripheral_id: str, holder: CatalogStateHolder = Depends(get_holder)):
    entry = holder.record_view(peripheral_id)
    return {"peripheral_id": entry.peripheral_id, "viewed_at": entry.viewed_at}


@router.get("/favorites", tags=["Peripherals"])
async def list_favorites(holder: CatalogStateHolder = Depends(get_holder)):
    return [_peripheral_payload(p) for p in holder.service.get_favorites()]


@router.get("/history", tags=["History"])
async def list_history(holder: CatalogStateHolder = Depends(get_holder)):
    return [
        {"peripheral": _peripheral_payload(item.peripheral), "viewed_at": item.viewed_at}
        for item in holder.service.get_history()
    ]


@router.delete("/history", tags=["History"], status_code=status.HTTP_204_NO_CONTENT)
async def clear_history(holder: CatalogStateHolder = Depends(get_holder)):
    holder.clear_history()


@router.delete("/history/{peripheral_id}", tags=["History"], status_code=status.HTTP_204_NO_CONTENT)
async def delete_history_entry(peripheral_id: str, holder: CatalogStateHolder = Depends(get_holder)):
    holder.delete_history_entry(peripheral_id)


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------

@router.get("/comparison", tags=["Comparison"])
async def get_comparison(holder: CatalogStateHolder = Depends(get_holder)):
    return _comparison_payload(holder.comparison_table())


@router.post("/comparison/{peripheral_id}", tags=["Comparison"])
async def toggle_comparison(peripheral_id: str, holder: CatalogStateHolder = Depends(get_holder)):
    state = await holder.toggle_comparison(peripheral_id)
    return {"comparison_selection": list(state.comparison_selection)}


@router.delete("/comparison/{peripheral_id}", tags=["Comparison"])
async def remove_from_comparison(peripheral_id: str, holder: CatalogStateHolder = Depends(get_holder)):
    state = await holder.remove_from_comparison(peripheral_id)
    return {"comparison_selection": list(state.comparison_selection)}


@router.delete("/comparison", tags=["Comparison"])
async def clear_comparison(holder: CatalogStateHolder = Depends(get_holder)):
    state = await holder.clear_comparison()
    return {"comparison_selection": list(state.comparison_selection)}
