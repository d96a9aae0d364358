"""
Local Peripheral Catalogue (Mock endpoint).

Purpose:
- Serves the peripheral API from bundled JSON files so the app runs without a
  remote catalogue.
- Plugs into httpx as a MockTransport: the real HTTP client is used unchanged,
  only the transport is swapped.

Routes:
- GET /peripherals            (category, brand, search, minPrice, maxPrice, feature*)
- GET /peripherals/{id}
- GET /categories
Anything else answers 404 with an empty JSON object.

Swap:
Point SourceConfig.base_url at a real catalogue and set mode to "http" to stop
using this transport.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent / "data"


def _load_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class LocalPeripheralCatalogue:
    """
    In-process peripheral endpoint.

    Parameters
    ----------
    peripherals : list of dict, optional
        Raw peripheral payloads. Loaded from ``data_dir/peripherals.json`` when omitted.
    categories : list of str, optional
        Category list. Loaded from ``data_dir/categories.json`` when omitted, or
        derived from the peripherals when that file is missing or unreadable.
    base_path : str
        Path prefix the routes are mounted under.
    """

    def __init__(
        self,
        peripherals: Optional[List[Dict[str, Any]]] = None,
        categories: Optional[List[str]] = None,
        data_dir: Optional[Path] = None,
        base_path: str = "/",
    ) -> None:
        data_dir = Path(data_dir) if data_dir is not None else DEFAULT_DATA_DIR
        self._peripherals: List[Dict[str, Any]] = (
            list(peripherals) if peripherals is not None else _load_json(data_dir / "peripherals.json")
        )
        if categories is None:
            try:
                categories = list(_load_json(data_dir / "categories.json"))
            except (OSError, json.JSONDecodeError):
                categories = list(dict.fromkeys(str(p.get("category", "")) for p in self._peripherals))
        self._categories = categories
        self._prefix = [s for s in base_path.split("/") if s]

        # Flip to False to simulate an unreachable catalogue.
        self.available = True
        self.request_count = 0

        logger.info("[CATALOGUE MOCK] Loaded %d peripherals, %d categories", len(self._peripherals), len(self._categories))

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.request_count += 1
        if not self.available:
            raise httpx.ConnectError("Catalogue endpoint unreachable", request=request)

        segments = [s for s in request.url.path.split("/") if s]
        if segments[: len(self._prefix)] != self._prefix:
            return self._not_found()
        segments = segments[len(self._prefix):]
        if not segments or request.method != "GET":
            return self._not_found()

        if segments[0] == "peripherals":
            if len(segments) == 1:
                return httpx.Response(200, json=self._filter(request.url.params))
            if len(segments) == 2:
                return self._get_peripheral(segments[1])
            return self._not_found()
        if segments[0] == "categories" and len(segments) == 1:
            return httpx.Response(200, json=self._categories)
        return self._not_found()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _get_peripheral(self, peripheral_id: str) -> httpx.Response:
        for item in self._peripherals:
            if item.get("id") == peripheral_id:
                return httpx.Response(200, json=item)
        return self._not_found()

    def _filter(self, params: httpx.QueryParams) -> List[Dict[str, Any]]:
        current = self._peripherals

        category = (params.get("category") or "").strip()
        if category:
            current = [p for p in current if str(p.get("category", "")).lower() == category.lower()]

        brand = (params.get("brand") or "").strip()
        if brand:
            current = [p for p in current if str(p.get("brand", "")).lower() == brand.lower()]

        search = (params.get("search") or "").strip().lower()
        if search:
            current = [
                p for p in current
                if search in str(p.get("name", "")).lower() or search in str(p.get("brand", "")).lower()
            ]

        min_price = _parse_float(params.get("minPrice"))
        if min_price is not None:
            current = [p for p in current if float(p.get("price", 0)) >= min_price]

        max_price = _parse_float(params.get("maxPrice"))
        if max_price is not None:
            current = [p for p in current if float(p.get("price", 0)) <= max_price]

        wanted = [f.lower() for f in params.get_list("feature") if f]
        if wanted:
            current = [
                p for p in current
                if all(w in {str(f).lower() for f in p.get("features", [])} for w in wanted)
            ]

        return current

    @staticmethod
    def _not_found() -> httpx.Response:
        return httpx.Response(404, json={})
