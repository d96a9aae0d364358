"""
Peripheral Catalogue HTTP Client.

Purpose:
- Fetches peripherals and categories from the catalogue API
- Normalizes entries into the Peripheral contract shape

Usage:
- Built by peripheral_catalog/api/main.py (with the mock transport in development)
- Called by CatalogService through the PeripheralSource interface

Implementation notes:
- Transport failures, timeouts and non-2xx answers become SourceUnavailableError
- A 404 for a single peripheral is "no result", not an error
- Invalid list entries are skipped so one bad record does not block a sync
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from peripheral_catalog.error_handler import SourceUnavailableError
from peripheral_catalog.integrations.contracts import (
    Peripheral,
    PeripheralPayload,
    PeripheralQuery,
    PeripheralSource,
)

logger = logging.getLogger(__name__)


class PeripheralApiClient(PeripheralSource):
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[dict] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._headers = headers or {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers=self._headers,
        )

    async def _get(self, path: str, params: Optional[List[Tuple[str, str]]] = None) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error("Timed out calling peripheral API %s: %s", path, e)
            raise SourceUnavailableError(f"Catalogue request timed out: {path}") from e
        except httpx.RequestError as e:
            logger.error("Request error connecting to peripheral API %s: %s", path, e)
            raise SourceUnavailableError(f"Catalogue unreachable: {e}") from e
        logger.debug("GET %s -> %s", path, response.status_code)
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("HTTP error from peripheral API: %s %s", e.response.status_code, e.request.url)
            raise SourceUnavailableError(
                f"Catalogue answered {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise SourceUnavailableError("Catalogue returned invalid JSON") from e

    async def fetch_peripherals(
        self,
        category: Optional[str] = None,
        query: Optional[PeripheralQuery] = None,
    ) -> List[Peripheral]:
        params: List[Tuple[str, str]] = []
        if category:
            params.append(("category", category))
        if query is not None:
            params.extend(query.to_params())

        response = await self._get("peripherals", params=params or None)
        self._raise_for_status(response)
        data = self._json(response)
        if not isinstance(data, list):
            raise SourceUnavailableError("Catalogue returned an unexpected peripheral list")

        peripherals: List[Peripheral] = []
        for item in data:
            try:
                peripherals.append(PeripheralPayload.model_validate(item).to_peripheral())
            except ValidationError as e:
                logger.warning("Skipping invalid peripheral payload %r: %s", item, e)
        logger.info("Fetched %d peripherals (category=%s)", len(peripherals), category)
        return peripherals

    async def fetch_peripheral(self, peripheral_id: str) -> Optional[Peripheral]:
        response = await self._get(f"peripherals/{quote(peripheral_id, safe='')}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        try:
            return PeripheralPayload.model_validate(self._json(response)).to_peripheral()
        except ValidationError as e:
            logger.warning("Invalid payload for peripheral %s: %s", peripheral_id, e)
            return None

    async def fetch_categories(self) -> List[str]:
        response = await self._get("categories")
        self._raise_for_status(response)
        data = self._json(response)
        if not isinstance(data, list):
            raise SourceUnavailableError("Catalogue returned an unexpected category list")
        return [str(c) for c in data]
