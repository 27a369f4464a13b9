"""Thin async wrapper around the Perenual plant species API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import PerenualSettings

logger = logging.getLogger(__name__)


class PerenualAPIError(Exception):
    """Raised when Perenual returns a non-success response."""

    def __init__(self, status_code: int, details: str) -> None:
        super().__init__(f"Perenual API error: {status_code}")
        self.status_code = status_code
        self.details = details


class PerenualNotConfiguredError(Exception):
    """Raised when no Perenual API key has been configured."""


class PerenualClient:
    """Search species and fetch species details."""

    def __init__(
        self,
        settings: PerenualSettings,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._timeout = timeout
        self._transport = transport

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self._settings.api_key:
            raise PerenualNotConfiguredError("API key not configured")
        query = {"key": self._settings.api_key, **params}
        try:
            async with httpx.AsyncClient(
                base_url=self._settings.base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(path, params=query)
        except httpx.HTTPError as exc:
            raise PerenualAPIError(502, str(exc)) from exc

        if response.is_error:
            logger.error("Perenual API error %s: %s", response.status_code, response.text)
            raise PerenualAPIError(response.status_code, response.text)
        return response.json()

    async def search_species(
        self, query: str, *, indoor: Optional[bool] = None
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"q": query}
        if indoor is not None:
            params["indoor"] = 1 if indoor else 0
        payload = await self._get("/species-list", params)
        return list(payload.get("data") or [])

    async def get_species_details(self, plant_id: int) -> Dict[str, Any]:
        return await self._get(f"/species/details/{plant_id}", {})


__all__ = ["PerenualAPIError", "PerenualClient", "PerenualNotConfiguredError"]
