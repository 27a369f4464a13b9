"""
HubSpot CRM REST calls made on behalf of an authenticated portal.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

logger = logging.getLogger(__name__)


class HubSpotAPIError(Exception):
    """Raised when the CRM API returns an error or cannot be reached."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HubSpotCRMClient:
    """CRM object and association operations using a portal's bearer token."""

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str = "https://api.hubapi.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._access_token}"}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method, path, json=json, params=params, headers=headers
                )
        except httpx.HTTPError as exc:
            raise HubSpotAPIError(f"HubSpot request failed: {exc}") from exc

        if response.is_error:
            message = response.text
            try:
                message = response.json().get("message") or message
            except ValueError:
                pass
            logger.error("HubSpot %s %s failed (%s): %s", method, path, response.status_code, message)
            raise HubSpotAPIError(message, status_code=response.status_code)
        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return {}
        return response.json()

    async def create_object(self, object_type: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/crm/v3/objects/{object_type}", json={"properties": properties}
        )

    async def get_object(
        self, object_type: str, object_id: str, properties: Iterable[str] = ()
    ) -> Dict[str, Any]:
        params = {"properties": ",".join(properties)} if properties else None
        return await self._request(
            "GET", f"/crm/v3/objects/{object_type}/{object_id}", params=params
        )

    async def update_object(
        self, object_type: str, object_id: str, properties: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._request(
            "PATCH",
            f"/crm/v3/objects/{object_type}/{object_id}",
            json={"properties": properties},
        )

    async def archive_object(self, object_type: str, object_id: str) -> None:
        await self._request("DELETE", f"/crm/v3/objects/{object_type}/{object_id}")

    async def batch_read_objects(
        self, object_type: str, object_ids: List[str], properties: Iterable[str]
    ) -> List[Dict[str, Any]]:
        if not object_ids:
            return []
        payload = await self._request(
            "POST",
            f"/crm/v3/objects/{object_type}/batch/read",
            json={
                "inputs": [{"id": object_id} for object_id in object_ids],
                "properties": list(properties),
            },
        )
        return list(payload.get("results") or [])

    async def associate_default(
        self, from_type: str, from_id: str, to_type: str, to_id: str
    ) -> None:
        """Create the default (unlabeled) association between two records."""
        await self._request(
            "PUT",
            f"/crm/v4/objects/{from_type}/{from_id}/associations/default/{to_type}/{to_id}",
        )

    async def list_associated_ids(
        self, from_type: str, from_id: str, to_type: str
    ) -> List[str]:
        payload = await self._request(
            "GET", f"/crm/v4/objects/{from_type}/{from_id}/associations/{to_type}"
        )
        return [str(item["toObjectId"]) for item in payload.get("results") or []]

    async def create_schema(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/crm/v3/schemas", json=schema)

    async def list_schemas(self) -> List[Dict[str, Any]]:
        """Custom object schemas defined in the portal."""
        payload = await self._request("GET", "/crm/v3/schemas")
        return list(payload.get("results") or [])


__all__ = ["HubSpotAPIError", "HubSpotCRMClient"]
