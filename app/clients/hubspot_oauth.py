"""
HubSpot OAuth utilities.

These helpers build the install URL and talk to the HubSpot token endpoint for
the authorization-code and refresh-token grants.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from fastapi import status

from app.core.config import HubSpotSettings, OAuthSettings
from app.models.oauth import TokenGrant

logger = logging.getLogger(__name__)


class HubSpotOAuthError(Exception):
    """Raised when the token endpoint rejects a grant or cannot be reached."""


class HubSpotOAuthClient:
    """Build HubSpot authorization URLs and call the token endpoint."""

    TOKEN_PATH = "/oauth/v1/token"
    TOKEN_INFO_PATH = "/oauth/v1/access-tokens/{token}"

    def __init__(
        self,
        hubspot_settings: HubSpotSettings,
        oauth_settings: OAuthSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._hubspot = hubspot_settings
        self._oauth = oauth_settings
        self._transport = transport

    @property
    def token_url(self) -> str:
        return f"{self._hubspot.api_base_url.rstrip('/')}{self.TOKEN_PATH}"

    def build_authorization_url(self, state: Optional[str] = None) -> str:
        """Construct the HubSpot app install (consent) URL."""
        params = {
            "client_id": self._hubspot.client_id,
            "redirect_uri": self._hubspot.redirect_uri,
            "scope": " ".join(self._hubspot.scopes),
        }
        if state:
            params["state"] = state
        return f"{self._hubspot.authorize_url}?{urlencode(params)}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._hubspot.api_base_url,
            timeout=self._oauth.http_timeout,
            transport=self._transport,
        )

    async def _post_token(self, payload: Dict[str, str]) -> Any:
        grant_type = payload["grant_type"]
        try:
            async with self._client() as client:
                response = await client.post(self.TOKEN_PATH, data=payload)
        except httpx.HTTPError as exc:
            logger.warning("Token endpoint unreachable for %s grant: %s", grant_type, exc)
            raise HubSpotOAuthError(f"Token endpoint request failed: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            raise HubSpotOAuthError(
                f"Token endpoint returned {response.status_code}: {response.text}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise HubSpotOAuthError("Token endpoint returned a non-JSON body.") from exc

    def _to_grant(self, token_payload: Any) -> TokenGrant:
        if not isinstance(token_payload, dict):
            raise HubSpotOAuthError("Token endpoint returned an unexpected JSON body.")
        access_token = token_payload.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise HubSpotOAuthError("Token endpoint response did not include an access token.")
        expires_in = token_payload.get("expires_in") or self._oauth.default_expires_in
        hub_id = token_payload.get("hub_id")
        try:
            return TokenGrant(
                access_token=access_token,
                refresh_token=token_payload.get("refresh_token") or None,
                expires_in=int(expires_in),
                hub_id=int(hub_id) if hub_id else None,
            )
        except (TypeError, ValueError) as exc:
            raise HubSpotOAuthError(f"Token endpoint response is malformed: {exc}") from exc

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange a single-use authorization code for the initial token pair."""
        token_payload = await self._post_token(
            {
                "grant_type": "authorization_code",
                "client_id": self._hubspot.client_id,
                "client_secret": self._hubspot.client_secret,
                "redirect_uri": self._hubspot.redirect_uri,
                "code": code,
            }
        )
        grant = self._to_grant(token_payload)
        if not grant.refresh_token:
            raise HubSpotOAuthError("Authorization code response did not include a refresh token.")
        return grant

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """Mint a new access token from a stored refresh token."""
        token_payload = await self._post_token(
            {
                "grant_type": "refresh_token",
                "client_id": self._hubspot.client_id,
                "client_secret": self._hubspot.client_secret,
                "refresh_token": refresh_token,
            }
        )
        return self._to_grant(token_payload)

    async def get_token_hub_id(self, access_token: str) -> int:
        """Look up the portal an access token was issued for."""
        try:
            async with self._client() as client:
                response = await client.get(
                    self.TOKEN_INFO_PATH.format(token=access_token)
                )
        except httpx.HTTPError as exc:
            raise HubSpotOAuthError(f"Token metadata request failed: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            raise HubSpotOAuthError(
                f"Token metadata lookup returned {response.status_code}: {response.text}"
            )
        try:
            metadata = response.json()
        except ValueError as exc:
            raise HubSpotOAuthError("Token metadata lookup returned a non-JSON body.") from exc
        hub_id = metadata.get("hub_id") if isinstance(metadata, dict) else None
        if not hub_id:
            raise HubSpotOAuthError("Token metadata did not include a hub_id.")
        try:
            return int(hub_id)
        except (TypeError, ValueError) as exc:
            raise HubSpotOAuthError(f"Token metadata hub_id is not an integer: {hub_id!r}") from exc


__all__ = ["HubSpotOAuthClient", "HubSpotOAuthError"]
