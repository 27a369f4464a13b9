"""
Helpers for exchanging, refreshing and revoking HubSpot OAuth tokens.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable, Dict, Optional

from app.clients.hubspot_oauth import HubSpotOAuthClient, HubSpotOAuthError
from app.clients.token_store import OAuthTokenStore
from app.core.config import OAuthSettings
from app.models.oauth import StoredOAuthToken, current_millis

logger = logging.getLogger(__name__)


class OAuthError(Exception):
    """Base class for token lifecycle failures surfaced to callers."""


class PortalNotAuthorizedError(OAuthError):
    """No credential is stored for the portal; the app must be (re)installed."""


class TokenRefreshError(OAuthError):
    """The authorization server rejected or did not answer a refresh grant."""


class TokenExchangeError(OAuthError):
    """The authorization server rejected an authorization code."""


class TokenState(str, enum.Enum):
    NO_CREDENTIAL = "no_credential"
    VALID = "valid"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"


def classify_token(
    record: Optional[StoredOAuthToken], *, now_ms: int, grace_ms: int
) -> TokenState:
    """Place a stored credential in the refresh state machine."""
    if record is None:
        return TokenState.NO_CREDENTIAL
    if now_ms >= record.expires_at:
        return TokenState.EXPIRED
    if now_ms >= record.expires_at - grace_ms:
        return TokenState.EXPIRING_SOON
    return TokenState.VALID


class OAuthTokenService:
    """Manages access to persisted HubSpot OAuth tokens.

    Refreshes for a single portal are serialized behind a lazily created lock
    and re-checked once the lock is held, so concurrent requests for an
    expiring token share one refresh call.
    """

    def __init__(
        self,
        store: OAuthTokenStore,
        oauth_client: HubSpotOAuthClient,
        oauth_settings: OAuthSettings,
        *,
        clock: Callable[[], int] = current_millis,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._grace_ms = oauth_settings.refresh_grace_seconds * 1000
        self._clock = clock
        self._refresh_locks: Dict[int, asyncio.Lock] = {}

    def _lock_for(self, portal_id: int) -> asyncio.Lock:
        lock = self._refresh_locks.get(portal_id)
        if lock is None:
            lock = asyncio.Lock()
            self._refresh_locks[portal_id] = lock
        return lock

    async def get_valid_access_token(self, portal_id: int) -> str:
        """Return a usable access token, refreshing it when close to expiry."""
        record = await self._store.get(portal_id)
        state = classify_token(record, now_ms=self._clock(), grace_ms=self._grace_ms)
        if state is TokenState.NO_CREDENTIAL:
            raise PortalNotAuthorizedError(
                f"No tokens found for portal {portal_id}. The app needs to be authorized."
            )
        if state is TokenState.VALID:
            return record.access_token

        logger.info("Token %s for portal %s, refreshing", state.value, portal_id)
        async with self._lock_for(portal_id):
            record = await self._store.get(portal_id)
            state = classify_token(record, now_ms=self._clock(), grace_ms=self._grace_ms)
            if state is TokenState.NO_CREDENTIAL:
                raise PortalNotAuthorizedError(
                    f"Tokens for portal {portal_id} were removed during refresh."
                )
            if state is TokenState.VALID:
                return record.access_token
            refreshed = await self._refresh(record)
        return refreshed.access_token

    async def _refresh(self, record: StoredOAuthToken) -> StoredOAuthToken:
        issued_at = self._clock()
        try:
            grant = await self._oauth.refresh_token(record.refresh_token)
        except HubSpotOAuthError as exc:
            logger.error("Refreshing token for portal %s failed: %s", record.portal_id, exc)
            raise TokenRefreshError(
                f"Failed to refresh access token for portal {record.portal_id}: {exc}"
            ) from exc

        refreshed = grant.to_record(
            portal_id=record.portal_id,
            issued_at_ms=issued_at,
            fallback_refresh_token=record.refresh_token,
        )
        await self._store.upsert(refreshed)
        logger.info("Refreshed token for portal %s", record.portal_id)
        return refreshed

    async def exchange_authorization_code(self, code: str) -> StoredOAuthToken:
        """Trade an authorization code for tokens and persist them."""
        issued_at = self._clock()
        try:
            grant = await self._oauth.exchange_authorization_code(code)
            portal_id = grant.hub_id
            if portal_id is None:
                portal_id = await self._oauth.get_token_hub_id(grant.access_token)
        except HubSpotOAuthError as exc:
            logger.error("Authorization code exchange failed: %s", exc)
            raise TokenExchangeError(f"Failed to exchange authorization code: {exc}") from exc

        record = grant.to_record(portal_id=portal_id, issued_at_ms=issued_at)
        await self._store.upsert(record)
        logger.info("Stored initial tokens for portal %s", portal_id)
        return record

    async def revoke(self, portal_id: int) -> None:
        """Forget the credential for an uninstalled portal."""
        await self._store.delete(portal_id)
        self._refresh_locks.pop(portal_id, None)


__all__ = [
    "OAuthError",
    "OAuthTokenService",
    "PortalNotAuthorizedError",
    "TokenExchangeError",
    "TokenRefreshError",
    "TokenState",
    "classify_token",
]
