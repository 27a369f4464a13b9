from __future__ import annotations

import asyncio

import httpx
import pytest

from app.clients.hubspot_oauth import HubSpotOAuthClient, HubSpotOAuthError
from app.clients.token_store import OAuthTokenStore
from app.core.config import HubSpotSettings, OAuthSettings
from app.models.oauth import StoredOAuthToken, TokenGrant
from app.services.oauth_tokens import (
    OAuthTokenService,
    PortalNotAuthorizedError,
    TokenExchangeError,
    TokenRefreshError,
    TokenState,
    classify_token,
)

NOW_MS = 1_700_000_000_000
FIVE_MINUTES_MS = 5 * 60 * 1000


class DummyOAuthClient:
    def __init__(self) -> None:
        self.refresh_grant = TokenGrant(access_token="refreshed-access", expires_in=1800)
        self.exchange_grant = TokenGrant(
            access_token="initial-access",
            refresh_token="initial-refresh",
            expires_in=3600,
            hub_id=None,
        )
        self.hub_id = 4242
        self.error: Exception | None = None
        self.refresh_calls: list[str] = []
        self.exchange_calls: list[str] = []
        self.hub_id_lookups: list[str] = []

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        self.refresh_calls.append(refresh_token)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.refresh_grant

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        self.exchange_calls.append(code)
        if self.error is not None:
            raise self.error
        return self.exchange_grant

    async def get_token_hub_id(self, access_token: str) -> int:
        self.hub_id_lookups.append(access_token)
        return self.hub_id


@pytest.fixture()
def oauth_client() -> DummyOAuthClient:
    return DummyOAuthClient()


@pytest.fixture()
def service(token_store: OAuthTokenStore, oauth_client: DummyOAuthClient) -> OAuthTokenService:
    return OAuthTokenService(
        store=token_store,
        oauth_client=oauth_client,  # type: ignore[arg-type]
        oauth_settings=OAuthSettings(),
        clock=lambda: NOW_MS,
    )


async def _seed(store: OAuthTokenStore, portal_id: int, expires_at: int) -> None:
    await store.upsert(
        StoredOAuthToken(
            portal_id=portal_id,
            access_token="cached-access",
            refresh_token="stored-refresh",
            expires_at=expires_at,
        )
    )


@pytest.mark.asyncio
async def test_valid_token_is_returned_without_network_calls(
    service: OAuthTokenService, token_store: OAuthTokenStore, oauth_client: DummyOAuthClient
) -> None:
    await _seed(token_store, 10, NOW_MS + FIVE_MINUTES_MS + 1)

    token = await service.get_valid_access_token(10)

    assert token == "cached-access"
    assert oauth_client.refresh_calls == []


@pytest.mark.asyncio
async def test_expiring_token_is_refreshed_once_and_keeps_refresh_token(
    service: OAuthTokenService, token_store: OAuthTokenStore, oauth_client: DummyOAuthClient
) -> None:
    await _seed(token_store, 11, NOW_MS + FIVE_MINUTES_MS)

    token = await service.get_valid_access_token(11)

    assert token == "refreshed-access"
    assert oauth_client.refresh_calls == ["stored-refresh"]
    stored = await token_store.get(11)
    assert stored is not None
    assert stored.access_token == "refreshed-access"
    assert stored.refresh_token == "stored-refresh"
    assert stored.expires_at == NOW_MS + 1800 * 1000


@pytest.mark.asyncio
async def test_expired_token_for_portal_42_is_refreshed(
    service: OAuthTokenService, token_store: OAuthTokenStore, oauth_client: DummyOAuthClient
) -> None:
    oauth_client.refresh_grant = TokenGrant(
        access_token="new-access", refresh_token="rotated-refresh", expires_in=1200
    )
    await _seed(token_store, 42, NOW_MS - 1000)

    token = await service.get_valid_access_token(42)

    assert token == "new-access"
    assert len(oauth_client.refresh_calls) == 1
    stored = await token_store.get(42)
    assert stored is not None
    assert stored.refresh_token == "rotated-refresh"
    assert stored.expires_at > NOW_MS


@pytest.mark.asyncio
async def test_missing_credentials_for_portal_555_are_unauthorized(
    service: OAuthTokenService, oauth_client: DummyOAuthClient
) -> None:
    with pytest.raises(PortalNotAuthorizedError):
        await service.get_valid_access_token(555)
    assert oauth_client.refresh_calls == []


@pytest.mark.asyncio
async def test_refresh_failure_keeps_stale_record(
    service: OAuthTokenService, token_store: OAuthTokenStore, oauth_client: DummyOAuthClient
) -> None:
    oauth_client.error = HubSpotOAuthError("BAD_REFRESH_TOKEN")
    await _seed(token_store, 12, NOW_MS - 1)

    with pytest.raises(TokenRefreshError):
        await service.get_valid_access_token(12)

    stored = await token_store.get(12)
    assert stored is not None
    assert stored.access_token == "cached-access"
    assert stored.expires_at == NOW_MS - 1


@pytest.mark.asyncio
async def test_concurrent_requests_share_a_single_refresh(
    service: OAuthTokenService, token_store: OAuthTokenStore, oauth_client: DummyOAuthClient
) -> None:
    await _seed(token_store, 13, NOW_MS - 1)

    tokens = await asyncio.gather(
        *(service.get_valid_access_token(13) for _ in range(4))
    )

    assert tokens == ["refreshed-access"] * 4
    assert oauth_client.refresh_calls == ["stored-refresh"]


@pytest.mark.asyncio
async def test_exchange_persists_tokens_and_resolves_hub_id(
    service: OAuthTokenService, token_store: OAuthTokenStore, oauth_client: DummyOAuthClient
) -> None:
    record = await service.exchange_authorization_code("auth-code")

    assert oauth_client.exchange_calls == ["auth-code"]
    assert oauth_client.hub_id_lookups == ["initial-access"]
    assert record.portal_id == 4242

    stored = await token_store.get(4242)
    assert stored is not None
    assert stored.access_token == "initial-access"
    assert stored.refresh_token == "initial-refresh"
    assert stored.expires_at == NOW_MS + 3600 * 1000


@pytest.mark.asyncio
async def test_exchange_uses_hub_id_from_token_response(
    service: OAuthTokenService, oauth_client: DummyOAuthClient
) -> None:
    oauth_client.exchange_grant = oauth_client.exchange_grant.model_copy(update={"hub_id": 77})

    record = await service.exchange_authorization_code("auth-code")

    assert record.portal_id == 77
    assert oauth_client.hub_id_lookups == []


@pytest.mark.asyncio
async def test_rejected_code_writes_nothing(
    service: OAuthTokenService, token_store: OAuthTokenStore, oauth_client: DummyOAuthClient
) -> None:
    oauth_client.error = HubSpotOAuthError("invalid_grant")

    with pytest.raises(TokenExchangeError):
        await service.exchange_authorization_code("used-code")

    assert await token_store.get(4242) is None


@pytest.mark.asyncio
async def test_revoke_removes_credentials(
    service: OAuthTokenService, token_store: OAuthTokenStore
) -> None:
    await _seed(token_store, 14, NOW_MS + 10 * FIVE_MINUTES_MS)

    await service.revoke(14)
    await service.revoke(14)

    with pytest.raises(PortalNotAuthorizedError):
        await service.get_valid_access_token(14)


def test_classify_token_boundaries() -> None:
    record = StoredOAuthToken(
        portal_id=1, access_token="a", refresh_token="r", expires_at=NOW_MS
    )

    def state(now: int) -> TokenState:
        return classify_token(record, now_ms=now, grace_ms=FIVE_MINUTES_MS)

    assert classify_token(None, now_ms=NOW_MS, grace_ms=FIVE_MINUTES_MS) is TokenState.NO_CREDENTIAL
    assert state(NOW_MS - FIVE_MINUTES_MS - 1) is TokenState.VALID
    assert state(NOW_MS - FIVE_MINUTES_MS) is TokenState.EXPIRING_SOON
    assert state(NOW_MS - 1) is TokenState.EXPIRING_SOON
    assert state(NOW_MS) is TokenState.EXPIRED


def _real_client(response: httpx.Response) -> HubSpotOAuthClient:
    return HubSpotOAuthClient(
        HubSpotSettings(
            client_id="client",
            client_secret="secret",
            redirect_uri="https://example.com/oauth/callback",
        ),
        OAuthSettings(),
        transport=httpx.MockTransport(lambda request: response),
    )


@pytest.mark.asyncio
async def test_garbled_refresh_response_is_a_refresh_failure(
    token_store: OAuthTokenStore,
) -> None:
    service = OAuthTokenService(
        store=token_store,
        oauth_client=_real_client(
            httpx.Response(200, json={"access_token": "a", "expires_in": "soon"})
        ),
        oauth_settings=OAuthSettings(),
        clock=lambda: NOW_MS,
    )
    await _seed(token_store, 15, NOW_MS - 1)

    with pytest.raises(TokenRefreshError):
        await service.get_valid_access_token(15)

    stored = await token_store.get(15)
    assert stored is not None
    assert stored.access_token == "cached-access"


@pytest.mark.asyncio
async def test_garbled_exchange_response_is_an_exchange_failure(
    token_store: OAuthTokenStore,
) -> None:
    service = OAuthTokenService(
        store=token_store,
        oauth_client=_real_client(httpx.Response(200, text="<html>")),
        oauth_settings=OAuthSettings(),
        clock=lambda: NOW_MS,
    )

    with pytest.raises(TokenExchangeError):
        await service.exchange_authorization_code("code")
