from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.clients.hubspot_oauth import HubSpotOAuthClient, HubSpotOAuthError
from app.core.config import HubSpotSettings, OAuthSettings

pytestmark = pytest.mark.anyio


def _client(handler) -> HubSpotOAuthClient:
    settings = HubSpotSettings(
        client_id="client",
        client_secret="secret",
        redirect_uri="https://example.com/oauth/callback",
    )
    return HubSpotOAuthClient(
        settings,
        OAuthSettings(),
        transport=httpx.MockTransport(handler),
    )


async def test_exchange_posts_authorization_code_grant() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["form"] = parse_qs(request.content.decode("utf-8"))
        return httpx.Response(
            200,
            json={
                "access_token": "access",
                "refresh_token": "refresh",
                "expires_in": 1800,
                "hub_id": 321,
            },
        )

    grant = await _client(handler).exchange_authorization_code("the-code")

    assert seen["path"] == "/oauth/v1/token"
    assert seen["form"]["grant_type"] == ["authorization_code"]
    assert seen["form"]["code"] == ["the-code"]
    assert seen["form"]["redirect_uri"] == ["https://example.com/oauth/callback"]
    assert grant.access_token == "access"
    assert grant.refresh_token == "refresh"
    assert grant.hub_id == 321


async def test_refresh_defaults_expires_in_when_missing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        form = parse_qs(request.content.decode("utf-8"))
        assert form["grant_type"] == ["refresh_token"]
        assert form["refresh_token"] == ["stored"]
        return httpx.Response(200, json={"access_token": "fresh"})

    grant = await _client(handler).refresh_token("stored")

    assert grant.access_token == "fresh"
    assert grant.refresh_token is None
    assert grant.expires_in == 1800


async def test_rejected_grant_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"status": "BAD_REFRESH_TOKEN"})

    with pytest.raises(HubSpotOAuthError):
        await _client(handler).refresh_token("revoked")


async def test_timeout_is_reported_as_oauth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(HubSpotOAuthError):
        await _client(handler).exchange_authorization_code("code")


async def test_token_metadata_lookup_returns_hub_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/oauth/v1/access-tokens/access-123"
        return httpx.Response(200, json={"hub_id": 987, "user": "someone@example.com"})

    assert await _client(handler).get_token_hub_id("access-123") == 987


def test_authorization_url_includes_scopes_and_state() -> None:
    client = _client(lambda request: httpx.Response(200))

    url = client.build_authorization_url(state="xyz")

    parsed = urlparse(url)
    params = parse_qs(parsed.query)
    assert parsed.netloc == "app.hubspot.com"
    assert params["client_id"] == ["client"]
    assert params["state"] == ["xyz"]
    assert "oauth" in params["scope"][0].split(" ")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"access_token": "a", "expires_in": "soon"}),
        httpx.Response(200, json=["a"]),
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json={"access_token": "a", "hub_id": {"id": 1}}),
    ],
)
async def test_malformed_token_response_raises_oauth_error(response: httpx.Response) -> None:
    client = _client(lambda request: response)

    with pytest.raises(HubSpotOAuthError):
        await client.refresh_token("stored")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>"),
        httpx.Response(200, json=["hub"]),
        httpx.Response(200, json={"hub_id": "not-a-number"}),
    ],
)
async def test_malformed_token_metadata_raises_oauth_error(response: httpx.Response) -> None:
    client = _client(lambda request: response)

    with pytest.raises(HubSpotOAuthError):
        await client.get_token_hub_id("access-123")
