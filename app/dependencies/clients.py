"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Depends, Request

from app.clients import (
    HubSpotCRMClient,
    HubSpotOAuthClient,
    PerenualClient,
)
from app.core.config import AppSettings, get_settings
from app.dependencies.config import get_app_settings
from app.services import OAuthTokenService, RequestAuthenticator

CRMClientFactory = Callable[[str], HubSpotCRMClient]


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_hubspot_oauth_client() -> HubSpotOAuthClient:
    """Create a singleton HubSpot OAuth client."""
    settings = _settings()
    return HubSpotOAuthClient(settings.hubspot, settings.oauth)


def get_oauth_token_service(request: Request) -> OAuthTokenService:
    """Return the process-wide token service built at startup."""
    return request.app.state.token_service


def get_request_authenticator(
    token_service: OAuthTokenService = Depends(get_oauth_token_service),
) -> RequestAuthenticator:
    return RequestAuthenticator(token_service)


@lru_cache()
def get_perenual_client() -> PerenualClient:
    """Provide Perenual species client."""
    settings = _settings()
    return PerenualClient(settings.perenual)


def get_crm_client_factory(
    settings: AppSettings = Depends(get_app_settings),
) -> CRMClientFactory:
    """Build CRM clients bound to a portal's access token."""

    def _factory(access_token: str) -> HubSpotCRMClient:
        return HubSpotCRMClient(
            access_token,
            base_url=settings.hubspot.api_base_url,
            timeout=settings.oauth.http_timeout,
        )

    return _factory


__all__ = [
    "CRMClientFactory",
    "get_crm_client_factory",
    "get_hubspot_oauth_client",
    "get_oauth_token_service",
    "get_perenual_client",
    "get_request_authenticator",
]
