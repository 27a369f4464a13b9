"""Expose constructed client wrappers."""

from .database import SQLiteDatabase, StoreUnavailableError
from .hubspot_crm import HubSpotAPIError, HubSpotCRMClient
from .hubspot_oauth import HubSpotOAuthClient, HubSpotOAuthError
from .perenual import PerenualAPIError, PerenualClient, PerenualNotConfiguredError
from .token_store import OAuthTokenStore

__all__ = [
    "HubSpotAPIError",
    "HubSpotCRMClient",
    "HubSpotOAuthClient",
    "HubSpotOAuthError",
    "OAuthTokenStore",
    "PerenualAPIError",
    "PerenualClient",
    "PerenualNotConfiguredError",
    "SQLiteDatabase",
    "StoreUnavailableError",
]
