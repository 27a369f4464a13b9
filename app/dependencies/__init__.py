"""Expose dependency helpers for FastAPI routers."""

from .auth import get_authenticated_portal, get_plant_care_service
from .clients import (
    CRMClientFactory,
    get_crm_client_factory,
    get_hubspot_oauth_client,
    get_oauth_token_service,
    get_perenual_client,
    get_request_authenticator,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "CRMClientFactory",
    "SettingsDependency",
    "get_app_settings",
    "get_authenticated_portal",
    "get_crm_client_factory",
    "get_hubspot_oauth_client",
    "get_oauth_token_service",
    "get_perenual_client",
    "get_plant_care_service",
    "get_request_authenticator",
]
