"""Service layer exports."""

from .oauth_tokens import (
    OAuthError,
    OAuthTokenService,
    PortalNotAuthorizedError,
    TokenExchangeError,
    TokenRefreshError,
    TokenState,
)
from .plant_care import PlantCareService, PlantSchemaMissingError
from .request_auth import (
    AuthenticatedPortal,
    MissingPortalIdError,
    RequestAuthenticator,
    decode_request_body,
    extract_portal_id,
)

__all__ = [
    "AuthenticatedPortal",
    "MissingPortalIdError",
    "OAuthError",
    "OAuthTokenService",
    "PlantCareService",
    "PlantSchemaMissingError",
    "PortalNotAuthorizedError",
    "RequestAuthenticator",
    "TokenExchangeError",
    "TokenRefreshError",
    "TokenState",
    "decode_request_body",
    "extract_portal_id",
]
