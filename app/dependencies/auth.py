"""Authentication dependencies for routes called from HubSpot."""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import Depends, HTTPException, Request

from app.clients.database import StoreUnavailableError
from app.core.config import AppSettings
from app.dependencies.clients import (
    CRMClientFactory,
    get_crm_client_factory,
    get_request_authenticator,
)
from app.dependencies.config import get_app_settings
from app.services import (
    AuthenticatedPortal,
    MissingPortalIdError,
    OAuthError,
    PlantCareService,
    RequestAuthenticator,
    decode_request_body,
)

logger = logging.getLogger(__name__)


async def get_authenticated_portal(
    request: Request,
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
) -> AuthenticatedPortal:
    """Resolve the calling portal and a valid access token, or reject the request."""
    raw_body = await request.body()
    try:
        body = decode_request_body(raw_body)
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Request body is not valid JSON.",
        ) from exc

    try:
        return await authenticator.authenticate(
            body, fallback=dict(request.query_params)
        )
    except MissingPortalIdError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc
    except OAuthError as exc:
        logger.error("Authentication error: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED,
            detail=f"Authentication failed: {exc}",
        ) from exc
    except StoreUnavailableError as exc:
        logger.exception("Credential store unavailable")
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Credential store unavailable.",
        ) from exc


def get_plant_care_service(
    auth: AuthenticatedPortal = Depends(get_authenticated_portal),
    crm_factory: CRMClientFactory = Depends(get_crm_client_factory),
    settings: AppSettings = Depends(get_app_settings),
) -> PlantCareService:
    """Plant operations bound to the authenticated portal's token."""
    return PlantCareService(
        crm_factory(auth.access_token),
        plant_object_type=settings.hubspot.plant_object_type,
    )


__all__ = ["get_authenticated_portal", "get_plant_care_service"]
