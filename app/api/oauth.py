"""
OAuth install, callback and uninstall routes for the HubSpot app.
"""

from __future__ import annotations

import html
import logging
import secrets
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from app.clients.database import StoreUnavailableError
from app.dependencies import get_hubspot_oauth_client, get_oauth_token_service
from app.services import (
    OAuthTokenService,
    TokenExchangeError,
    decode_request_body,
    extract_portal_id,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _render_page(title: str, message: str, status_code: int) -> HTMLResponse:
    body = f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>{html.escape(title)}</title></head>
  <body style="font-family: sans-serif; max-width: 40em; margin: 4em auto;">
    <h1>{html.escape(title)}</h1>
    <p>{html.escape(message)}</p>
  </body>
</html>
"""
    return HTMLResponse(content=body, status_code=status_code)


@router.get("/authorize")
async def start_oauth_flow(
    request: Request,
    oauth_client: Annotated[Any, Depends(get_hubspot_oauth_client)],
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the HubSpot consent screen.",
    ),
):
    """Return (or redirect to) the HubSpot install URL."""
    state = secrets.token_urlsafe(16)
    authorization_url = oauth_client.build_authorization_url(state=state)

    wants_html = "text/html" in request.headers.get("accept", "").lower()
    if redirect or wants_html:
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)
    return {"authorization_url": authorization_url, "state": state}


@router.get("/callback", response_class=HTMLResponse)
async def handle_oauth_callback(
    token_service: Annotated[OAuthTokenService, Depends(get_oauth_token_service)],
    code: str | None = Query(default=None, description="Authorization code from HubSpot."),
    error: str | None = Query(default=None),
) -> HTMLResponse:
    """Exchange the authorization code and render the outcome."""
    if not code:
        reason = error or "No authorization code was provided."
        return _render_page("Authorization failed", reason, HTTPStatus.BAD_REQUEST)

    try:
        record = await token_service.exchange_authorization_code(code)
    except TokenExchangeError as exc:
        return _render_page(
            "Authorization failed",
            f"{exc}. Please try installing the app again.",
            HTTPStatus.BAD_REQUEST,
        )
    except StoreUnavailableError:
        logger.exception("Could not persist tokens after code exchange")
        return _render_page(
            "Authorization failed",
            "Tokens could not be saved. Please try again later.",
            HTTPStatus.INTERNAL_SERVER_ERROR,
        )

    return _render_page(
        "Plant Care is connected",
        f"The app is installed for portal {record.portal_id}. You can close this window.",
        HTTPStatus.OK,
    )


@router.post("/uninstall", status_code=HTTPStatus.OK)
async def handle_uninstall(
    request: Request,
    token_service: Annotated[OAuthTokenService, Depends(get_oauth_token_service)],
) -> dict:
    """Delete stored tokens for the portal named in the request body."""
    try:
        body = decode_request_body(await request.body())
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Request body is not valid JSON.",
        ) from exc

    portal_id = extract_portal_id(body)
    if portal_id is None:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Unable to determine portal ID from request",
        )

    await token_service.revoke(portal_id)
    return {"status": "uninstalled", "portal_id": portal_id}


__all__ = ["router"]
