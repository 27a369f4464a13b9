"""Resolve inbound CRM requests to a portal and a usable access token."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from app.services.oauth_tokens import OAuthError, OAuthTokenService

logger = logging.getLogger(__name__)

MAX_BODY_DECODE_ATTEMPTS = 2

# Checked in order; the first present value wins.
PORTAL_ID_PATHS: tuple[tuple[str, ...], ...] = (
    ("portalId",),
    ("origin", "portalId"),
    ("context", "portalId"),
)

# Plain ASCII decimal; rejects forms like "1_000" that int() would accept.
_PORTAL_ID_PATTERN = re.compile(r"-?[0-9]+")


class MissingPortalIdError(OAuthError):
    """The request carries no recognizable portal identifier."""


@dataclass(slots=True)
class AuthenticatedPortal:
    """Request context attached once a portal has been authenticated."""

    portal_id: int
    access_token: str
    payload: Dict[str, Any] = field(default_factory=dict)


def decode_request_body(raw: Union[bytes, str, Mapping[str, Any], None]) -> Any:
    """Decode a body that may arrive JSON-encoded once or twice.

    Decoding stops at the first non-string result or after
    ``MAX_BODY_DECODE_ATTEMPTS`` passes. Bytes are treated as UTF-8 text.
    """
    if raw is None:
        return {}
    value: Any = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
    if isinstance(value, str) and not value.strip():
        return {}
    for _ in range(MAX_BODY_DECODE_ATTEMPTS):
        if not isinstance(value, str):
            break
        value = json.loads(value)
    return value


def _parse_portal_id(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and _PORTAL_ID_PATTERN.fullmatch(value.strip()):
        return int(value.strip())
    return None


def extract_portal_id(body: Any) -> Optional[int]:
    """Return the first portal id found in ``body`` or ``None``."""
    if not isinstance(body, Mapping):
        return None
    for path in PORTAL_ID_PATHS:
        node: Any = body
        for key in path:
            if not isinstance(node, Mapping):
                node = None
                break
            node = node.get(key)
        if node in (None, ""):
            continue
        portal_id = _parse_portal_id(node)
        if portal_id is not None:
            return portal_id
    return None


class RequestAuthenticator:
    """Extract a portal id and exchange it for a valid access token."""

    def __init__(self, token_service: OAuthTokenService) -> None:
        self._tokens = token_service

    async def authenticate(
        self,
        body: Any,
        *,
        fallback: Optional[Mapping[str, Any]] = None,
    ) -> AuthenticatedPortal:
        """Authenticate a decoded request body.

        ``fallback`` is consulted when the body has no portal id, which lets GET
        requests carry ``portalId`` in the query string.
        """
        portal_id = extract_portal_id(body)
        if portal_id is None and fallback is not None:
            portal_id = extract_portal_id(fallback)
        if portal_id is None:
            logger.error("No portal ID found in request")
            raise MissingPortalIdError("Unable to determine portal ID from request")

        logger.info("Authenticating request for portal %s", portal_id)
        access_token = await self._tokens.get_valid_access_token(portal_id)
        payload = dict(body) if isinstance(body, Mapping) else {}
        return AuthenticatedPortal(
            portal_id=portal_id,
            access_token=access_token,
            payload=payload,
        )


__all__ = [
    "AuthenticatedPortal",
    "MissingPortalIdError",
    "PORTAL_ID_PATHS",
    "RequestAuthenticator",
    "decode_request_body",
    "extract_portal_id",
]
