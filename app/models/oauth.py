"""
Domain models for OAuth token persistence.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


def current_millis() -> int:
    """Wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


class StoredOAuthToken(BaseModel):
    """Represents the credential record stored for a HubSpot portal."""

    portal_id: int = Field(..., description="HubSpot portal (hub) identifier.")
    access_token: str
    refresh_token: str
    expires_at: int = Field(
        ..., description="Absolute expiry of the access token in epoch milliseconds."
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TokenGrant(BaseModel):
    """Token endpoint response normalized across grant types."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int
    hub_id: Optional[int] = None

    def to_record(
        self,
        *,
        portal_id: int,
        issued_at_ms: int,
        fallback_refresh_token: Optional[str] = None,
    ) -> StoredOAuthToken:
        """Build the record to persist for a token issued at ``issued_at_ms``."""
        refresh_token = self.refresh_token or fallback_refresh_token
        if not refresh_token:
            raise ValueError("Token grant carries no refresh token.")
        return StoredOAuthToken(
            portal_id=portal_id,
            access_token=self.access_token,
            refresh_token=refresh_token,
            expires_at=issued_at_ms + self.expires_in * 1000,
        )


__all__ = ["StoredOAuthToken", "TokenGrant", "current_millis"]
