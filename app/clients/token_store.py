"""Persistence for per-portal OAuth credentials."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from app.clients.database import SQLiteDatabase
from app.models.oauth import StoredOAuthToken

logger = logging.getLogger(__name__)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class OAuthTokenStore:
    """One credential row per portal; every call reads or writes the database."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    async def upsert(self, record: StoredOAuthToken) -> None:
        logger.info("Storing tokens for portal %s", record.portal_id)
        await self._db.execute(
            """
            INSERT INTO oauth_tokens (portal_id, access_token, refresh_token, expires_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(portal_id) DO UPDATE SET
                access_token = excluded.access_token,
                refresh_token = excluded.refresh_token,
                expires_at = excluded.expires_at
            """,
            (
                record.portal_id,
                record.access_token,
                record.refresh_token,
                record.expires_at,
            ),
        )

    async def get(self, portal_id: int) -> Optional[StoredOAuthToken]:
        row = await self._db.fetch_one(
            """
            SELECT portal_id, access_token, refresh_token, expires_at,
                   created_at, updated_at
            FROM oauth_tokens
            WHERE portal_id = ?
            """,
            (portal_id,),
        )
        if row is None:
            logger.debug("No tokens stored for portal %s", portal_id)
            return None
        return StoredOAuthToken(
            portal_id=row["portal_id"],
            access_token=row["access_token"],
            refresh_token=row["refresh_token"],
            expires_at=row["expires_at"],
            created_at=_parse_timestamp(row["created_at"]),
            updated_at=_parse_timestamp(row["updated_at"]),
        )

    async def delete(self, portal_id: int) -> None:
        logger.info("Deleting tokens for portal %s", portal_id)
        await self._db.execute(
            "DELETE FROM oauth_tokens WHERE portal_id = ?",
            (portal_id,),
        )


__all__ = ["OAuthTokenStore"]
