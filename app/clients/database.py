"""SQLite database handle owned by the application lifespan."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS oauth_tokens (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        portal_id INTEGER NOT NULL UNIQUE,
        access_token TEXT NOT NULL,
        refresh_token TEXT NOT NULL,
        expires_at INTEGER NOT NULL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_oauth_tokens_portal_id ON oauth_tokens(portal_id)",
    "CREATE INDEX IF NOT EXISTS idx_oauth_tokens_expires_at ON oauth_tokens(expires_at)",
    """
    CREATE TRIGGER IF NOT EXISTS update_oauth_tokens_updated_at
    AFTER UPDATE OF access_token, refresh_token, expires_at ON oauth_tokens
    FOR EACH ROW
    BEGIN
        UPDATE oauth_tokens SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
    END
    """,
)


class StoreUnavailableError(RuntimeError):
    """Raised when the credential database cannot be reached."""


class SQLiteDatabase:
    """A single shared connection, opened explicitly and closed on shutdown.

    Statements run in a worker thread so callers on the event loop never block;
    a lock serializes access to the connection.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        if self._conn is not None:
            return
        if str(self._db_path) != ":memory:" and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            with conn:
                for statement in SCHEMA_STATEMENTS:
                    conn.execute(statement)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(
                f"Unable to open credential database at {self._db_path}"
            ) from exc
        self._conn = conn
        logger.info("Opened credential database at %s", self._db_path)

    def close(self) -> None:
        if self._conn is None:
            return
        with self._lock:
            self._conn.close()
            self._conn = None
        logger.info("Closed credential database at %s", self._db_path)

    def __enter__(self) -> "SQLiteDatabase":
        self.open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _run(
        self, sql: str, params: Sequence[Any], fetch: bool
    ) -> Optional[sqlite3.Row]:
        with self._lock:
            if self._conn is None:
                raise StoreUnavailableError("Credential database is not open.")
            try:
                with self._conn:
                    cursor = self._conn.execute(sql, params)
                    return cursor.fetchone() if fetch else None
            except sqlite3.Error as exc:
                raise StoreUnavailableError(str(exc)) from exc

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        """Run a single write statement in its own transaction."""
        await asyncio.to_thread(self._run, sql, params, False)

    async def fetch_one(
        self, sql: str, params: Sequence[Any] = ()
    ) -> Optional[sqlite3.Row]:
        return await asyncio.to_thread(self._run, sql, params, True)


__all__ = ["SCHEMA_STATEMENTS", "SQLiteDatabase", "StoreUnavailableError"]
