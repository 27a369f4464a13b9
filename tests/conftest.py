"""Pytest configuration shared across the suite."""

from pathlib import Path

import pytest

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - rootdir-style collection
    import _bootstrap  # type: ignore # noqa: F401

from app.clients.database import SQLiteDatabase
from app.clients.token_store import OAuthTokenStore


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture()
def database(tmp_path: Path):
    db = SQLiteDatabase(str(tmp_path / "tokens.db"))
    db.open()
    yield db
    db.close()


@pytest.fixture()
def token_store(database: SQLiteDatabase) -> OAuthTokenStore:
    return OAuthTokenStore(database)
