"""
FastAPI application entrypoint for the plant care CRM add-on.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.oauth import router as oauth_router
from app.api.routes import router as api_router
from app.clients import HubSpotOAuthClient, OAuthTokenStore, SQLiteDatabase
from app.core.config import AppSettings, get_settings
from app.core.logging import configure_logging
from app.services import OAuthTokenService


def _lifespan(settings: AppSettings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        database = SQLiteDatabase(settings.database.path)
        database.open()
        app.state.token_service = OAuthTokenService(
            store=OAuthTokenStore(database),
            oauth_client=HubSpotOAuthClient(settings.hubspot, settings.oauth),
            oauth_settings=settings.oauth,
        )
        try:
            yield
        finally:
            database.close()

    return lifespan


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Factory for the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Plant Care CRM Add-on",
        version="0.1.0",
        description="Plant search proxy and OAuth token management for a HubSpot UI card.",
        lifespan=_lifespan(settings),
    )
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors.allowed_origins),
        allow_origin_regex=settings.cors.allowed_origin_regex,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        allow_credentials=True,
        max_age=86400,
    )

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {"status": "Plant Care API is running"}

    app.include_router(oauth_router, prefix="/oauth")
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
