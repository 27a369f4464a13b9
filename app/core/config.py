"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the OAuth token service
and the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


def _split_csv(value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
    if isinstance(value, tuple):
        return value
    if isinstance(value, list):
        return tuple(value)
    return tuple(item.strip() for item in value.split(",") if item.strip())


class HubSpotSettings(BaseSettings):
    """Configuration required for the HubSpot OAuth app and CRM API."""

    model_config = SettingsConfigDict(env_prefix="HUBSPOT_")

    client_id: str
    client_secret: str
    redirect_uri: str = "http://localhost:3000/oauth/callback"
    api_base_url: str = "https://api.hubapi.com"
    authorize_url: str = "https://app.hubspot.com/oauth/authorize"
    scopes: Annotated[tuple[str, ...], NoDecode] = (
        "crm.objects.contacts.read",
        "crm.objects.custom.read",
        "crm.objects.custom.write",
        "crm.schemas.custom.read",
        "oauth",
    )
    plant_object_type: str = Field(
        "plants",
        description="Object type id or name of the plants custom object.",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        return _split_csv(value)


class OAuthSettings(BaseSettings):
    """Token lifecycle tuning."""

    model_config = SettingsConfigDict(env_prefix="OAUTH_")

    refresh_grace_seconds: int = Field(
        300,
        description="Refresh access tokens this many seconds before they expire.",
    )
    default_expires_in: int = Field(
        1800,
        description="Lifetime assumed when the token endpoint omits expires_in.",
    )
    http_timeout: float = Field(
        10.0,
        description="Timeout in seconds for calls to the authorization server.",
    )


class DatabaseSettings(BaseSettings):
    """Location of the credential database."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    path: str = "data/plant_care.db"


class PerenualSettings(BaseSettings):
    """Configuration for the Perenual plant database."""

    model_config = SettingsConfigDict(env_prefix="PERENUAL_")

    api_key: Optional[str] = None
    base_url: str = "https://perenual.com/api/v2"


class CORSSettings(BaseSettings):
    """Origins allowed to call the API from the browser."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    allowed_origins: Annotated[tuple[str, ...], NoDecode] = (
        "https://app.hubspot.com",
        "https://app-eu1.hubspot.com",
        "https://app.hubspotqa.com",
    )
    allowed_origin_regex: str = r"https://.*\.hubspot(qa)?\.com"

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        return _split_csv(value)


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    hubspot: HubSpotSettings = Field(default_factory=HubSpotSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    perenual: PerenualSettings = Field(default_factory=PerenualSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "CORSSettings",
    "DatabaseSettings",
    "HubSpotSettings",
    "OAuthSettings",
    "PerenualSettings",
    "get_settings",
]
