"""
FastAPI dependency utilities for injecting configuration.
"""

from fastapi import Depends, Request

from app.core.config import AppSettings, get_settings


def get_app_settings(request: Request) -> AppSettings:
    """Settings the running app was created with, falling back to the cached defaults."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


SettingsDependency = Depends(get_app_settings)

__all__ = ["SettingsDependency", "get_app_settings"]
