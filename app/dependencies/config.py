"""
Settings dependencies for routes and flow assembly.
"""

from typing import Annotated

from fastapi import Depends

from app.core.config import AppSettings, OAuthSettings, get_settings


def get_app_settings() -> AppSettings:
    return get_settings()


def get_oauth_settings(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> OAuthSettings:
    """TTL and callback configuration shared by both OAuth flows."""
    return settings.oauth


__all__ = ["get_app_settings", "get_oauth_settings"]
