"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_airtable_client,
    get_airtable_oauth_client,
    get_domain_guard,
    get_google_oauth_client,
    get_oauth_state_encoder,
    get_session_codec,
    get_sheets_client,
    get_state_store,
    get_token_cipher_service,
)
from .config import get_app_settings, get_oauth_settings
from .flows import get_primary_flow, get_secondary_flow

__all__ = [
    "get_airtable_client",
    "get_airtable_oauth_client",
    "get_app_settings",
    "get_oauth_settings",
    "get_domain_guard",
    "get_google_oauth_client",
    "get_oauth_state_encoder",
    "get_primary_flow",
    "get_secondary_flow",
    "get_session_codec",
    "get_sheets_client",
    "get_state_store",
    "get_token_cipher_service",
]
