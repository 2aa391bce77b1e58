"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache
from typing import Optional

from app.clients import (
    AirtableClient,
    AirtableOAuthClient,
    DynamoDBStateStore,
    GoogleOAuthClient,
    GoogleSheetsClient,
    InMemoryStateStore,
    OAuthStateEncoder,
    SQLiteStateStore,
    StateStore,
)
from app.core.config import get_settings
from app.services import DomainAuthorizationGuard, SessionTokenCodec, TokenCipherService


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder derived from the Google client secret."""
    settings = _settings()
    return OAuthStateEncoder(secret_key=settings.google.client_secret)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    settings = _settings()
    return GoogleOAuthClient(
        client_id=settings.google.client_id,
        client_secret=settings.google.client_secret,
        redirect_uri=settings.oauth.google_callback_url,
        scopes=settings.oauth.google_scopes,
    )


@lru_cache()
def get_airtable_oauth_client() -> Optional[AirtableOAuthClient]:
    """Create the Airtable OAuth client, or ``None`` when it is not configured."""
    settings = _settings()
    if not settings.airtable.configured:
        return None
    return AirtableOAuthClient(
        client_id=settings.airtable.client_id,
        client_secret=settings.airtable.client_secret,
        redirect_uri=settings.oauth.airtable_callback_url,
        scopes=settings.oauth.airtable_scopes,
    )


@lru_cache()
def get_airtable_client() -> AirtableClient:
    return AirtableClient()


@lru_cache()
def get_sheets_client() -> GoogleSheetsClient:
    """Provide Google Sheets client instance."""
    return GoogleSheetsClient()


@lru_cache()
def get_state_store() -> StateStore:
    """Provide the OAuth transaction store selected by ``STATE_STORE_BACKEND``."""
    settings = _settings().state_store
    if settings.backend == "dynamodb":
        return DynamoDBStateStore(settings)
    if settings.backend == "sqlite":
        return SQLiteStateStore(settings.sqlite_path)
    return InMemoryStateStore()


@lru_cache()
def get_session_codec() -> SessionTokenCodec:
    """Provide the signer for domain-scoped session tokens."""
    settings = _settings()
    return SessionTokenCodec(
        secret=settings.security.jwt_secret,
        ttl_seconds=settings.oauth.session_ttl_seconds,
    )


@lru_cache()
def get_domain_guard() -> DomainAuthorizationGuard:
    return DomainAuthorizationGuard(get_session_codec())


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption for session tokens parked in the state store."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.security.jwt_secret
    return TokenCipherService(secret=secret)


__all__ = [
    "get_airtable_client",
    "get_airtable_oauth_client",
    "get_domain_guard",
    "get_google_oauth_client",
    "get_oauth_state_encoder",
    "get_session_codec",
    "get_sheets_client",
    "get_state_store",
    "get_token_cipher_service",
]
