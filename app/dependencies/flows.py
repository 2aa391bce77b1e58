"""
Per-request assembly of the OAuth flow services.

Collaborators are resolved through ``Depends`` so that overriding any one of
them in ``app.dependency_overrides`` reaches the flows too.
"""

from typing import Annotated, Optional

from fastapi import Depends

from app.clients import AirtableOAuthClient, GoogleOAuthClient, OAuthStateEncoder, StateStore
from app.core.config import OAuthSettings
from app.services import (
    DomainAuthorizationGuard,
    PrimaryOAuthFlow,
    SecondaryOAuthFlow,
    SessionTokenCodec,
    TokenCipherService,
)

from .clients import (
    get_airtable_oauth_client,
    get_domain_guard,
    get_google_oauth_client,
    get_oauth_state_encoder,
    get_session_codec,
    get_state_store,
    get_token_cipher_service,
)
from .config import get_oauth_settings


def get_primary_flow(
    oauth_client: Annotated[GoogleOAuthClient, Depends(get_google_oauth_client)],
    state_encoder: Annotated[OAuthStateEncoder, Depends(get_oauth_state_encoder)],
    codec: Annotated[SessionTokenCodec, Depends(get_session_codec)],
    oauth_settings: Annotated[OAuthSettings, Depends(get_oauth_settings)],
) -> PrimaryOAuthFlow:
    return PrimaryOAuthFlow(
        oauth_client=oauth_client,
        state_encoder=state_encoder,
        codec=codec,
        state_ttl_seconds=oauth_settings.state_ttl_seconds,
    )


def get_secondary_flow(
    oauth_client: Annotated[Optional[AirtableOAuthClient], Depends(get_airtable_oauth_client)],
    guard: Annotated[DomainAuthorizationGuard, Depends(get_domain_guard)],
    codec: Annotated[SessionTokenCodec, Depends(get_session_codec)],
    store: Annotated[StateStore, Depends(get_state_store)],
    cipher: Annotated[TokenCipherService, Depends(get_token_cipher_service)],
    oauth_settings: Annotated[OAuthSettings, Depends(get_oauth_settings)],
) -> SecondaryOAuthFlow:
    return SecondaryOAuthFlow(
        oauth_client=oauth_client,
        guard=guard,
        codec=codec,
        store=store,
        cipher=cipher,
        state_ttl_seconds=oauth_settings.state_ttl_seconds,
    )


__all__ = ["get_primary_flow", "get_secondary_flow"]
