"""
OAuth flow orchestration for multi-domain sign-in.

Two three-legged authorization-code flows share one callback URL per provider,
whatever customer domain started them:

* :class:`PrimaryOAuthFlow` signs a user in with Google. Its state is a signed,
  self-contained ``{domain, timestamp}`` value, so nothing is stored between the
  two legs; the timestamp is re-validated on callback.
* :class:`SecondaryOAuthFlow` chains Airtable onto an existing session. It uses
  PKCE and parks ``{token, domain, codeVerifier, timestamp}`` in the shared
  state store under a random single-use identifier.

Both finish by redirecting to ``https://{domain}/`` with a session token bound
to that domain. Every failure surfaces as an :class:`~app.core.errors.AuthFlowError`
and no token is minted on a failed path.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlencode

from app.clients.airtable_auth import AirtableOAuthClient
from app.clients.google_auth import (
    GoogleOAuthClient,
    InvalidStateError,
    OAuthStateEncoder,
    OAuthTokenExchangeError,
    ProfileFetchError,
)
from app.clients.state_store import StateStore, TransactionNotFoundError
from app.core.errors import (
    ExpiredOrInvalidStateError,
    ExpiredStateError,
    InvalidRequestError,
    ProfileFetchFailedError,
    ProviderDeniedError,
    ProviderNotConfiguredError,
    TokenExchangeFailedError,
)
from app.core.logging import mask_secret
from app.models.oauth import OAuthTransactionState, SessionClaims
from app.services.domain_guard import DomainAuthorizationGuard
from app.services.pkce import derive_code_challenge, generate_code_verifier
from app.services.session_tokens import SessionTokenCodec
from app.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

DEFAULT_STATE_TTL_SECONDS = 10 * 60


@dataclass(frozen=True)
class CallbackResult:
    """Outcome of a successful provider callback."""

    redirect_url: str
    session_token: str
    claims: SessionClaims


def _domain_redirect(domain: str, **params: str) -> str:
    return f"https://{domain}/?{urlencode(params)}"


class PrimaryOAuthFlow:
    """Google sign-in producing a fresh domain-scoped session token."""

    def __init__(
        self,
        *,
        oauth_client: GoogleOAuthClient,
        state_encoder: OAuthStateEncoder,
        codec: SessionTokenCodec,
        state_ttl_seconds: int = DEFAULT_STATE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._oauth_client = oauth_client
        self._state_encoder = state_encoder
        self._codec = codec
        self._state_ttl_seconds = state_ttl_seconds
        self._clock = clock

    def start(self, requesting_domain: Optional[str]) -> str:
        """Return the consent URL for a sign-in started by ``requesting_domain``."""
        if not requesting_domain:
            raise InvalidRequestError("Missing return_domain parameter")

        state = self._state_encoder.encode(
            {"domain": requesting_domain, "timestamp": int(self._clock() * 1000)}
        )
        logger.info("Starting Google OAuth flow for domain %s", requesting_domain)
        return self._oauth_client.build_authorization_url(state=state)

    def _decode_state(self, state: str) -> tuple[str, int]:
        try:
            data = self._state_encoder.decode(state)
        except InvalidStateError as exc:
            logger.warning("Rejected Google callback: %s", exc)
            raise InvalidRequestError("Invalid state parameter") from exc

        domain = data.get("domain")
        timestamp = data.get("timestamp")
        if not isinstance(domain, str) or not domain or not isinstance(timestamp, int):
            raise InvalidRequestError("Invalid state parameter")
        return domain, timestamp

    async def complete_callback(
        self,
        *,
        code: Optional[str],
        state: Optional[str],
        provider_error: Optional[str] = None,
    ) -> CallbackResult:
        if provider_error:
            logger.warning("Google OAuth error: %s", provider_error)
            raise ProviderDeniedError(f"Authentication failed: {provider_error}")
        if not code or not state:
            raise InvalidRequestError("Missing code or state parameter")

        domain, timestamp = self._decode_state(state)
        if self._clock() * 1000 - timestamp > self._state_ttl_seconds * 1000:
            logger.warning("Google OAuth state for %s is too old", domain)
            raise ExpiredStateError("Authentication session expired")

        try:
            tokens = await self._oauth_client.exchange_authorization_code(code)
        except OAuthTokenExchangeError as exc:
            logger.warning("Google code exchange failed for %s: %s", domain, exc)
            raise TokenExchangeFailedError(f"Authentication failed: {exc}") from exc

        try:
            profile = await self._oauth_client.fetch_user_profile(tokens.access_token)
        except ProfileFetchError as exc:
            logger.warning("Google profile fetch failed for %s: %s", domain, exc)
            raise ProfileFetchFailedError(f"Authentication failed: {exc}") from exc

        claims = SessionClaims(
            user_id=profile.id,
            email=profile.email,
            name=profile.name,
            picture=profile.picture,
            domain=domain,
            google_access_token=tokens.access_token,
            google_refresh_token=tokens.refresh_token,
        )
        session_token = self._codec.issue(claims)
        logger.info("Authenticated user %s for domain %s", profile.id, domain)
        return CallbackResult(
            redirect_url=_domain_redirect(domain, token=session_token),
            session_token=session_token,
            claims=claims,
        )


class SecondaryOAuthFlow:
    """Airtable connection chained onto an existing session token."""

    def __init__(
        self,
        *,
        oauth_client: Optional[AirtableOAuthClient],
        guard: DomainAuthorizationGuard,
        codec: SessionTokenCodec,
        store: StateStore,
        cipher: TokenCipherService,
        state_ttl_seconds: int = DEFAULT_STATE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._oauth_client = oauth_client
        self._guard = guard
        self._codec = codec
        self._store = store
        self._cipher = cipher
        self._state_ttl_seconds = state_ttl_seconds
        self._clock = clock

    def _require_client(self) -> AirtableOAuthClient:
        if self._oauth_client is None:
            logger.error("Airtable OAuth requested but client credentials are not configured")
            raise ProviderNotConfiguredError("Airtable OAuth integration is not configured")
        return self._oauth_client

    async def start(
        self, *, existing_token: Optional[str], requesting_domain: Optional[str]
    ) -> str:
        """Persist the transaction and return the PKCE consent URL."""
        oauth_client = self._require_client()
        if not existing_token or not requesting_domain:
            raise InvalidRequestError("Missing token or domain parameter")

        self._guard.authorize(existing_token, requesting_domain)

        transaction_id = secrets.token_hex(16)
        code_verifier = generate_code_verifier()
        record = OAuthTransactionState(
            domain=requesting_domain,
            session_token=self._cipher.encrypt(existing_token),
            code_verifier=code_verifier,
            timestamp=int(self._clock() * 1000),
        )
        await self._store.put(transaction_id, record, self._state_ttl_seconds)

        logger.info(
            "Starting Airtable OAuth flow for domain %s (txn %s)",
            requesting_domain,
            mask_secret(transaction_id),
        )
        return oauth_client.build_authorization_url(
            state=transaction_id, code_challenge=derive_code_challenge(code_verifier)
        )

    async def _consume(self, state_id: str) -> OAuthTransactionState:
        try:
            record = await self._store.consume(state_id)
        except TransactionNotFoundError as exc:
            logger.warning("Unknown or replayed Airtable state %s", mask_secret(state_id))
            raise ExpiredOrInvalidStateError(
                "Invalid or expired authentication session"
            ) from exc

        if record.is_expired(now=self._clock(), ttl_seconds=self._state_ttl_seconds):
            logger.warning("Airtable state %s is too old", mask_secret(state_id))
            raise ExpiredOrInvalidStateError("Invalid or expired authentication session")
        if not record.session_token or not record.code_verifier:
            raise ExpiredOrInvalidStateError("Invalid or expired authentication session")
        return record

    async def complete_callback(
        self,
        *,
        code: Optional[str],
        state_id: Optional[str],
        provider_error: Optional[str] = None,
    ) -> CallbackResult:
        if provider_error:
            logger.warning("Airtable OAuth error: %s", provider_error)
            raise ProviderDeniedError(f"Airtable authentication failed: {provider_error}")
        if not code or not state_id:
            raise InvalidRequestError("Missing authorization code or state")
        oauth_client = self._require_client()

        record = await self._consume(state_id)
        try:
            original_token = self._cipher.decrypt(record.session_token or "")
        except ValueError as exc:
            raise ExpiredOrInvalidStateError(
                "Invalid or expired authentication session"
            ) from exc

        try:
            tokens = await oauth_client.exchange_authorization_code(
                code, record.code_verifier or ""
            )
        except OAuthTokenExchangeError as exc:
            logger.warning("Airtable code exchange failed for %s: %s", record.domain, exc)
            raise TokenExchangeFailedError(f"Airtable authentication failed: {exc}") from exc

        session = self._guard.authorize(original_token, record.domain)
        session_token = self._codec.reissue_with_additional_credentials(
            session,
            airtable_access_token=tokens.access_token,
            airtable_refresh_token=tokens.refresh_token,
        )
        claims = self._codec.verify(session_token).claims
        logger.info("Connected Airtable for user %s on %s", claims.user_id, record.domain)
        return CallbackResult(
            redirect_url=_domain_redirect(record.domain, token=session_token, connected="true"),
            session_token=session_token,
            claims=claims,
        )


__all__ = [
    "CallbackResult",
    "DEFAULT_STATE_TTL_SECONDS",
    "PrimaryOAuthFlow",
    "SecondaryOAuthFlow",
]
