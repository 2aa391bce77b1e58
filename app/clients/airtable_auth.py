"""
Airtable OAuth client for the chained data-integration flow.

Airtable requires PKCE. Its token endpoint has accepted client credentials
either as HTTP Basic auth or in the form body depending on the app type, so the
exchange walks an ordered list of client-authentication strategies and keeps
the first response that is not an HTTP error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple
from urllib.parse import urlencode

import httpx

from app.clients.google_auth import OAuthTokenExchangeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AirtableTokens:
    access_token: str
    refresh_token: Optional[str]
    expires_in: Optional[int]


@dataclass(frozen=True)
class ClientAuthStrategy:
    """How client credentials are presented to the token endpoint."""

    name: str
    use_basic_auth: bool

    def apply(
        self, form: Dict[str, str], client_id: str, client_secret: str
    ) -> Tuple[Dict[str, str], Optional[httpx.BasicAuth]]:
        if self.use_basic_auth:
            return form, httpx.BasicAuth(client_id, client_secret)
        return {**form, "client_id": client_id, "client_secret": client_secret}, None


BASIC_AUTH = ClientAuthStrategy(name="basic", use_basic_auth=True)
REQUEST_BODY = ClientAuthStrategy(name="request_body", use_basic_auth=False)
DEFAULT_STRATEGIES: Tuple[ClientAuthStrategy, ...] = (BASIC_AUTH, REQUEST_BODY)


class AirtableOAuthClient:
    """Build Airtable authorization URLs and exchange PKCE-bound codes."""

    AUTH_BASE_URL = "https://airtable.com/oauth2/v1/authorize"
    TOKEN_URL = "https://airtable.com/oauth2/v1/token"

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: Iterable[str],
        strategies: Sequence[ClientAuthStrategy] = DEFAULT_STRATEGIES,
        timeout: float = 10.0,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._scopes = tuple(scopes)
        self._strategies = tuple(strategies)
        self._timeout = timeout

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._scopes),
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(
        self, code: str, code_verifier: str
    ) -> AirtableTokens:
        """Exchange ``code`` using each client-auth strategy in order."""
        form = {
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self._redirect_uri,
            "code_verifier": code_verifier,
        }
        response: Optional[httpx.Response] = None
        async with httpx.AsyncClient(
            timeout=self._timeout, headers={"Accept": "application/json"}
        ) as client:
            for strategy in self._strategies:
                data, auth = strategy.apply(form, self._client_id, self._client_secret)
                try:
                    response = await client.post(self.TOKEN_URL, data=data, auth=auth)
                except httpx.HTTPError as exc:
                    raise OAuthTokenExchangeError(f"Token request failed: {exc}") from exc
                if not response.is_error:
                    logger.info("Airtable token exchange succeeded via %s", strategy.name)
                    break
                logger.warning(
                    "Airtable token exchange via %s rejected with HTTP %s",
                    strategy.name,
                    response.status_code,
                )

        if response is None or response.is_error:
            status = response.status_code if response is not None else "n/a"
            raise OAuthTokenExchangeError(f"Token endpoint returned HTTP {status}")

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError("Token response is not JSON") from exc
        access_token = token_payload.get("access_token") if isinstance(token_payload, dict) else None
        if not access_token:
            raise OAuthTokenExchangeError("No access token received from Airtable")

        expires_in = token_payload.get("expires_in")
        return AirtableTokens(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token"),
            expires_in=int(expires_in) if expires_in else None,
        )


__all__ = [
    "AirtableOAuthClient",
    "AirtableTokens",
    "BASIC_AUTH",
    "ClientAuthStrategy",
    "DEFAULT_STRATEGIES",
    "REQUEST_BODY",
]
