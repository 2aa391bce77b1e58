"""
Google OAuth utilities for the primary sign-in flow.

These helpers build the consent URL, exchange authorization codes and read the
signed-in user's profile.
"""

from __future__ import annotations

import base64
import hmac
import json
from dataclasses import dataclass
from hashlib import sha256
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlencode

import httpx


class InvalidStateError(ValueError):
    """Raised when an OAuth state value is undecodable or has been tampered with."""


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except ValueError as exc:
            raise InvalidStateError("OAuth state is not valid base64.") from exc
        signature, serialized = decoded[:32], decoded[32:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise InvalidStateError("Invalid OAuth state signature.")
        try:
            payload = json.loads(serialized)
        except ValueError as exc:
            raise InvalidStateError("OAuth state payload is not JSON.") from exc
        if not isinstance(payload, dict):
            raise InvalidStateError("OAuth state payload must be an object.")
        return payload


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""


class ProfileFetchError(Exception):
    """Raised when the userinfo endpoint cannot be read."""


@dataclass(frozen=True)
class GoogleTokens:
    access_token: str
    refresh_token: Optional[str]
    expires_in: Optional[int]


@dataclass(frozen=True)
class GoogleProfile:
    id: str
    email: Optional[str]
    name: Optional[str]
    picture: Optional[str]


class GoogleOAuthClient:
    """Build Google authorization URLs and exchange authorization codes."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: Iterable[str],
        timeout: float = 10.0,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._scopes = tuple(scopes)
        self._timeout = timeout

    def build_authorization_url(self, state: str, access_type: str = "offline") -> str:
        """Construct the Google OAuth consent URL."""
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._scopes),
            "access_type": access_type,
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> GoogleTokens:
        """Exchange an authorization code for tokens."""
        payload = {
            "code": code,
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "redirect_uri": self._redirect_uri,
            "grant_type": "authorization_code",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
            token_payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise OAuthTokenExchangeError(f"Token request failed: {exc}") from exc

        access_token = token_payload.get("access_token") if isinstance(token_payload, dict) else None
        if response.status_code != httpx.codes.OK or not access_token:
            raise OAuthTokenExchangeError("No access token received from Google")

        expires_in = token_payload.get("expires_in")
        return GoogleTokens(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token"),
            expires_in=int(expires_in) if expires_in else None,
        )

    async def fetch_user_profile(self, access_token: str) -> GoogleProfile:
        """Return the identity behind ``access_token``."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    self.USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProfileFetchError(f"Failed to fetch Google profile: {exc}") from exc

        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise ProfileFetchError("Google profile is missing the user id")
        return GoogleProfile(
            id=str(user_id),
            email=data.get("email"),
            name=data.get("name"),
            picture=data.get("picture"),
        )


__all__ = [
    "GoogleOAuthClient",
    "GoogleProfile",
    "GoogleTokens",
    "InvalidStateError",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
    "ProfileFetchError",
]
