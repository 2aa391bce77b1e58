"""
Signed, domain-scoped session tokens.

Tokens are compact HS256 JWTs (``header.payload.signature``, unpadded base64url
segments) whose flat payload is a :class:`~app.models.oauth.SessionClaims`.
Flow code only talks to :class:`SessionTokenCodec`, so the signing algorithm and
key source can change without touching it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Final

import jwt
from pydantic import ValidationError

from app.models.oauth import SessionClaims

logger = logging.getLogger(__name__)

_ALGORITHM: Final[str] = "HS256"
DEFAULT_SESSION_TTL_SECONDS: Final[int] = 24 * 60 * 60


class SessionTokenError(Exception):
    """Base class for tokens that must not be trusted."""


class MalformedTokenError(SessionTokenError):
    """The token does not have the expected structure or claims."""


class BadSignatureError(SessionTokenError):
    """The signature does not verify under the configured key."""


class TokenExpiredError(SessionTokenError):
    """The token's ``exp`` is not in the future."""


@dataclass(frozen=True)
class VerifiedSession:
    """Claims whose signature and expiry were checked by the codec."""

    token: str
    claims: SessionClaims


class SessionTokenCodec:
    """Issue, verify and re-issue session tokens."""

    def __init__(
        self,
        *,
        secret: str,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret is required to issue session tokens.")
        self._secret = secret
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def _sign(self, claims: SessionClaims) -> str:
        return jwt.encode(claims.to_payload(), self._secret, algorithm=_ALGORITHM)

    def issue(self, claims: SessionClaims) -> str:
        """Sign ``claims`` with ``iat = now`` and ``exp = now + ttl``."""
        now = self._now()
        stamped = claims.model_copy(update={"iat": now, "exp": now + self._ttl_seconds})
        return self._sign(stamped)

    def verify(self, token: str) -> VerifiedSession:
        """Parse ``token`` and check its signature and expiry.

        Raises :class:`MalformedTokenError`, :class:`BadSignatureError` or
        :class:`TokenExpiredError`.
        """
        if not token or token.count(".") != 2:
            raise MalformedTokenError("Session token must have three segments.")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                # Expiry is checked below against the injected clock.
                options={"verify_exp": False, "verify_iat": False, "require": ["exp", "iat"]},
            )
        except jwt.InvalidSignatureError as exc:
            raise BadSignatureError("Session token signature mismatch.") from exc
        except jwt.InvalidTokenError as exc:
            raise MalformedTokenError(f"Session token cannot be decoded: {exc}") from exc

        try:
            claims = SessionClaims.model_validate(payload)
        except ValidationError as exc:
            raise MalformedTokenError("Session token is missing required claims.") from exc

        if claims.exp is None or claims.exp <= self._now():
            raise TokenExpiredError("Session token expired.")
        return VerifiedSession(token=token, claims=claims)

    def reissue_with_additional_credentials(
        self,
        verified: VerifiedSession,
        *,
        airtable_access_token: str,
        airtable_refresh_token: str | None,
    ) -> str:
        """Merge chained-provider credentials into already verified claims.

        ``iat`` is refreshed; ``exp``, ``domain`` and the identity claims are
        kept verbatim.
        """
        if not isinstance(verified, VerifiedSession):
            raise TypeError("Only claims returned by verify() can be re-issued.")
        merged = verified.claims.model_copy(
            update={
                "airtable_access_token": airtable_access_token,
                "airtable_refresh_token": airtable_refresh_token,
                "iat": self._now(),
            }
        )
        logger.debug("Re-issued session token for domain=%s", merged.domain)
        return self._sign(merged)


__all__ = [
    "BadSignatureError",
    "DEFAULT_SESSION_TTL_SECONDS",
    "MalformedTokenError",
    "SessionTokenCodec",
    "SessionTokenError",
    "TokenExpiredError",
    "VerifiedSession",
]
