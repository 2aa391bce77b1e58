"""
Domain authorization guard.

Every protected operation calls :meth:`DomainAuthorizationGuard.authorize`
before any side effect. A session token is only honoured when presented on
behalf of the exact domain it was issued to; there is no wildcard or subdomain
matching.
"""

from __future__ import annotations

import logging
from typing import Optional

from app.core.errors import ForbiddenError, InvalidRequestError, UnauthorizedError
from app.services.session_tokens import (
    SessionTokenCodec,
    SessionTokenError,
    VerifiedSession,
)

logger = logging.getLogger(__name__)


class DomainAuthorizationGuard:
    """Verify a session token and its binding to the requesting domain."""

    def __init__(self, codec: SessionTokenCodec) -> None:
        self._codec = codec

    def authorize(self, token: str, requesting_domain: str) -> VerifiedSession:
        try:
            session = self._codec.verify(token)
        except SessionTokenError as exc:
            logger.info("Rejected session token: %s", exc)
            raise UnauthorizedError("Invalid token") from exc

        if session.claims.domain != requesting_domain:
            logger.warning(
                "Possible cross-domain token use: token bound to %s presented for %s (user %s)",
                session.claims.domain,
                requesting_domain,
                session.claims.user_id,
            )
            raise ForbiddenError("Token domain mismatch")
        return session

    @staticmethod
    def select_credential(
        bound: Optional[str], fallback: Optional[str], *, provider: str
    ) -> str:
        """Pick the provider credential for a protected call.

        The credential bound inside verified claims always wins; a
        client-supplied one is only used when none is bound.
        """
        if bound:
            return bound
        if fallback:
            logger.info("Using client-supplied %s credential", provider)
            return fallback
        raise InvalidRequestError(f"No {provider} authentication available")


__all__ = ["DomainAuthorizationGuard"]
