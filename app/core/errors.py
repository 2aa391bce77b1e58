"""
Error taxonomy for the authentication flows and protected operations.

Every failure that can reach a client is an :class:`AuthFlowError` carrying the
HTTP status it maps to and a message that is safe to show to the user. Lower
layers (codec, state store, provider clients) raise their own exceptions, which
the orchestrator and the domain guard translate into these.
"""

from __future__ import annotations

from http import HTTPStatus


class AuthFlowError(Exception):
    """Base class for user-visible authentication failures."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(AuthFlowError):
    """A required parameter is missing or unparsable."""

    status_code = HTTPStatus.BAD_REQUEST


class ProviderDeniedError(AuthFlowError):
    """The user declined consent or the provider reported an error."""

    status_code = HTTPStatus.BAD_REQUEST


class ExpiredStateError(AuthFlowError):
    """The self-contained primary-flow state is older than its TTL."""

    status_code = HTTPStatus.BAD_REQUEST


class ExpiredOrInvalidStateError(AuthFlowError):
    """The stored transaction is unknown, already consumed or stale."""

    status_code = HTTPStatus.BAD_REQUEST


class TokenExchangeFailedError(AuthFlowError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class ProfileFetchFailedError(AuthFlowError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class ProviderNotConfiguredError(AuthFlowError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class UnauthorizedError(AuthFlowError):
    """The presented session token is malformed, forged or expired."""

    status_code = HTTPStatus.UNAUTHORIZED


class ForbiddenError(AuthFlowError):
    """The session token is bound to a different domain than the caller."""

    status_code = HTTPStatus.FORBIDDEN


class StorageUnavailableError(AuthFlowError):
    """The transaction store could not be reached."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class UpstreamServiceError(AuthFlowError):
    """A protected integration call failed at the third-party API."""

    status_code = HTTPStatus.BAD_GATEWAY


__all__ = [
    "AuthFlowError",
    "ExpiredOrInvalidStateError",
    "ExpiredStateError",
    "ForbiddenError",
    "InvalidRequestError",
    "ProfileFetchFailedError",
    "ProviderDeniedError",
    "ProviderNotConfiguredError",
    "StorageUnavailableError",
    "TokenExchangeFailedError",
    "UnauthorizedError",
    "UpstreamServiceError",
]
