"""Service layer exports."""

from .domain_guard import DomainAuthorizationGuard
from .oauth_flows import CallbackResult, PrimaryOAuthFlow, SecondaryOAuthFlow
from .session_tokens import SessionTokenCodec, VerifiedSession
from .state_sweeper import StateSweeper
from .token_cipher import TokenCipherService

__all__ = [
    "CallbackResult",
    "DomainAuthorizationGuard",
    "PrimaryOAuthFlow",
    "SecondaryOAuthFlow",
    "SessionTokenCodec",
    "StateSweeper",
    "TokenCipherService",
    "VerifiedSession",
]
