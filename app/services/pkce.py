"""PKCE (Proof Key for Code Exchange, RFC 7636) helpers.

Only the S256 transformation is provided. Verifiers and challenges are never
logged.
"""

from __future__ import annotations

import base64
import secrets
from hashlib import sha256
from typing import Final

_VERIFIER_BYTES: Final[int] = 32


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_code_verifier(num_bytes: int = _VERIFIER_BYTES) -> str:
    """Return ``num_bytes`` of CSPRNG output as unpadded base64url.

    32 bytes yield a 43-character verifier, the RFC minimum length.
    """
    if num_bytes < _VERIFIER_BYTES:
        raise ValueError("code verifier needs at least 32 bytes of entropy")
    return _b64url(secrets.token_bytes(num_bytes))


def derive_code_challenge(verifier: str) -> str:
    """Compute the S256 code challenge for ``verifier``."""
    return _b64url(sha256(verifier.encode("ascii")).digest())


__all__ = ["derive_code_challenge", "generate_code_verifier"]
