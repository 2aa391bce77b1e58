try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import re

import pytest

from app.services.pkce import derive_code_challenge, generate_code_verifier

_BASE64URL = re.compile(r"^[A-Za-z0-9_-]+$")


def test_verifier_is_43_unpadded_base64url_chars() -> None:
    verifier = generate_code_verifier()

    assert len(verifier) == 43
    assert _BASE64URL.match(verifier)
    assert "=" not in verifier


def test_verifiers_are_not_repeated() -> None:
    assert len({generate_code_verifier() for _ in range(50)}) == 50


def test_challenge_matches_rfc7636_appendix_b() -> None:
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

    assert derive_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_challenge_is_deterministic_and_unpadded() -> None:
    verifier = generate_code_verifier()

    challenge = derive_code_challenge(verifier)

    assert challenge == derive_code_challenge(verifier)
    assert len(challenge) == 43
    assert _BASE64URL.match(challenge)


def test_short_verifier_entropy_is_rejected() -> None:
    with pytest.raises(ValueError):
        generate_code_verifier(16)
