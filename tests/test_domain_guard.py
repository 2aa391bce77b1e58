try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import logging

import pytest

from app.core.errors import ForbiddenError, InvalidRequestError, UnauthorizedError
from app.services.domain_guard import DomainAuthorizationGuard


@pytest.fixture
def guard(codec) -> DomainAuthorizationGuard:
    return DomainAuthorizationGuard(codec)


def test_authorize_accepts_token_for_its_own_domain(guard, codec, claims) -> None:
    token = codec.issue(claims)

    session = guard.authorize(token, "shop-a.com")

    assert session.claims.user_id == claims.user_id


def test_cross_domain_use_is_forbidden_and_logged(guard, codec, claims, caplog) -> None:
    token = codec.issue(claims)

    with caplog.at_level(logging.WARNING, logger="app.services.domain_guard"):
        with pytest.raises(ForbiddenError) as exc_info:
            guard.authorize(token, "shop-b.com")

    assert exc_info.value.message == "Token domain mismatch"
    assert exc_info.value.status_code == 403
    assert "cross-domain" in caplog.text
    assert token not in caplog.text


@pytest.mark.parametrize("domain", ["Shop-A.com", "www.shop-a.com", "shop-a.com.", ""])
def test_domain_match_is_exact(guard, codec, claims, domain) -> None:
    token = codec.issue(claims)

    with pytest.raises(ForbiddenError):
        guard.authorize(token, domain)


def test_invalid_token_is_unauthorized(guard) -> None:
    with pytest.raises(UnauthorizedError) as exc_info:
        guard.authorize("garbage", "shop-a.com")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid token"


def test_expired_token_is_unauthorized(guard, codec, claims, clock) -> None:
    token = codec.issue(claims)
    clock.advance(24 * 60 * 60)

    with pytest.raises(UnauthorizedError):
        guard.authorize(token, "shop-a.com")


def test_bound_credential_wins_over_client_supplied_one() -> None:
    chosen = DomainAuthorizationGuard.select_credential(
        "bound-oauth-token", "user-api-key", provider="Airtable"
    )

    assert chosen == "bound-oauth-token"


def test_client_supplied_credential_used_only_when_none_bound() -> None:
    chosen = DomainAuthorizationGuard.select_credential(None, "user-api-key", provider="Airtable")

    assert chosen == "user-api-key"


def test_missing_credentials_are_an_invalid_request() -> None:
    with pytest.raises(InvalidRequestError) as exc_info:
        DomainAuthorizationGuard.select_credential(None, None, provider="Airtable")

    assert exc_info.value.message == "No Airtable authentication available"
