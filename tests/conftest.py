"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.models.oauth import SessionClaims
from app.services.session_tokens import SessionTokenCodec

TEST_JWT_SECRET = "unit-test-signing-secret-0123456789abcdef"


class FakeClock:
    """Settable replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codec(clock: FakeClock) -> SessionTokenCodec:
    return SessionTokenCodec(secret=TEST_JWT_SECRET, clock=clock)


@pytest.fixture
def claims() -> SessionClaims:
    return SessionClaims(
        user_id="109876543210",
        email="ada@example.com",
        name="Ada Lovelace",
        picture="https://lh3.googleusercontent.com/a/ada",
        domain="shop-a.com",
        google_access_token="ya29.google-access",
        google_refresh_token="1//google-refresh",
    )
