try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
import respx

from app.clients.airtable import AirtableAPIError, AirtableClient
from app.clients.airtable_auth import REQUEST_BODY, AirtableOAuthClient
from app.clients.google_auth import (
    GoogleOAuthClient,
    InvalidStateError,
    OAuthStateEncoder,
    OAuthTokenExchangeError,
    ProfileFetchError,
)

pytestmark = pytest.mark.anyio

GOOGLE_CALLBACK = "https://auth.example.com/auth/primary/callback"
AIRTABLE_CALLBACK = "https://auth.example.com/auth/secondary/callback"


def _google() -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id="google-id",
        client_secret="google-secret",
        redirect_uri=GOOGLE_CALLBACK,
        scopes=("openid", "email", "profile", "https://www.googleapis.com/auth/spreadsheets"),
    )


def _airtable(**kwargs) -> AirtableOAuthClient:
    return AirtableOAuthClient(
        client_id="airtable-id",
        client_secret="airtable-secret",
        redirect_uri=AIRTABLE_CALLBACK,
        scopes=("data.records:read", "data.records:write", "schema.bases:read"),
        **kwargs,
    )


def _form(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


def _query(url: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


async def test_state_encoder_round_trip_and_tamper_detection() -> None:
    encoder = OAuthStateEncoder(secret_key="google-secret")
    state = encoder.encode({"domain": "shop-a.com", "timestamp": 1})

    assert encoder.decode(state) == {"domain": "shop-a.com", "timestamp": 1}
    with pytest.raises(InvalidStateError):
        OAuthStateEncoder(secret_key="other").decode(state)
    with pytest.raises(InvalidStateError):
        encoder.decode("%%%not-base64%%%")


async def test_google_authorization_url() -> None:
    url = _google().build_authorization_url(state="opaque-state")

    assert url.startswith(GoogleOAuthClient.AUTH_BASE_URL)
    assert _query(url) == {
        "client_id": "google-id",
        "redirect_uri": GOOGLE_CALLBACK,
        "response_type": "code",
        "scope": "openid email profile https://www.googleapis.com/auth/spreadsheets",
        "access_type": "offline",
        "state": "opaque-state",
    }


async def test_google_code_exchange() -> None:
    with respx.mock:
        route = respx.post(GoogleOAuthClient.TOKEN_URL).mock(
            return_value=httpx.Response(
                200,
                json={"access_token": "ya29.a", "refresh_token": "1//r", "expires_in": 3599},
            )
        )
        tokens = await _google().exchange_authorization_code("auth-code")

    assert tokens.access_token == "ya29.a"
    assert tokens.refresh_token == "1//r"
    assert tokens.expires_in == 3599
    form = _form(route.calls.last.request)
    assert form["grant_type"] == "authorization_code"
    assert form["code"] == "auth-code"
    assert form["redirect_uri"] == GOOGLE_CALLBACK


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(400, json={"error": "invalid_grant"}),
        httpx.Response(200, json={"token_type": "Bearer"}),
    ],
)
async def test_google_code_exchange_without_access_token_fails(response) -> None:
    with respx.mock:
        respx.post(GoogleOAuthClient.TOKEN_URL).mock(return_value=response)
        with pytest.raises(OAuthTokenExchangeError):
            await _google().exchange_authorization_code("auth-code")


async def test_google_profile_fetch() -> None:
    with respx.mock:
        route = respx.get(GoogleOAuthClient.USERINFO_URL).mock(
            return_value=httpx.Response(
                200,
                json={"id": "1098", "email": "ada@example.com", "name": "Ada", "picture": "https://p"},
            )
        )
        profile = await _google().fetch_user_profile("ya29.a")

    assert profile.id == "1098"
    assert profile.email == "ada@example.com"
    assert route.calls.last.request.headers["authorization"] == "Bearer ya29.a"


async def test_google_profile_fetch_failure() -> None:
    with respx.mock:
        respx.get(GoogleOAuthClient.USERINFO_URL).mock(return_value=httpx.Response(401))
        with pytest.raises(ProfileFetchError):
            await _google().fetch_user_profile("expired")


async def test_airtable_authorization_url_uses_s256() -> None:
    url = _airtable().build_authorization_url(state="txn", code_challenge="challenge")

    query = _query(url)
    assert url.startswith(AirtableOAuthClient.AUTH_BASE_URL)
    assert query["code_challenge"] == "challenge"
    assert query["code_challenge_method"] == "S256"
    assert query["redirect_uri"] == AIRTABLE_CALLBACK
    assert query["scope"] == "data.records:read data.records:write schema.bases:read"
    assert query["state"] == "txn"


async def test_airtable_exchange_prefers_basic_auth() -> None:
    with respx.mock:
        route = respx.post(AirtableOAuthClient.TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "at", "refresh_token": "rt"})
        )
        tokens = await _airtable().exchange_authorization_code("code", "verifier")

    assert tokens.access_token == "at"
    assert route.call_count == 1
    request = route.calls.last.request
    expected = base64.b64encode(b"airtable-id:airtable-secret").decode()
    assert request.headers["authorization"] == f"Basic {expected}"
    form = _form(request)
    assert form["code_verifier"] == "verifier"
    assert "client_secret" not in form


async def test_airtable_exchange_falls_back_to_body_credentials() -> None:
    with respx.mock:
        route = respx.post(AirtableOAuthClient.TOKEN_URL).mock(
            side_effect=[
                httpx.Response(401, json={"error": "invalid_client"}),
                httpx.Response(200, json={"access_token": "at"}),
            ]
        )
        tokens = await _airtable().exchange_authorization_code("code", "verifier")

    assert tokens.access_token == "at"
    assert tokens.refresh_token is None
    assert route.call_count == 2
    second = route.calls[1].request
    assert "authorization" not in second.headers
    assert _form(second)["client_secret"] == "airtable-secret"


async def test_airtable_exchange_fails_when_every_strategy_is_rejected() -> None:
    with respx.mock:
        route = respx.post(AirtableOAuthClient.TOKEN_URL).mock(
            return_value=httpx.Response(400, json={"error": "invalid_grant"})
        )
        with pytest.raises(OAuthTokenExchangeError):
            await _airtable().exchange_authorization_code("code", "verifier")

    assert route.call_count == 2


async def test_airtable_strategy_order_is_configurable() -> None:
    with respx.mock:
        route = respx.post(AirtableOAuthClient.TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "at"})
        )
        await _airtable(strategies=(REQUEST_BODY,)).exchange_authorization_code("code", "v")

    assert "authorization" not in route.calls.last.request.headers


async def test_airtable_api_lists_bases_with_bearer_token() -> None:
    with respx.mock:
        route = respx.get(f"{AirtableClient.API_BASE_URL}/meta/bases").mock(
            return_value=httpx.Response(
                200,
                json={"bases": [{"id": "app1", "name": "CRM", "permissionLevel": "create"}]},
            )
        )
        bases = await AirtableClient().list_bases("at")

    assert bases == [{"id": "app1", "name": "CRM", "permissionLevel": "create"}]
    assert route.calls.last.request.headers["authorization"] == "Bearer at"


async def test_airtable_api_errors_carry_status_and_message() -> None:
    with respx.mock:
        respx.post(f"{AirtableClient.API_BASE_URL}/app1/Leads").mock(
            return_value=httpx.Response(
                422, json={"error": {"type": "UNKNOWN_FIELD_NAME", "message": "Unknown field name: \"Foo\""}}
            )
        )
        with pytest.raises(AirtableAPIError) as exc_info:
            await AirtableClient().create_record(
                "at", base_id="app1", table_name="Leads", fields={"Foo": 1}
            )

    assert exc_info.value.status_code == 422
    assert "Unknown field name" in str(exc_info.value)
