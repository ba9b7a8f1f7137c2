try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
import logging
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from careadmin.clients.azure_auth import AzureADOAuthClient
from careadmin.core.config import AzureADSettings
from careadmin.main import app
from careadmin.services.oauth_proxy import OAuthProxyService

pytestmark = pytest.mark.anyio

CLIENT_SECRET = "super-secret-value"


class UpstreamStub:
    """Token endpoint double that records how often it was reached."""

    def __init__(self, response: httpx.Response | None = None) -> None:
        self.response = response or httpx.Response(200, json={"access_token": "AT"})
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return self.response


def _settings(**overrides: str) -> AzureADSettings:
    values = {
        "AZURE_AD__TENANTID": "tenant-1",
        "AZURE_AD__CLIENTID": "client-1",
        "AZURE_AD__CLIENTSECRET": CLIENT_SECRET,
        "AZURE_AD__SCOPE": "",
        "AZURE_AD__AUDIENCE": "api://records",
    }
    values.update(overrides)
    return AzureADSettings(**values)


def _service(upstream, settings: AzureADSettings | None = None) -> OAuthProxyService:
    settings = settings or _settings()
    client = AzureADOAuthClient(settings, transport=httpx.MockTransport(upstream))
    return OAuthProxyService(client, settings)


@pytest.fixture()
def upstream():
    from careadmin import dependencies

    stub = UpstreamStub()
    app.dependency_overrides[dependencies.get_oauth_proxy_service] = lambda: _service(stub)
    yield stub
    app.dependency_overrides.clear()


def _api(base_url: str = "http://testserver") -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=base_url)


@pytest.mark.parametrize("body", [{"refresh_token": ""}, {}, None])
async def test_refresh_rejects_missing_token_without_network_call(upstream, body) -> None:
    async with _api() as client:
        if body is None:
            response = await client.post("/api/auth/refresh")
        else:
            response = await client.post("/api/auth/refresh", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "refresh_token is required"}
    assert upstream.calls == 0


async def test_refresh_echoes_token_when_provider_does_not_rotate(upstream) -> None:
    upstream.response = httpx.Response(
        200, json={"access_token": "AT1", "expires_in": 7200, "token_type": "Bearer"}
    )

    async with _api() as client:
        response = await client.post("/api/auth/refresh", json={"refresh_token": "abc123"})

    assert response.status_code == 200
    assert response.json() == {
        "access_token": "AT1",
        "refresh_token": "abc123",
        "expires_in": 7200,
        "token_type": "Bearer",
    }
    assert upstream.calls == 1


async def test_refresh_returns_rotated_token_and_default_expiry(upstream) -> None:
    upstream.response = httpx.Response(
        200, json={"access_token": "AT2", "refresh_token": "rotated", "token_type": "Bearer"}
    )

    async with _api() as client:
        response = await client.post("/api/auth/refresh", json={"refresh_token": "abc123"})

    assert response.json()["refresh_token"] == "rotated"
    assert response.json()["expires_in"] == 3600


async def test_refresh_relays_upstream_rejection_verbatim(upstream) -> None:
    upstream.response = httpx.Response(
        400,
        content=b'{"error":"invalid_grant"}',
        headers={"content-type": "application/json"},
    )

    async with _api() as client:
        response = await client.post("/api/auth/refresh", json={"refresh_token": "abc123"})

    assert response.status_code == 400
    assert response.json() == {
        "error": "Token refresh failed",
        "details": '{"error":"invalid_grant"}',
    }
    assert upstream.calls == 1


async def test_refresh_maps_transport_failure_to_server_error() -> None:
    from careadmin import dependencies

    def broken(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("upstream timed out", request=request)

    app.dependency_overrides[dependencies.get_oauth_proxy_service] = lambda: _service(broken)
    try:
        async with _api() as client:
            response = await client.post(
                "/api/auth/refresh", json={"refresh_token": "abc123"}
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {
        "error": "Token refresh error",
        "message": "upstream timed out",
    }


async def test_refresh_never_logs_secrets(upstream, caplog) -> None:
    upstream.response = httpx.Response(400, text="denied")
    caplog.set_level(logging.DEBUG)

    async with _api() as client:
        await client.post("/api/auth/refresh", json={"refresh_token": "very-private-rt"})

    assert "very-private-rt" not in caplog.text
    assert CLIENT_SECRET not in caplog.text


async def test_refresh_cancellation_aborts_outbound_call() -> None:
    reached = asyncio.Event()

    async def hanging(request: httpx.Request) -> httpx.Response:
        reached.set()
        await asyncio.Event().wait()
        raise AssertionError("unreachable")

    service = _service(hanging)
    task = asyncio.ensure_future(service.refresh("abc123"))
    await asyncio.wait_for(reached.wait(), timeout=5)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


async def test_authorize_defaults_redirect_to_request_origin(upstream) -> None:
    async with _api("https://api.example.com") as client:
        response = await client.get("/api/auth/authorize")

    assert response.status_code == 200
    url = urlparse(response.json())
    assert url.netloc == "login.microsoftonline.com"
    assert url.path == "/tenant-1/oauth2/v2.0/authorize"
    query = parse_qs(url.query)
    assert query["redirect_uri"] == ["https://api.example.com/api/signin-oidc"]
    assert query["client_id"] == ["client-1"]
    assert query["response_type"] == ["code"]
    assert query["response_mode"] == ["query"]
    assert query["scope"] == ["api://records/access_as_user openid profile offline_access"]
    assert upstream.calls == 0


async def test_authorize_uses_caller_redirect_uri(upstream) -> None:
    async with _api() as client:
        response = await client.get(
            "/api/auth/authorize",
            params={"redirect_uri": "http://localhost:3000/callback"},
        )

    query = parse_qs(urlparse(response.json()).query)
    assert query["redirect_uri"] == ["http://localhost:3000/callback"]


async def test_authorize_keeps_explicitly_empty_redirect_uri(upstream) -> None:
    async with _api("https://api.example.com") as client:
        response = await client.get("/api/auth/authorize?redirect_uri=")

    assert response.status_code == 200
    query = parse_qs(urlparse(response.json()).query, keep_blank_values=True)
    assert query["redirect_uri"] == [""]


@pytest.mark.parametrize(
    ("scope", "audience", "expected"),
    [
        ("api://explicit/Records.Read", "api://ignored", "api://explicit/Records.Read openid profile offline_access"),
        ("", "api://aud", "api://aud/access_as_user openid profile offline_access"),
        ("", "", "openid profile offline_access"),
    ],
)
async def test_authorize_scope_precedence(scope: str, audience: str, expected: str) -> None:
    from careadmin import dependencies

    settings = _settings(AZURE_AD__SCOPE=scope, AZURE_AD__AUDIENCE=audience)
    app.dependency_overrides[dependencies.get_oauth_proxy_service] = lambda: _service(
        UpstreamStub(), settings
    )
    try:
        async with _api() as client:
            response = await client.get("/api/auth/authorize")
    finally:
        app.dependency_overrides.clear()

    scopes = parse_qs(urlparse(response.json()).query)["scope"]
    assert len(scopes) == 1
    assert scopes[0] == expected
    assert scopes[0].endswith("openid profile offline_access")


async def test_authorize_degrades_to_empty_values_when_unconfigured() -> None:
    from careadmin import dependencies

    settings = _settings(
        AZURE_AD__TENANTID="", AZURE_AD__CLIENTID="", AZURE_AD__CLIENTSECRET=""
    )
    app.dependency_overrides[dependencies.get_oauth_proxy_service] = lambda: _service(
        UpstreamStub(), settings
    )
    try:
        async with _api() as client:
            response = await client.get("/api/auth/authorize")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    url = urlparse(response.json())
    assert url.path == "//oauth2/v2.0/authorize"
    assert parse_qs(url.query, keep_blank_values=True)["client_id"] == [""]


async def test_authorize_logs_request_metadata_without_secret(upstream, caplog) -> None:
    caplog.set_level(logging.INFO, logger="careadmin.services.oauth_proxy")

    async with _api("https://api.example.com") as client:
        await client.get(
            "/api/auth/authorize",
            params={"redirect_uri": "https://spa.example.com/cb"},
            headers={"user-agent": "pytest-agent"},
        )

    records = [r for r in caplog.records if hasattr(r, "authorize")]
    assert len(records) == 1
    fields = records[0].authorize
    assert fields["host"] == "api.example.com"
    assert fields["path"] == "/api/auth/authorize"
    assert fields["method"] == "GET"
    assert fields["user_agent"] == "pytest-agent"
    assert "redirect_uri=" in fields["query_string"]
    assert fields["tenant_id"] == "tenant-1"
    assert fields["client_id"] == "client-1"
    assert fields["scope"].endswith("openid profile offline_access")
    assert CLIENT_SECRET not in caplog.text
    assert CLIENT_SECRET not in repr(fields)


async def test_signin_callback_exchanges_code(upstream) -> None:
    upstream.response = httpx.Response(
        200,
        json={
            "access_token": "AT3",
            "refresh_token": "RT3",
            "expires_in": 3599,
            "token_type": "Bearer",
        },
    )

    async with _api("https://api.example.com") as client:
        response = await client.get("/api/signin-oidc", params={"code": "the-code"})

    assert response.status_code == 200
    data = response.json()
    assert data["access_token"] == "AT3"
    assert data["refresh_token"] == "RT3"
    assert data["expires_in"] == 3599
    assert data["message"].startswith("Token exchange successful.")


async def test_signin_callback_relays_provider_error(upstream) -> None:
    async with _api() as client:
        response = await client.get(
            "/api/signin-oidc",
            params={"error": "access_denied", "error_description": "User cancelled"},
        )

    assert response.status_code == 400
    assert response.json() == {
        "error": "access_denied",
        "error_description": "User cancelled",
        "message": "Azure AD returned an error. access_denied: User cancelled",
    }
    assert upstream.calls == 0


async def test_signin_callback_requires_code(upstream) -> None:
    async with _api() as client:
        response = await client.get("/api/signin-oidc")

    assert response.status_code == 400
    assert response.json() == {"error": "No authorization code received from Azure AD"}
    assert upstream.calls == 0


async def test_signin_callback_relays_exchange_failure(upstream) -> None:
    upstream.response = httpx.Response(401, text="invalid_client")

    async with _api() as client:
        response = await client.get("/api/signin-oidc", params={"code": "the-code"})

    assert response.status_code == 400
    assert response.json() == {"error": "Token exchange failed", "details": "invalid_client"}
