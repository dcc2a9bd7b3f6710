from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from salla_relay.clients.salla_auth import (
    RefreshNetworkError,
    RefreshRejectedError,
    SallaOAuthClient,
)
from salla_relay.core.config import SallaSettings

pytestmark = pytest.mark.anyio("asyncio")


def _settings() -> SallaSettings:
    return SallaSettings(
        SALLA_CLIENT_ID="client",
        SALLA_CLIENT_SECRET="secret",
        SALLA_TOKEN_URL="https://accounts.example.com/oauth2/token",
    )


def _client(handler) -> SallaOAuthClient:
    return SallaOAuthClient(_settings(), transport=httpx.MockTransport(handler))


async def test_refresh_posts_form_and_returns_rotated_grant() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "access_token": "new-access",
                "refresh_token": "new-refresh",
                "expires_in": 1209600,
                "token_type": "bearer",
            },
        )

    grant = await _client(handler).refresh_token("old-refresh")

    assert grant.access_token == "new-access"
    assert grant.refresh_token == "new-refresh"
    assert grant.expires_in == 1209600

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://accounts.example.com/oauth2/token"
    form = parse_qs(request.content.decode("utf-8"))
    assert form == {
        "client_id": ["client"],
        "client_secret": ["secret"],
        "refresh_token": ["old-refresh"],
        "grant_type": ["refresh_token"],
    }


@pytest.mark.parametrize("status_code", [400, 401, 500])
async def test_non_success_status_is_rejection(status_code: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text='{"error":"invalid_grant"}')

    with pytest.raises(RefreshRejectedError) as excinfo:
        await _client(handler).refresh_token("revoked")

    assert excinfo.value.status_code == status_code
    assert "invalid_grant" in str(excinfo.value)


async def test_timeout_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(RefreshNetworkError):
        await _client(handler).refresh_token("any")


async def test_connection_failure_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(RefreshNetworkError):
        await _client(handler).refresh_token("any")


async def test_non_json_body_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(RefreshNetworkError):
        await _client(handler).refresh_token("any")


async def test_incomplete_payload_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "only-access", "expires_in": 60})

    with pytest.raises(RefreshNetworkError):
        await _client(handler).refresh_token("any")
