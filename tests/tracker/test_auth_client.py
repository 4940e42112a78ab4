# tests/tracker/test_auth_client.py
"""
Тесты клиента /auth трекера.
"""

from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from src.common.exceptions import (
    GeoPulseError,
    InvalidCredentialsError,
    InvalidTokenError,
    RateLimitError,
    TokenRequiredError,
    ValidationError,
)
from src.tracker.auth_client import AuthClient

USER = {
    "id": "user-1",
    "username": "alice",
    "email": "alice@example.com",
    "createdAt": "2024-01-01T00:00:00Z",
}


def make_client(handler: Callable[[httpx.Request], httpx.Response], token: str | None = None) -> AuthClient:
    http = httpx.AsyncClient(base_url="http://api.test", transport=httpx.MockTransport(handler))
    return AuthClient("http://api.test", api_prefix="/api/v1", client=http, token=token)


def session(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "data": {"token": "tok-1", "user": USER}})


class TestAuthClient:

    @pytest.mark.asyncio
    async def test_login_stores_token(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return session(request)

        client = make_client(handler)
        user = await client.login("alice@example.com", "Str0ng!Pass")

        assert client.token == "tok-1"
        assert client.is_authenticated
        assert user.username == "alice"
        assert seen[0].url.path == "/api/v1/auth/login"
        assert json.loads(seen[0].content) == {"email": "alice@example.com", "password": "Str0ng!Pass"}

    @pytest.mark.asyncio
    async def test_register(self) -> None:
        client = make_client(lambda request: httpx.Response(201, json=session(request).json()))

        user = await client.register("alice", "alice@example.com", "Str0ng!Pass")

        assert user.id == "user-1"
        assert client.token == "tok-1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error", "expected"),
        [
            (400, "Validation failed", ValidationError),
            (401, "Invalid credentials", InvalidCredentialsError),
            (401, "Access token required", TokenRequiredError),
            (403, "Invalid or expired token", InvalidTokenError),
            (429, "Too many authentication attempts, please try again later.", RateLimitError),
        ],
    )
    async def test_error_mapping(self, status: int, error: str, expected: type[Exception]) -> None:
        client = make_client(lambda request: httpx.Response(status, json={"success": False, "error": error}))

        with pytest.raises(expected) as exc_info:
            await client.login("alice@example.com", "whatever")

        assert exc_info.value.message == error
        assert not client.is_authenticated

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        client = make_client(lambda request: httpx.Response(502, text="bad gateway"))

        with pytest.raises(GeoPulseError) as exc_info:
            await client.login("alice@example.com", "whatever")

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_profile_requires_token(self) -> None:
        client = make_client(session)

        with pytest.raises(TokenRequiredError):
            await client.profile()

    @pytest.mark.asyncio
    async def test_profile_and_refresh_send_bearer(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path.endswith("/refresh"):
                return httpx.Response(200, json={"success": True, "data": {"token": "tok-2"}})
            return httpx.Response(200, json={"success": True, "data": {"user": USER}})

        client = make_client(handler, token="tok-1")

        user = await client.profile()
        token = await client.refresh()

        assert user.email == "alice@example.com"
        assert token == "tok-2"
        assert client.token == "tok-2"
        assert [r.headers["Authorization"] for r in seen] == ["Bearer tok-1", "Bearer tok-1"]

    @pytest.mark.asyncio
    async def test_logout_forgets_token_even_offline(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        client = make_client(handler, token="tok-1")

        await client.logout()

        assert client.token is None
        assert client.user is None
