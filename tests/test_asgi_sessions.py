"""
Tests SessionASGIMiddleware end to end through httpx.
"""

import json

import httpx
import pytest

from signet.asgi import SessionASGIMiddleware
from signet.response import Response
from signet.sessions.middleware import DEFAULT_COOKIE

from conftest import NOW, make_hmac_middleware, make_token


async def session_app(scope, receive, send):
    """Echo the session; /write and /clear mutate it."""
    session = scope["session"]

    if scope["path"] == "/write":
        session.set("foo", "bar")
    elif scope["path"] == "/clear":
        session.clear()

    await Response(json.dumps(session.to_dict()), headers={"content-type": "application/json"}).send_asgi(send)


@pytest.fixture
def sessions(clock):
    return make_hmac_middleware(clock, expiration_time=1000, refresh_percent=30)


@pytest.fixture
def client(sessions):
    transport = httpx.ASGITransport(app=SessionASGIMiddleware(session_app, sessions))
    return httpx.AsyncClient(transport=transport, base_url="http://testserver")


def cookie_value(set_cookie: str) -> str:
    return set_cookie.split(";", 1)[0].split("=", 1)[1]


class TestASGISessions:

    @pytest.mark.asyncio
    async def test_untouched_session_sends_no_cookie(self, client):
        async with client:
            response = await client.get("/")
        assert response.status_code == 200
        assert response.json() == {}
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_write_issues_cookie(self, client, sessions):
        async with client:
            response = await client.get("/write")

        set_cookies = response.headers.get_list("set-cookie")
        assert len(set_cookies) == 1
        assert set_cookies[0].startswith(f"{DEFAULT_COOKIE}=")

        claims = sessions.codec.parse_and_validate(cookie_value(set_cookies[0]))
        assert claims.session_data == {"foo": "bar"}
        assert claims.expiration == NOW + 1000

    @pytest.mark.asyncio
    async def test_inbound_cookie_is_read(self, client, sessions):
        token = make_token(sessions, NOW - 10, NOW + 990, {"foo": "from-cookie"})
        async with client:
            response = await client.get("/", headers={"cookie": f"{DEFAULT_COOKIE}={token}"})
        assert response.json() == {"foo": "from-cookie"}
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_invalid_cookie_is_ignored(self, client):
        async with client:
            response = await client.get("/", headers={"cookie": f"{DEFAULT_COOKIE}=garbage"})
        assert response.status_code == 200
        assert response.json() == {}
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_clear_sends_expiration_cookie(self, client, sessions):
        token = make_token(sessions, NOW - 10, NOW + 990)
        async with client:
            response = await client.get("/clear", headers={"cookie": f"{DEFAULT_COOKIE}={token}"})
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{DEFAULT_COOKIE}=;")
        assert "Expires=" in set_cookie

    @pytest.mark.asyncio
    async def test_refresh_due_reissues(self, client, sessions):
        token = make_token(sessions, NOW - 800, NOW + 200)
        async with client:
            response = await client.get("/", headers={"cookie": f"{DEFAULT_COOKIE}={token}"})
        claims = sessions.codec.parse_and_validate(cookie_value(response.headers["set-cookie"]))
        assert claims.issued_at == NOW
        assert claims.session_data == {"foo": "bar"}

    @pytest.mark.asyncio
    async def test_non_http_scope_passes_through(self, sessions):
        seen = []

        async def app(scope, receive, send):
            seen.append(scope)

        scope = {"type": "lifespan"}
        await SessionASGIMiddleware(app, sessions)(scope, None, None)
        assert seen == [scope]
        assert "session" not in scope
