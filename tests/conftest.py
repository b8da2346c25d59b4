"""
Shared test fixtures and helpers for the Signet test suite.
"""

from typing import Any, Callable, Dict, Optional

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from signet.request import Request
from signet.response import Response
from signet.sessions import (
    CookiePolicy,
    HmacSha256,
    SessionData,
    SessionMiddleware,
    TokenParser,
)
from signet.sessions.middleware import DEFAULT_COOKIE, SESSION_ATTRIBUTE


NOW = 1_700_000_000


# ============================================================================
# Clock
# ============================================================================


class FixedClock:
    """Settable time source."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FixedClock()


# ============================================================================
# Keys
# ============================================================================


def _generate_rsa_pair() -> tuple:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture(scope="session")
def rsa_keys():
    """(private_pem, public_pem) shared by the whole run."""
    return _generate_rsa_pair()


@pytest.fixture(scope="session")
def other_rsa_keys():
    return _generate_rsa_pair()


# ============================================================================
# Middleware
# ============================================================================


@pytest.fixture(params=["hmac", "symmetric_defaults", "asymmetric_defaults"])
def middleware(request, clock, rsa_keys):
    """Every supported way of building a SessionMiddleware."""
    if request.param == "hmac":
        return SessionMiddleware(
            HmacSha256(),
            "foo",
            "foo",
            CookiePolicy.create(DEFAULT_COOKIE),
            TokenParser(),
            100,
            clock=clock,
        )
    if request.param == "symmetric_defaults":
        return SessionMiddleware.from_symmetric_key_defaults("not relevant", 100, clock=clock)

    private_pem, public_pem = rsa_keys
    return SessionMiddleware.from_asymmetric_key_defaults(private_pem, public_pem, 200, clock=clock)


def make_hmac_middleware(clock, expiration_time=100, refresh_percent=10, **kwargs) -> SessionMiddleware:
    return SessionMiddleware(
        HmacSha256(),
        kwargs.pop("signing_key", "foo"),
        kwargs.pop("verification_key", "foo"),
        kwargs.pop("default_cookie", CookiePolicy.create(DEFAULT_COOKIE)),
        TokenParser(),
        expiration_time,
        refresh_percent,
        clock=clock,
        **kwargs,
    )


# ============================================================================
# Request / handler helpers
# ============================================================================


def make_token(
    middleware: SessionMiddleware,
    issued_at: int,
    expiration: int,
    data: Optional[Dict[str, Any]] = None,
) -> str:
    """Sign a token with the middleware's own keys."""
    return middleware.codec.create_token(
        {"foo": "bar"} if data is None else data,
        issued_at,
        expiration - issued_at,
    )


def request_with_cookie(value: str, name: str = DEFAULT_COOKIE) -> Request:
    return Request(cookies={name: value})


def request_with_response_cookies(response: Response, name: str = DEFAULT_COOKIE) -> Request:
    """Replay the cookie a previous response issued."""
    return request_with_cookie(response.get_cookie(name).value, name)


class RecordingHandler:
    """Downstream handler that records the session and runs a callback."""

    def __init__(self, callback: Optional[Callable[[SessionData], None]] = None):
        self.callback = callback
        self.calls = 0
        self.session: Optional[SessionData] = None

    def __call__(self, request: Request, response: Response) -> Response:
        self.calls += 1
        self.session = request.attribute(SESSION_ATTRIBUTE)
        assert isinstance(self.session, SessionData)
        if self.callback is not None:
            self.callback(self.session)
        return response


def writing_handler(value: Any = "bar") -> RecordingHandler:
    return RecordingHandler(lambda session: session.set("foo", value))


def empty_session_handler() -> RecordingHandler:
    def check(session: SessionData) -> None:
        assert session.is_empty()

    return RecordingHandler(check)
