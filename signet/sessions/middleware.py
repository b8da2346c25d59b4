"""
SignetSessions - Session middleware.

The SessionMiddleware runs the per-request token lifecycle:
1. Detection - Read the session cookie from the request
2. Validation - Verify the token (any failure means "no token")
3. Binding - Attach a SessionData container to the request
4. Mutation - Downstream handler reads/writes the session
5. Emission - Expire, leave alone, or re-issue the cookie

The middleware is app-scoped and immutable after construction. Everything
request-scoped lives on a ResolvedSession created per call.
"""

from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TYPE_CHECKING, Union

from .core import SessionData
from .faults import SessionConfigurationFault
from .policy import CookiePolicy
from .tokens import (
    HmacSha256,
    KeyMaterial,
    RsaSha256,
    Signer,
    TokenCodec,
    TokenParser,
    signer_for,
)

if TYPE_CHECKING:
    from signet.request import Request
    from signet.response import Response
    from .config import SessionConfig


DEFAULT_COOKIE = "slsession"
SESSION_ATTRIBUTE = "session"
DEFAULT_REFRESH_PERCENT = 10

# Expiration cookies are dated this far in the past
EXPIRED_COOKIE_AGE = 30 * 24 * 60 * 60

NextHandler = Callable[["Request", "Response"], Union["Response", Awaitable["Response"]]]


@dataclass(frozen=True)
class ResolvedSession:
    """
    Request-scoped result of reading the inbound cookie.

    Attributes:
        session: Container handed to the handler
        refresh: The inbound token is valid but close enough to expiry
            that it must be re-issued even if the session is unchanged
    """

    session: SessionData
    refresh: bool = False


class SessionMiddleware:
    """
    Stateless session middleware.

    Session state lives in a signed token stored in a cookie. A missing,
    malformed, forged or expired token is treated as no token at all: the
    handler gets an empty session and the request never fails because of
    the cookie.

    Example:
        >>> sessions = SessionMiddleware.from_symmetric_key_defaults("secret", 3600)
        >>> response = await sessions(request, Response(), handler)
    """

    def __init__(
        self,
        signer: Signer,
        signing_key: str | bytes,
        verification_key: str | bytes,
        default_cookie: CookiePolicy,
        token_parser: Optional[TokenParser] = None,
        expiration_time: int = 3600,
        refresh_percent: int = DEFAULT_REFRESH_PERCENT,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize session middleware.

        Args:
            signer: Signing algorithm
            signing_key: Secret (HS256) or private PEM (RS256)
            verification_key: Secret (HS256) or public PEM (RS256)
            default_cookie: Cookie template; its name is the session cookie
            token_parser: Token parser (defaults to TokenParser())
            expiration_time: Token and cookie lifetime in seconds
            refresh_percent: Re-issue unchanged sessions once this share of
                the lifetime is left (0..100)
            clock: Time source, seconds since epoch
            logger: Optional logger

        Raises:
            SessionConfigurationFault: Invalid keys or settings
        """
        if not isinstance(default_cookie, CookiePolicy):
            raise SessionConfigurationFault("default_cookie must be a CookiePolicy")

        if isinstance(expiration_time, bool) or not isinstance(expiration_time, int) or expiration_time <= 0:
            raise SessionConfigurationFault(
                f"expiration_time must be a positive integer, got {expiration_time!r}"
            )

        if (
            isinstance(refresh_percent, bool)
            or not isinstance(refresh_percent, int)
            or not 0 <= refresh_percent <= 100
        ):
            raise SessionConfigurationFault(
                f"refresh_percent must be an integer between 0 and 100, got {refresh_percent!r}"
            )

        self.logger = logger or logging.getLogger("signet.sessions")
        self.keys = KeyMaterial.load(signer, signing_key, verification_key)
        self.codec = TokenCodec(
            self.keys,
            parser=token_parser,
            clock=clock,
            logger=self.logger.getChild("tokens"),
        )
        self.default_cookie = default_cookie
        self.expiration_time = expiration_time
        self.refresh_percent = refresh_percent
        self.clock = clock

    # ========================================================================
    # Convenience constructors
    # ========================================================================

    @staticmethod
    def _secure_cookie(name: str = DEFAULT_COOKIE) -> CookiePolicy:
        return CookiePolicy.create(name).with_secure(True).with_http_only(True)

    @classmethod
    def from_symmetric_key_defaults(
        cls,
        symmetric_key: str | bytes,
        expiration_time: int,
        **kwargs: Any,
    ) -> SessionMiddleware:
        """
        HS256 with a shared secret, secure + HttpOnly ``slsession`` cookie.

        Only serve this over HTTPS: the cookie is marked Secure.
        """
        return cls(
            HmacSha256(),
            symmetric_key,
            symmetric_key,
            cls._secure_cookie(),
            TokenParser(),
            expiration_time,
            **kwargs,
        )

    @classmethod
    def from_asymmetric_key_defaults(
        cls,
        private_rsa_key: str | bytes,
        public_rsa_key: str | bytes,
        expiration_time: int,
        **kwargs: Any,
    ) -> SessionMiddleware:
        """RS256 with a PEM key pair, secure + HttpOnly ``slsession`` cookie."""
        return cls(
            RsaSha256(),
            private_rsa_key,
            public_rsa_key,
            cls._secure_cookie(),
            TokenParser(),
            expiration_time,
            **kwargs,
        )

    @classmethod
    def from_config(cls, config: SessionConfig, **kwargs: Any) -> SessionMiddleware:
        """Build middleware from a SessionConfig."""
        return cls(
            signer_for(config.algorithm),
            config.signing_key,
            config.resolved_verification_key(),
            config.cookie_policy(),
            TokenParser(),
            config.expiration_time,
            config.refresh_percent,
            **kwargs,
        )

    @property
    def cookie_name(self) -> str:
        return self.default_cookie.name

    # ========================================================================
    # Request entry point
    # ========================================================================

    async def __call__(
        self,
        request: Request,
        response: Response,
        next: Optional[NextHandler] = None,
    ) -> Response:
        """
        Process request with session management.

        Args:
            request: Incoming request
            response: Response to pass downstream (returned as-is when the
                session needs no cookie)
            next: Downstream handler, sync or async

        Returns:
            Response, possibly carrying the session cookie
        """
        now = int(self.clock())
        resolved = self.resolve(request, now)

        if next is not None:
            result = next(request.with_attribute(SESSION_ATTRIBUTE, resolved.session), response)
            if inspect.isawaitable(result):
                result = await result
            response = result

        return self.append_cookie(resolved, response, now)

    # ========================================================================
    # Phase 1-3: Detection, Validation, Binding
    # ========================================================================

    def resolve(self, request: Request, now: int | None = None) -> ResolvedSession:
        """
        Build the session for a request.

        Never raises for bad tokens.
        """
        if now is None:
            now = int(self.clock())

        value = request.cookie(self.cookie_name)
        if value is None:
            return ResolvedSession(SessionData.new_empty())

        claims = self.codec.parse_and_validate(value, now)
        if claims is None:
            self.logger.info("Ignoring invalid session cookie %r", self.cookie_name)
            return ResolvedSession(SessionData.new_empty())

        refresh = claims.refresh_due(now, self.refresh_percent)
        if refresh:
            self.logger.debug("Session token due for refresh (exp=%d)", claims.expiration)

        return ResolvedSession(
            SessionData.from_token_data(claims.session_data),
            refresh=refresh,
        )

    # ========================================================================
    # Phase 5: Emission
    # ========================================================================

    def cookie_for(self, resolved: ResolvedSession, now: int | None = None) -> CookiePolicy | None:
        """
        Decide the outgoing cookie.

        Returns:
            Expiration cookie, fresh token cookie, or None (leave response
            untouched)
        """
        if now is None:
            now = int(self.clock())

        session = resolved.session

        if session.is_empty() and session.has_changed():
            return self._expiration_cookie(now)

        if not session.has_changed() and not resolved.refresh:
            return None

        return self._token_cookie(session, now)

    def append_cookie(
        self,
        resolved: ResolvedSession,
        response: Response,
        now: int | None = None,
    ) -> Response:
        """Apply the cookie decision to a response."""
        cookie = self.cookie_for(resolved, now)
        if cookie is None:
            return response

        return response.with_cookie(cookie)

    def _token_cookie(self, session: SessionData, now: int) -> CookiePolicy:
        token = self.codec.create_token(session, now, self.expiration_time)

        return (
            self.default_cookie
            .with_value(token)
            .with_expires(now + self.expiration_time)
        )

    def _expiration_cookie(self, now: int) -> CookiePolicy:
        return (
            self.default_cookie
            .with_value(None)
            .with_expires(now - EXPIRED_COOKIE_AGE)
        )

    def __repr__(self) -> str:
        return (
            f"SessionMiddleware(algorithm={self.keys.algorithm!r}, cookie={self.cookie_name!r}, "
            f"expiration_time={self.expiration_time}, refresh_percent={self.refresh_percent})"
        )
