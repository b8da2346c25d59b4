"""
ASGI adapter - Runs SessionMiddleware in front of any ASGI application.

The wrapped app finds the session at ``scope["session"]``. The cookie
decision is taken when the app starts its response, and the resulting
``Set-Cookie`` header (if any) is appended to ``http.response.start``.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from .request import Request
from .sessions.middleware import SESSION_ATTRIBUTE, SessionMiddleware

ASGIApp = Callable[[dict, Callable, Callable], Awaitable[None]]


class SessionASGIMiddleware:
    """
    ASGI middleware adapter.

    Example:
        >>> sessions = SessionMiddleware.from_symmetric_key_defaults("secret", 3600)
        >>> app = SessionASGIMiddleware(app, sessions)
    """

    __slots__ = ("app", "sessions", "logger")

    def __init__(
        self,
        app: ASGIApp,
        sessions: SessionMiddleware,
        logger: logging.Logger | None = None,
    ):
        self.app = app
        self.sessions = sessions
        self.logger = logger or logging.getLogger("signet.asgi")

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        await self.handle_http(scope, receive, send)

    async def handle_http(self, scope: dict, receive: Callable, send: Callable) -> None:
        """Resolve session, run app, attach cookie on response start."""
        sessions = self.sessions
        resolved = sessions.resolve(Request.from_scope(scope))

        scope = dict(scope)
        scope[SESSION_ATTRIBUTE] = resolved.session

        async def send_with_cookie(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                cookie = sessions.cookie_for(resolved)
                if cookie is not None:
                    headers = list(message.get("headers", []))
                    headers.append((b"set-cookie", cookie.to_header().encode("latin-1")))
                    message = {**message, "headers": headers}
                    self.logger.debug("Attached %s cookie to response", cookie.name)
            await send(message)

        await self.app(scope, receive, send_with_cookie)
