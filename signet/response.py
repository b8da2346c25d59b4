"""
Response - Minimal immutable response.

Provides:
- Status, body and headers
- Cookies keyed by name, one ``Set-Cookie`` header each
- ``with_cookie`` returning a new response, so an untouched response can be
  detected by identity
- ASGI 3 sending
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Awaitable, Callable, Iterator, Mapping, Optional, Union

from .sessions.policy import CookiePolicy


class Response:
    """
    Immutable response abstraction.

    Example:
        >>> response = Response("hello")
        >>> with_cookie = response.with_cookie(CookiePolicy.create("a", "1"))
        >>> with_cookie is response
        False
        >>> with_cookie.get_cookie("a").value
        '1'
    """

    __slots__ = ("status", "_content", "_headers", "_cookies", "encoding")

    def __init__(
        self,
        content: Union[bytes, str] = b"",
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, CookiePolicy]] = None,
        encoding: str = "utf-8",
    ):
        self.status = status
        self.encoding = encoding
        self._content = content.encode(encoding) if isinstance(content, str) else content
        self._headers = MappingProxyType({k.lower(): v for k, v in (headers or {}).items()})
        self._cookies = MappingProxyType(dict(cookies or {}))

    @property
    def body(self) -> bytes:
        return self._content

    @property
    def headers(self) -> Mapping[str, str]:
        return self._headers

    # ========================================================================
    # Cookie Helpers
    # ========================================================================

    @property
    def cookies(self) -> Mapping[str, CookiePolicy]:
        return self._cookies

    def get_cookie(self, name: str) -> Optional[CookiePolicy]:
        return self._cookies.get(name)

    def with_cookie(self, cookie: CookiePolicy) -> Response:
        """Return a copy with ``cookie`` set (replacing one of the same name)."""
        cookies = dict(self._cookies)
        cookies[cookie.name] = cookie

        return Response(
            content=self._content,
            status=self.status,
            headers=self._headers,
            cookies=cookies,
            encoding=self.encoding,
        )

    # ========================================================================
    # ASGI
    # ========================================================================

    def header_items(self) -> Iterator[tuple[bytes, bytes]]:
        """Raw ASGI header pairs, one ``set-cookie`` per cookie."""
        headers = dict(self._headers)
        headers.setdefault("content-length", str(len(self._content)))

        for name, value in headers.items():
            yield name.encode("latin-1"), value.encode("latin-1")

        for cookie in self._cookies.values():
            yield b"set-cookie", cookie.to_header().encode("latin-1")

    async def send_asgi(self, send: Callable[[dict], Awaitable[None]]) -> None:
        """Send response via ASGI."""
        await send({
            "type": "http.response.start",
            "status": self.status,
            "headers": list(self.header_items()),
        })
        await send({
            "type": "http.response.body",
            "body": self._content,
            "more_body": False,
        })

    def __repr__(self) -> str:
        return f"Response(status={self.status}, cookies={sorted(self._cookies)!r})"
