"""
Request - Minimal immutable request view.

Provides:
- Cookie lookup by name
- Request-scoped attributes (e.g. the session), set by copying
- Construction from an ASGI scope
"""

from __future__ import annotations

from http.cookies import CookieError, SimpleCookie
from types import MappingProxyType
from typing import Any, Mapping, Optional


class Request:
    """
    Immutable request abstraction.

    ``with_attribute`` returns a new request so that whatever a middleware
    attaches is visible only downstream of it.

    Example:
        >>> request = Request(cookies={"slsession": "abc"})
        >>> request.cookie("slsession")
        'abc'
        >>> request.with_attribute("session", 1).attribute("session")
        1
    """

    __slots__ = ("method", "path", "_headers", "_cookies", "_attributes", "scope")

    def __init__(
        self,
        method: str = "GET",
        path: str = "/",
        headers: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
        scope: Optional[dict] = None,
    ):
        self.method = method
        self.path = path
        self._headers = {k.lower(): v for k, v in (headers or {}).items()}
        if cookies is None:
            cookies = self._parse_cookies(self._headers.get("cookie", ""))
        self._cookies = MappingProxyType(dict(cookies))
        self._attributes = MappingProxyType(dict(attributes or {}))
        self.scope = scope

    @classmethod
    def from_scope(cls, scope: dict) -> Request:
        """
        Build request from an ASGI HTTP scope.

        Repeated headers are joined with ``; `` for cookies and ``, ``
        otherwise.
        """
        headers: dict[str, str] = {}
        for raw_name, raw_value in scope.get("headers", ()):
            name = raw_name.decode("latin-1").lower()
            value = raw_value.decode("latin-1")
            if name in headers:
                separator = "; " if name == "cookie" else ", "
                headers[name] = f"{headers[name]}{separator}{value}"
            else:
                headers[name] = value

        return cls(
            method=scope.get("method", "GET"),
            path=scope.get("path", "/"),
            headers=headers,
            scope=scope,
        )

    # ========================================================================
    # Headers & Cookies
    # ========================================================================

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get header value (case-insensitive)."""
        return self._headers.get(name.lower(), default)

    @property
    def cookies(self) -> Mapping[str, str]:
        """Get parsed cookies."""
        return self._cookies

    def cookie(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get single cookie value."""
        return self._cookies.get(name, default)

    @staticmethod
    def _parse_cookies(cookie_header: str) -> dict[str, str]:
        if not cookie_header:
            return {}

        cookie = SimpleCookie()
        try:
            cookie.load(cookie_header)
        except CookieError:
            return {}
        return {key: morsel.value for key, morsel in cookie.items()}

    # ========================================================================
    # Attributes
    # ========================================================================

    @property
    def attributes(self) -> Mapping[str, Any]:
        return self._attributes

    def attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> Request:
        """Return a copy carrying an extra attribute."""
        attributes = dict(self._attributes)
        attributes[name] = value

        return Request(
            method=self.method,
            path=self.path,
            headers=self._headers,
            cookies=self._cookies,
            attributes=attributes,
            scope=self.scope,
        )

    def __repr__(self) -> str:
        return f"Request({self.method} {self.path})"
