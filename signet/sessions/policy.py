"""
SignetSessions - Cookie policy.

CookiePolicy is both the template a SessionMiddleware is configured with
and the per-response cookie derived from it. Instances are frozen: every
``with_*`` call returns a new policy, so one template can be shared by all
concurrent requests.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from email.utils import formatdate
from typing import Literal


SameSite = Literal["Strict", "Lax", "None"]


@dataclass(frozen=True)
class CookiePolicy:
    """
    Outgoing cookie attributes.

    Attributes:
        name: Cookie name
        value: Cookie value (None = not set)
        domain: Cookie domain
        path: Cookie path
        expires: Expiry in seconds since epoch (0 = session cookie)
        max_age: Max-Age in seconds (0 = not sent)
        secure: Secure flag (HTTPS only)
        http_only: HttpOnly flag (no script access)
        same_site: SameSite policy

    Example:
        >>> template = CookiePolicy.create("slsession").with_secure(True).with_http_only(True)
        >>> cookie = template.with_value("abc").with_expires(1700000000)
        >>> template.value is None
        True
    """

    name: str
    value: str | None = None
    domain: str | None = None
    path: str | None = None
    expires: int = 0
    max_age: int = 0
    secure: bool = False
    http_only: bool = False
    same_site: SameSite | None = None

    @classmethod
    def create(cls, name: str, value: str | None = None) -> CookiePolicy:
        if not name:
            raise ValueError("Cookie name must not be empty")
        return cls(name=name, value=value)

    # ========================================================================
    # Derivations
    # ========================================================================

    def with_value(self, value: str | None) -> CookiePolicy:
        return dataclasses.replace(self, value=value)

    def with_expires(self, expires: int | float | datetime) -> CookiePolicy:
        """Set expiry from epoch seconds or an aware datetime."""
        if isinstance(expires, datetime):
            expires = expires.timestamp()
        return dataclasses.replace(self, expires=int(expires))

    def with_max_age(self, max_age: int) -> CookiePolicy:
        return dataclasses.replace(self, max_age=int(max_age))

    def with_domain(self, domain: str | None) -> CookiePolicy:
        return dataclasses.replace(self, domain=domain)

    def with_path(self, path: str | None) -> CookiePolicy:
        return dataclasses.replace(self, path=path)

    def with_secure(self, secure: bool = True) -> CookiePolicy:
        return dataclasses.replace(self, secure=secure)

    def with_http_only(self, http_only: bool = True) -> CookiePolicy:
        return dataclasses.replace(self, http_only=http_only)

    def with_same_site(self, same_site: SameSite | None) -> CookiePolicy:
        if same_site is not None:
            same_site = same_site.capitalize()
            if same_site not in ("Strict", "Lax", "None"):
                raise ValueError(f"Invalid SameSite value: {same_site}")
        return dataclasses.replace(self, same_site=same_site)

    # ========================================================================
    # Serialization
    # ========================================================================

    def to_header(self) -> str:
        """
        Render as a ``Set-Cookie`` header value.

        Returns:
            e.g. ``slsession=abc; Expires=...; Path=/; Secure; HttpOnly``
        """
        cookie_parts = [f"{self.name}={self.value or ''}"]

        if self.domain:
            cookie_parts.append(f"Domain={self.domain}")

        if self.path:
            cookie_parts.append(f"Path={self.path}")

        if self.expires:
            cookie_parts.append(f"Expires={formatdate(self.expires, usegmt=True)}")

        if self.max_age:
            cookie_parts.append(f"Max-Age={self.max_age}")

        if self.secure:
            cookie_parts.append("Secure")

        if self.http_only:
            cookie_parts.append("HttpOnly")

        if self.same_site:
            cookie_parts.append(f"SameSite={self.same_site}")

        return "; ".join(cookie_parts)

    def __str__(self) -> str:
        return self.to_header()
