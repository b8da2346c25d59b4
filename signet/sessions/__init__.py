"""
SignetSessions - Stateless, signed-cookie sessions.

Session state travels in a signed token inside a cookie; nothing is stored
on the server. This package provides:
- SessionData: request-scoped key/value container with change tracking
- TokenCodec: issues and validates HS256/RS256 tokens
- CookiePolicy: immutable cookie template
- SessionMiddleware: the per-request token lifecycle

Philosophy:
- Tokens are trusted fully or not at all
- Bad tokens never fail a request, they just mean "no session"
- Untouched sessions produce no Set-Cookie header
"""

from .core import SessionData

from .policy import CookiePolicy

from .tokens import (
    SESSION_CLAIM,
    Claims,
    HmacSha256,
    KeyMaterial,
    RsaSha256,
    Signer,
    Token,
    TokenCodec,
    TokenParser,
    signer_for,
)

from .faults import (
    SessionFault,
    SessionConfigurationFault,
    TokenRejectedFault,
    TokenRejectReason,
)

from .config import SessionConfig

from .middleware import (
    DEFAULT_COOKIE,
    DEFAULT_REFRESH_PERCENT,
    SESSION_ATTRIBUTE,
    ResolvedSession,
    SessionMiddleware,
)

__all__ = [
    # Core types
    "SessionData",
    "CookiePolicy",
    # Tokens
    "SESSION_CLAIM",
    "Claims",
    "HmacSha256",
    "KeyMaterial",
    "RsaSha256",
    "Signer",
    "Token",
    "TokenCodec",
    "TokenParser",
    "signer_for",
    # Faults
    "SessionFault",
    "SessionConfigurationFault",
    "TokenRejectedFault",
    "TokenRejectReason",
    # Config
    "SessionConfig",
    # Middleware
    "DEFAULT_COOKIE",
    "DEFAULT_REFRESH_PERCENT",
    "SESSION_ATTRIBUTE",
    "ResolvedSession",
    "SessionMiddleware",
]
