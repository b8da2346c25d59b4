"""
Signet - Stateless sessions carried in signed cookies.

Usage:
    >>> from signet import SessionMiddleware, Request, Response
    >>> sessions = SessionMiddleware.from_symmetric_key_defaults("secret", 3600)
    >>>
    >>> async def handler(request, response):
    ...     request.attribute("session").set("visits", 1)
    ...     return response
    >>>
    >>> response = await sessions(Request(), Response(), handler)
"""

__version__ = "0.1.0"

from .faults import Fault, FaultDomain, Severity

from .sessions import (
    SessionData,
    CookiePolicy,
    TokenCodec,
    TokenParser,
    HmacSha256,
    RsaSha256,
    SessionConfig,
    SessionMiddleware,
    SessionConfigurationFault,
    TokenRejectedFault,
)

from .request import Request
from .response import Response
from .asgi import SessionASGIMiddleware

__all__ = [
    "__version__",
    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    # Sessions
    "SessionData",
    "CookiePolicy",
    "TokenCodec",
    "TokenParser",
    "HmacSha256",
    "RsaSha256",
    "SessionConfig",
    "SessionMiddleware",
    "SessionConfigurationFault",
    "TokenRejectedFault",
    # HTTP
    "Request",
    "Response",
    "SessionASGIMiddleware",
]
