"""
SignetSessions - Fault definitions.

Two families of faults exist here and they are treated very differently:

- SessionConfigurationFault is fatal and only raised while a
  SessionMiddleware is being constructed.
- TokenRejectedFault is routine. It is raised inside the token codec and
  always caught before it reaches request handling; the reason it carries
  is for diagnostics only.
"""

from __future__ import annotations

from enum import Enum

from signet.faults.core import Fault, Severity, FaultDomain


# ============================================================================
# Session Fault Base
# ============================================================================

class SessionFault(Fault):
    """Base class for session-related faults."""

    domain = FaultDomain.SESSION


# ============================================================================
# Configuration Faults
# ============================================================================

class SessionConfigurationFault(SessionFault):
    """
    Invalid or missing session configuration.

    Examples:
    - Empty HMAC secret
    - PEM data that does not load as an RSA key
    - Refresh percentage outside 0..100
    """

    code = "SESSION_CONFIGURATION_INVALID"
    message = "Invalid session configuration"
    domain = FaultDomain.CONFIG
    severity = Severity.FATAL

    def __init__(self, detail: str, **kwargs):
        super().__init__(**kwargs)
        self.detail = detail
        self.message = f"Invalid session configuration: {detail}"
        self.args = (self.message,)


# ============================================================================
# Token Faults
# ============================================================================

class TokenRejectReason(str, Enum):
    """Why an inbound token was not trusted."""

    MALFORMED = "malformed"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    NOT_YET_VALID = "not_yet_valid"
    MISSING_CLAIM = "missing_claim"
    INVALID_CLAIM = "invalid_claim"


class TokenRejectedFault(SessionFault):
    """
    Inbound session token is not trustworthy or not current.

    Never shown to clients: a rejected token degrades to an anonymous
    session.
    """

    code = "SESSION_TOKEN_REJECTED"
    message = "Session token rejected"
    severity = Severity.WARN

    def __init__(self, reason: TokenRejectReason, detail: str | None = None, **kwargs):
        super().__init__(**kwargs)
        self.reason = reason
        self.detail = detail
        if detail:
            self.message = f"Session token rejected ({reason.value}): {detail}"
        else:
            self.message = f"Session token rejected ({reason.value})"
        self.args = (self.message,)
        self.metadata["reason"] = reason.value
