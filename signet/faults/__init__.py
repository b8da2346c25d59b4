"""
SignetFaults - Structured fault types.

Exceptions in Signet are typed fault signals carrying a stable code, a
domain and a severity, so callers can tell a fatal misconfiguration apart
from a routine rejected token without string matching.
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

__all__ = [
    "Fault",
    "FaultDomain",
    "Severity",
]
