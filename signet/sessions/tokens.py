"""
SignetSessions - Token Management

Compact signed tokens carrying session data, signers for the supported
algorithms, and the codec that issues and validates them.

Format: header.claims.signature
- header: {"typ": "JWT", "alg": "HS256"}
- claims: {"iat": 1700000000, "exp": 1700003600, "session-data": {...}}
- signature: alg(header_b64 + "." + claims_b64, signing_key)

Every segment is URL-safe base64 without padding.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .faults import SessionConfigurationFault, TokenRejectedFault, TokenRejectReason


SESSION_CLAIM = "session-data"


# ============================================================================
# Encoding helpers
# ============================================================================

def _b64encode(data: bytes) -> str:
    """URL-safe base64 encode."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(data: str) -> bytes:
    """URL-safe base64 decode."""
    # Add padding
    padding_len = 4 - (len(data) % 4)
    if padding_len != 4:
        data += "=" * padding_len

    return base64.urlsafe_b64decode(data.encode("ascii"))


def _b64encode_json(data: Mapping[str, Any]) -> str:
    """Encode JSON as URL-safe base64."""
    return _b64encode(json.dumps(data, separators=(",", ":")).encode("utf-8"))


def _b64decode_json(data: str) -> dict[str, Any]:
    """Decode URL-safe base64 as a JSON object."""
    decoded = json.loads(_b64decode(data))
    if not isinstance(decoded, dict):
        raise ValueError("expected a JSON object")
    return decoded


# ============================================================================
# Signers
# ============================================================================

class Signer(ABC):
    """
    Signing algorithm.

    Raw key material is loaded once (``load_*``) so that bad keys surface
    while the middleware is being built, never while serving a request.
    """

    algorithm: str = ""

    @abstractmethod
    def load_signing_key(self, key: str | bytes) -> Any:
        """Load key used to sign. Raises SessionConfigurationFault."""

    @abstractmethod
    def load_verification_key(self, key: str | bytes) -> Any:
        """Load key used to verify. Raises SessionConfigurationFault."""

    @abstractmethod
    def sign(self, payload: bytes, key: Any) -> bytes:
        """Create signature for payload."""

    @abstractmethod
    def verify(self, signature: bytes, payload: bytes, key: Any) -> bool:
        """Verify signature."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(algorithm={self.algorithm!r})"


class HmacSha256(Signer):
    """HMAC with SHA-256 (symmetric: signing key == verification key)."""

    algorithm = "HS256"

    def _load(self, key: str | bytes) -> bytes:
        if isinstance(key, str):
            key = key.encode("utf-8")
        if not isinstance(key, bytes) or not key:
            raise SessionConfigurationFault("HS256 requires a non-empty secret key")
        return key

    def load_signing_key(self, key: str | bytes) -> bytes:
        return self._load(key)

    def load_verification_key(self, key: str | bytes) -> bytes:
        return self._load(key)

    def sign(self, payload: bytes, key: bytes) -> bytes:
        return hmac.new(key, payload, hashlib.sha256).digest()

    def verify(self, signature: bytes, payload: bytes, key: bytes) -> bool:
        return hmac.compare_digest(signature, self.sign(payload, key))


class RsaSha256(Signer):
    """RSA PKCS#1 v1.5 with SHA-256 (private key signs, public key verifies)."""

    algorithm = "RS256"

    @staticmethod
    def _pem(key: str | bytes) -> bytes:
        if isinstance(key, str):
            key = key.encode("utf-8")
        if not isinstance(key, bytes) or not key.strip():
            raise SessionConfigurationFault("RS256 requires PEM encoded key material")
        return key

    def load_signing_key(self, key: str | bytes) -> rsa.RSAPrivateKey:
        try:
            private_key = serialization.load_pem_private_key(self._pem(key), password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SessionConfigurationFault(f"cannot load RSA private key: {e}") from e

        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise SessionConfigurationFault("RS256 signing key is not an RSA private key")
        return private_key

    def load_verification_key(self, key: str | bytes) -> rsa.RSAPublicKey:
        try:
            public_key = serialization.load_pem_public_key(self._pem(key))
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SessionConfigurationFault(f"cannot load RSA public key: {e}") from e

        if not isinstance(public_key, rsa.RSAPublicKey):
            raise SessionConfigurationFault("RS256 verification key is not an RSA public key")
        return public_key

    def sign(self, payload: bytes, key: rsa.RSAPrivateKey) -> bytes:
        return key.sign(payload, padding.PKCS1v15(), hashes.SHA256())

    def verify(self, signature: bytes, payload: bytes, key: rsa.RSAPublicKey) -> bool:
        try:
            key.verify(signature, payload, padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature:
            return False
        return True


SIGNERS: dict[str, type[Signer]] = {
    HmacSha256.algorithm: HmacSha256,
    RsaSha256.algorithm: RsaSha256,
}


def signer_for(algorithm: str) -> Signer:
    """
    Create signer by algorithm identifier.

    Raises:
        SessionConfigurationFault: Unsupported algorithm
    """
    try:
        return SIGNERS[algorithm]()
    except KeyError:
        raise SessionConfigurationFault(
            f"unsupported algorithm {algorithm!r} (expected one of {sorted(SIGNERS)})"
        ) from None


# ============================================================================
# Key Material
# ============================================================================

@dataclass(frozen=True)
class KeyMaterial:
    """
    Loaded keys plus the signer they belong to.

    Read-only after construction and shared by every request.
    """

    signer: Signer
    signing_key: Any = field(repr=False)
    verification_key: Any = field(repr=False)

    @classmethod
    def load(
        cls,
        signer: Signer,
        signing_key: str | bytes,
        verification_key: str | bytes,
    ) -> KeyMaterial:
        """
        Load raw key material for a signer.

        Raises:
            SessionConfigurationFault: Missing or invalid key material
        """
        if not isinstance(signer, Signer):
            raise SessionConfigurationFault(f"expected a Signer, got {type(signer).__name__}")

        return cls(
            signer=signer,
            signing_key=signer.load_signing_key(signing_key),
            verification_key=signer.load_verification_key(verification_key),
        )

    @property
    def algorithm(self) -> str:
        return self.signer.algorithm


# ============================================================================
# Tokens and claims
# ============================================================================

@dataclass(frozen=True)
class Token:
    """Parsed, not yet verified, token."""

    header: dict[str, Any]
    claims: dict[str, Any]
    signature: bytes = field(repr=False)
    payload: str = field(repr=False)

    def claim(self, name: str, default: Any = None) -> Any:
        return self.claims.get(name, default)


@dataclass(frozen=True)
class Claims:
    """
    The trusted content of a verified, current token.

    Attributes:
        issued_at: ``iat`` in seconds since epoch
        expiration: ``exp`` in seconds since epoch
        session_data: Decoded session claim
    """

    issued_at: int
    expiration: int
    session_data: dict[str, Any] = field(default_factory=dict)

    def refresh_due(self, now: int, refresh_percent: int) -> bool:
        """
        Whether at most ``refresh_percent`` of the validity window is left.

        Compared in integers so the boundary itself always counts as due.
        A zero-length window is always due.
        """
        window = self.expiration - self.issued_at
        if window <= 0:
            return True
        return (now - self.issued_at) * 100 >= (100 - refresh_percent) * window


class TokenParser:
    """
    Splits and decodes the compact wire format.

    Does not verify anything; see TokenCodec.
    """

    def parse(self, value: str) -> Token:
        """
        Parse token string.

        Raises:
            TokenRejectedFault: Value is not a well-formed token
        """
        if not isinstance(value, str):
            raise TokenRejectedFault(TokenRejectReason.MALFORMED, "token is not a string")

        parts = value.split(".")
        if len(parts) != 3:
            raise TokenRejectedFault(TokenRejectReason.MALFORMED, "expected 3 segments")

        header_b64, claims_b64, signature_b64 = parts

        try:
            header = _b64decode_json(header_b64)
            claims = _b64decode_json(claims_b64)
            signature = _b64decode(signature_b64)
        except (ValueError, RecursionError) as e:
            raise TokenRejectedFault(TokenRejectReason.MALFORMED, str(e)) from e

        return Token(
            header=header,
            claims=claims,
            signature=signature,
            payload=f"{header_b64}.{claims_b64}",
        )


# ============================================================================
# Token Codec
# ============================================================================

class TokenCodec:
    """
    Issues and validates session tokens.

    Responsibilities:
    - Sign session data into a token with ``iat``/``exp`` claims
    - Validate format, algorithm, signature, required claims and time bounds

    ``parse_and_validate`` collapses every failure into ``None``; the reason
    is only logged.
    """

    def __init__(
        self,
        keys: KeyMaterial,
        parser: TokenParser | None = None,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ):
        self.keys = keys
        self.parser = parser or TokenParser()
        self.clock = clock
        self.logger = logger or logging.getLogger("signet.sessions.tokens")

    def create_token(
        self,
        session_data: Mapping[str, Any],
        issued_at: int,
        ttl: int,
    ) -> str:
        """
        Sign session data into a token.

        Args:
            session_data: Session contents (SessionData or plain mapping)
            issued_at: ``iat`` in seconds since epoch
            ttl: Seconds until ``exp``

        Returns:
            Compact token string
        """
        if hasattr(session_data, "to_dict"):
            session_data = session_data.to_dict()

        header = {"typ": "JWT", "alg": self.keys.algorithm}
        claims = {
            "iat": int(issued_at),
            "exp": int(issued_at) + int(ttl),
            SESSION_CLAIM: dict(session_data),
        }

        payload = f"{_b64encode_json(header)}.{_b64encode_json(claims)}"
        signature = self.keys.signer.sign(payload.encode("ascii"), self.keys.signing_key)

        return f"{payload}.{_b64encode(signature)}"

    def validate(self, value: str, now: float | None = None) -> Claims:
        """
        Parse and fully validate a token.

        Checks:
        1. Format (3 segments, JSON header and claims)
        2. Header algorithm matches the configured signer
        3. Signature
        4. Required claims (iat, exp) and session claim shape
        5. iat <= now <= exp

        Raises:
            TokenRejectedFault: Token must not be trusted
        """
        token = self.parser.parse(value)

        algorithm = token.header.get("alg")
        if algorithm != self.keys.algorithm:
            raise TokenRejectedFault(
                TokenRejectReason.UNSUPPORTED_ALGORITHM,
                f"header alg {algorithm!r}",
            )

        if not self.keys.signer.verify(
            token.signature,
            token.payload.encode("ascii"),
            self.keys.verification_key,
        ):
            raise TokenRejectedFault(TokenRejectReason.INVALID_SIGNATURE)

        issued_at = self._numeric_claim(token, "iat")
        expiration = self._numeric_claim(token, "exp")

        session_data = token.claim(SESSION_CLAIM, {})
        if not isinstance(session_data, dict):
            raise TokenRejectedFault(
                TokenRejectReason.INVALID_CLAIM,
                f"{SESSION_CLAIM} is not an object",
            )

        if now is None:
            now = self.clock()

        if now > expiration:
            raise TokenRejectedFault(TokenRejectReason.EXPIRED)

        if now < issued_at:
            raise TokenRejectedFault(TokenRejectReason.NOT_YET_VALID)

        return Claims(
            issued_at=issued_at,
            expiration=expiration,
            session_data=session_data,
        )

    def parse_and_validate(self, value: str, now: float | None = None) -> Claims | None:
        """
        Validate a token, collapsing every failure into ``None``.

        Returns:
            Claims if the token is valid and current, None otherwise
        """
        try:
            return self.validate(value, now)
        except TokenRejectedFault as fault:
            self.logger.debug("Rejected session token: %s", fault.reason.value)
            return None

    @staticmethod
    def _numeric_claim(token: Token, name: str) -> int:
        value = token.claim(name)

        if value is None:
            raise TokenRejectedFault(TokenRejectReason.MISSING_CLAIM, name)

        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise TokenRejectedFault(TokenRejectReason.INVALID_CLAIM, f"{name} is not numeric")

        return int(value)
