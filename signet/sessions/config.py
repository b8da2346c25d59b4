"""
SignetSessions - Configuration.

Typed session settings with layered loading. Merge order (later overrides
earlier):
1. Dataclass defaults
2. ``.env`` file (via python-dotenv)
3. Environment variables (SIGNET_* prefix)
4. Manual overrides

Key material can also be read from disk through ``*_FILE`` variables, e.g.
``SIGNET_SIGNING_KEY_FILE=/run/secrets/session.pem``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import dotenv_values

from .faults import SessionConfigurationFault
from .policy import CookiePolicy


@dataclass(frozen=True)
class SessionConfig:
    """
    Session middleware configuration.

    Attributes:
        algorithm: ``HS256`` or ``RS256``
        signing_key: Secret (HS256) or private PEM (RS256)
        verification_key: Public PEM (RS256); defaults to signing_key for HS256
        expiration_time: Token lifetime in seconds
        refresh_percent: Sliding refresh threshold (0..100)
        cookie_*: Cookie template attributes

    Example:
        >>> config = SessionConfig.from_env(env_file=".env")
        >>> sessions = SessionMiddleware.from_config(config)
    """

    algorithm: str = "HS256"
    signing_key: str = ""
    verification_key: Optional[str] = None
    expiration_time: int = 3600
    refresh_percent: int = 10
    cookie_name: str = "slsession"
    cookie_domain: Optional[str] = None
    cookie_path: Optional[str] = "/"
    cookie_secure: bool = True
    cookie_http_only: bool = True
    cookie_same_site: Optional[str] = "Lax"
    cookie_max_age: int = 0

    def resolved_verification_key(self) -> str:
        """
        Key used to verify tokens.

        Raises:
            SessionConfigurationFault: RS256 without a verification key
        """
        if self.verification_key:
            return self.verification_key

        if self.algorithm == "HS256":
            return self.signing_key

        raise SessionConfigurationFault(f"{self.algorithm} requires a separate verification_key")

    def cookie_policy(self) -> CookiePolicy:
        """Cookie template described by this config."""
        try:
            return (
                CookiePolicy.create(self.cookie_name)
                .with_domain(self.cookie_domain)
                .with_path(self.cookie_path)
                .with_secure(self.cookie_secure)
                .with_http_only(self.cookie_http_only)
                .with_same_site(self.cookie_same_site)
                .with_max_age(self.cookie_max_age)
            )
        except ValueError as e:
            raise SessionConfigurationFault(str(e)) from e

    # ========================================================================
    # Loading
    # ========================================================================

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SessionConfig:
        """
        Build config from a flat mapping, coercing string values.

        Unknown keys are ignored.

        Raises:
            SessionConfigurationFault: Value cannot be coerced
        """
        kwargs: dict[str, Any] = {}

        for f in fields(cls):
            if f.name not in data:
                continue
            kwargs[f.name] = _coerce(f.name, data[f.name], f.type)

        return cls(**kwargs)

    @classmethod
    def from_env(
        cls,
        prefix: str = "SIGNET_",
        env_file: Optional[str | os.PathLike] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> SessionConfig:
        """
        Load config from ``.env`` file, environment and overrides.

        Args:
            prefix: Environment variable prefix
            env_file: Optional path to a ``.env`` file
            overrides: Highest precedence values, keyed by field name
            environ: Environment mapping (defaults to os.environ)

        Returns:
            SessionConfig instance
        """
        raw: dict[str, Any] = {}

        if env_file is not None and Path(env_file).exists():
            raw.update(_strip_prefix(dotenv_values(env_file), prefix))

        raw.update(_strip_prefix(os.environ if environ is None else environ, prefix))

        for name in ("signing_key", "verification_key"):
            path = raw.pop(f"{name}_file", None)
            if path:
                raw[name] = _read_key_file(name, path)

        if overrides:
            raw.update(overrides)

        return cls.from_mapping(raw)


def _strip_prefix(values: Mapping[str, Optional[str]], prefix: str) -> dict[str, str]:
    """SIGNET_COOKIE_NAME -> cookie_name"""
    result = {}
    for key, value in values.items():
        if key.startswith(prefix) and value is not None:
            result[key[len(prefix):].lower()] = value
    return result


def _read_key_file(name: str, path: str) -> str:
    try:
        return Path(path).read_text()
    except OSError as e:
        raise SessionConfigurationFault(f"cannot read {name} from {path}: {e}") from e


def _coerce(name: str, value: Any, annotation: str) -> Any:
    """Parse string value to the field's type."""
    if not isinstance(value, str):
        return value

    if "bool" in annotation:
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1", "on"):
            return True
        if lowered in ("false", "no", "0", "off"):
            return False
        raise SessionConfigurationFault(f"{name} must be a boolean, got {value!r}")

    if "int" in annotation:
        try:
            return int(value.strip())
        except ValueError:
            raise SessionConfigurationFault(f"{name} must be an integer, got {value!r}") from None

    if "Optional" in annotation and value == "":
        return None

    return value
