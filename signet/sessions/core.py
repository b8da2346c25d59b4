"""
SignetSessions - Core types.

SessionData is the request-scoped state container handed to handlers. It is
built from the claims of a verified token (or empty) and remembers whether
anything mutated it, which is all the orchestrator needs to decide what to
do with the outgoing cookie.
"""

from __future__ import annotations

import json
from typing import Any, Iterator, Mapping


class SessionData:
    """
    Key/value session state with coarse change tracking.

    Rules:
    - Keys are strings, values must be JSON-serializable
    - Any mutating call marks the session changed, even if the stored value
      ends up identical
    - The changed flag never resets

    Example:
        >>> session = SessionData.new_empty()
        >>> session.has_changed()
        False
        >>> session.set("cart_items", 3)
        >>> session.has_changed()
        True
        >>> session.get("cart_items")
        3
    """

    __slots__ = ("_data", "_changed")

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data: dict[str, Any] = dict(data) if data else {}
        self._changed = False

    @classmethod
    def from_token_data(cls, data: Mapping[str, Any]) -> SessionData:
        """
        Build a container from decoded token claim data.

        Args:
            data: The decoded session claim

        Returns:
            Unchanged container holding a copy of ``data``
        """
        return cls(data)

    @classmethod
    def new_empty(cls) -> SessionData:
        """Build an empty, unchanged container."""
        return cls()

    # ========================================================================
    # Reads
    # ========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Get value with default."""
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        """Check if key exists."""
        return key in self._data

    def is_empty(self) -> bool:
        return not self._data

    def has_changed(self) -> bool:
        return self._changed

    def to_dict(self) -> dict[str, Any]:
        """Copy of the current contents (what goes into the token claim)."""
        return dict(self._data)

    # ========================================================================
    # Mutations
    # ========================================================================

    def set(self, key: str, value: Any) -> None:
        """
        Set value (marks changed).

        The value is normalized through JSON so that what the handler reads
        back is what the next request decodes from the token.

        Raises:
            TypeError: Key is not a string or value is not serializable
        """
        if not isinstance(key, str):
            raise TypeError(f"Session keys must be str, got {type(key).__name__}")

        self._data[key] = json.loads(json.dumps(value))
        self._changed = True

    def remove(self, key: str) -> None:
        """Remove key if present (marks changed)."""
        self._data.pop(key, None)
        self._changed = True

    def clear(self) -> None:
        """Remove all data (marks changed, even when already empty)."""
        self._data.clear()
        self._changed = True

    # ========================================================================
    # Mapping protocol
    # ========================================================================

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if key not in self._data:
            raise KeyError(key)
        self.remove(key)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __repr__(self) -> str:
        return f"SessionData(keys={sorted(self._data)!r}, changed={self._changed})"
