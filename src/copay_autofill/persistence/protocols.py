"""Key-value backend contract for persisted workflow state."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IPersistenceBackend(Protocol):
    """Flat string key -> string value store (memory, local files, ...)."""

    def save(self, key: str, data: str) -> None:
        """Store *data* under *key*, replacing any previous value."""
        ...

    def load(self, key: str) -> str:
        """Return the value for *key*. Raises KeyError if absent."""
        ...

    def exists(self, key: str) -> bool:
        ...

    def delete(self, key: str) -> None:
        """Remove *key*; no-op if absent."""
        ...

    def list_keys(self, prefix: str = "") -> list[str]:
        """Sorted keys starting with *prefix*."""
        ...
