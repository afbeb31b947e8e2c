"""Dict-backed backend for tests and single-process runs."""

from __future__ import annotations

import logging

log = logging.getLogger(__name__)


class MemoryPersistenceBackend:
    """Nothing touches disk; state lives as long as the instance."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def save(self, key: str, data: str) -> None:
        self._values[key] = data
        log.debug("Stored %s in memory", key)

    def load(self, key: str) -> str:
        try:
            return self._values[key]
        except KeyError:
            raise KeyError(f"No value stored for {key}") from None

    def exists(self, key: str) -> bool:
        return key in self._values

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(key for key in self._values if key.startswith(prefix))
