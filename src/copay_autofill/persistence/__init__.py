"""Pluggable key-value backends for persisted workflow state."""

from __future__ import annotations

from typing import TYPE_CHECKING

from copay_autofill.persistence.file_backend import FilePersistenceBackend
from copay_autofill.persistence.memory_backend import MemoryPersistenceBackend
from copay_autofill.persistence.protocols import IPersistenceBackend

if TYPE_CHECKING:
    from copay_autofill.core.config import PersistenceConfig


def create_backend(config: PersistenceConfig) -> IPersistenceBackend:
    """Build the backend named by ``config.backend``."""
    if config.backend == "memory":
        return MemoryPersistenceBackend()
    if config.backend == "file":
        return FilePersistenceBackend(config.store_path)
    raise ValueError(f"Unknown persistence backend: {config.backend!r}")


__all__ = [
    "IPersistenceBackend",
    "FilePersistenceBackend",
    "MemoryPersistenceBackend",
    "create_backend",
]
