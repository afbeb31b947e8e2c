"""One file per key under a state directory.

Keys such as ``copayAutofill:state`` contain characters some filesystems
reject, so file names are the URL-quoted key plus ``.json``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import quote, unquote

log = logging.getLogger(__name__)

_SUFFIX = ".json"


class FilePersistenceBackend:
    """Survives process restarts; writes are atomic per key."""

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    def _key_path(self, key: str) -> Path:
        return self._base / (quote(key, safe="") + _SUFFIX)

    def save(self, key: str, data: str) -> None:
        path = self._key_path(key)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(data, encoding="utf-8")
        os.replace(tmp, path)
        log.debug("Stored %s at %s", key, path)

    def load(self, key: str) -> str:
        path = self._key_path(key)
        if not path.is_file():
            raise KeyError(f"No value stored for {key} (path: {path})")
        return path.read_text(encoding="utf-8")

    def exists(self, key: str) -> bool:
        return self._key_path(key).is_file()

    def delete(self, key: str) -> None:
        self._key_path(key).unlink(missing_ok=True)

    def list_keys(self, prefix: str = "") -> list[str]:
        keys = (unquote(path.name[: -len(_SUFFIX)]) for path in self._base.glob("*" + _SUFFIX))
        return sorted(key for key in keys if key.startswith(prefix))
