"""Key-value storage backends for persisted favorites."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class PersistentKV(Protocol):
    """Synchronous local key-value store (a local-storage equivalent).

    ``set`` reports success as a boolean; implementations may also raise,
    and callers treat both the same way.
    """

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> bool:
        ...


class MemoryKV:
    """Process-local storage, used for guests and in tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileKV:
    """One file per key under *directory*, replaced atomically on write."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe = _UNSAFE_KEY_CHARS.sub("_", key) or "_"
        return self._directory / f"{safe}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError):
            _logger.warning("Failed to read %s", path, exc_info=True)
            return None

    def set(self, key: str, value: str) -> bool:
        path = self._path(key)
        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError:
            _logger.warning("Failed to write %s", path, exc_info=True)
            return False
        return True
