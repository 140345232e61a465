"""Durable key-value slots backing the archive."""

from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Protocol


class StorageError(OSError):
    """Base class for storage failures."""


class StorageQuotaExceededError(StorageError):
    """Raised when a value would not fit in the configured quota."""


class KeyValueStorage(Protocol):
    """One string value per key, written as a whole."""

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or ``None`` when the key was never written."""

    def set_item(self, key: str, value: str) -> None:
        """Replace the value stored under ``key``."""


def _check_quota(value: str, quota_bytes: Optional[int]) -> None:
    if quota_bytes is None:
        return
    size = len(value.encode("utf-8"))
    if size > quota_bytes:
        raise StorageQuotaExceededError(
            f"Value of {size} bytes exceeds the storage quota of {quota_bytes} bytes"
        )


@dataclass(slots=True)
class JsonFileStorage:
    """Keep each key in ``<directory>/<key>.json``.

    Values are written to a temporary file in the same directory and moved into
    place, so readers see either the old or the new value.
    """

    directory: Path
    quota_bytes: Optional[int] = None

    def __post_init__(self) -> None:
        self.directory = Path(self.directory).expanduser().resolve()
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]+", "-", key).strip("-.")
        if not safe:
            raise ValueError(f"Unusable storage key: {key!r}")
        return self.directory / f"{safe}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        _check_quota(value, self.quota_bytes)
        path = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.directory, prefix=f".{path.stem}-", suffix=".tmp"
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            tmp_path.replace(path)
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass


@dataclass(slots=True)
class MemoryStorage:
    """In-process storage, mainly for tests and embedding."""

    quota_bytes: Optional[int] = None
    _items: Dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(value, self.quota_bytes)
        self._items[key] = value


__all__ = [
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "StorageError",
    "StorageQuotaExceededError",
]
