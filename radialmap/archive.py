"""Archive of previously generated mind maps."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from .mindmap import MapNode
from .sanitizer import MalformedPayloadError, parse_payload
from .storage import KeyValueStorage

LOGGER = logging.getLogger(__name__)

ARCHIVE_KEY = "mindMapArchive"


class ArchiveFormatError(ValueError):
    """Raised when the stored archive does not have the expected shape."""


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """A saved mind map. ``id`` is the creation time in milliseconds."""

    id: int
    file_name: str
    created_at: str
    mind_map: MapNode

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "createdAt": self.created_at,
            "mindMapData": self.mind_map.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any, **options: int) -> "ArchiveEntry":
        if not isinstance(data, dict):
            raise ArchiveFormatError("Archive entry must be an object")
        entry_id = data.get("id")
        if isinstance(entry_id, bool) or not isinstance(entry_id, int):
            raise ArchiveFormatError("Archive entry 'id' must be an integer")
        file_name = data.get("fileName")
        created_at = data.get("createdAt")
        if not isinstance(file_name, str) or not isinstance(created_at, str):
            raise ArchiveFormatError(
                "Archive entry requires string 'fileName' and 'createdAt'"
            )
        try:
            mind_map = parse_payload(data.get("mindMapData"), **options)
        except MalformedPayloadError as exc:
            raise ArchiveFormatError(f"Archive entry {entry_id} holds no mind map") from exc
        return cls(id=entry_id, file_name=file_name, created_at=created_at, mind_map=mind_map)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_millis(moment: datetime) -> int:
    return (moment.astimezone(timezone.utc) - _EPOCH) // timedelta(milliseconds=1)


def _to_iso(moment: datetime) -> str:
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


@dataclass(slots=True)
class ArchiveStore:
    """Keep the archive as one JSON array under a single storage key.

    Every operation reloads the stored list, so callers always see what was
    durably written. Write failures are logged and leave the previous list in
    place. An archive that cannot be read is never written over. The lock
    serializes callers within this process only; separate processes sharing
    the storage can still overwrite each other.
    """

    storage: KeyValueStorage
    key: str = ARCHIVE_KEY
    clock: Callable[[], datetime] = _utc_now
    sanitizer_options: Dict[str, int] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def list(self) -> List[ArchiveEntry]:
        with self._lock:
            try:
                return self._load()
            except Exception:
                LOGGER.error("Failed to read the mind map archive", exc_info=True)
                return []

    def get(self, entry_id: int) -> Optional[ArchiveEntry]:
        for entry in self.list():
            if entry.id == entry_id:
                return entry
        return None

    def save(self, file_name: str, mind_map: MapNode) -> List[ArchiveEntry]:
        with self._lock:
            try:
                entries = self._load()
            except Exception:
                LOGGER.error(
                    "Not saving mind map %r: the archive could not be read", file_name, exc_info=True
                )
                return []
            moment = self.clock()
            entry = ArchiveEntry(
                id=_to_millis(moment),
                file_name=file_name,
                created_at=_to_iso(moment),
                mind_map=mind_map,
            )
            try:
                self._persist([entry, *entries])
            except Exception:
                LOGGER.error("Failed to save mind map %r to the archive", file_name, exc_info=True)
                return entries
            LOGGER.info("Archived mind map %r as %s", file_name, entry.id)
            return self.list()

    def delete(self, entry_id: int) -> List[ArchiveEntry]:
        with self._lock:
            try:
                entries = self._load()
            except Exception:
                LOGGER.error(
                    "Not deleting archive entry %s: the archive could not be read",
                    entry_id,
                    exc_info=True,
                )
                return []
            remaining = [entry for entry in entries if entry.id != entry_id]
            try:
                self._persist(remaining)
            except Exception:
                LOGGER.error("Failed to delete archive entry %s", entry_id, exc_info=True)
                return entries
            if len(remaining) != len(entries):
                LOGGER.info("Deleted archive entry %s", entry_id)
            return self.list()

    def _load(self) -> List[ArchiveEntry]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ArchiveFormatError("Archive must be a JSON array")
        entries = [ArchiveEntry.from_dict(item, **self.sanitizer_options) for item in data]
        entries.sort(key=lambda entry: entry.id, reverse=True)
        return entries

    def _persist(self, entries: List[ArchiveEntry]) -> None:
        payload = json.dumps([entry.to_dict() for entry in entries], ensure_ascii=False)
        self.storage.set_item(self.key, payload)


__all__ = ["ARCHIVE_KEY", "ArchiveEntry", "ArchiveFormatError", "ArchiveStore"]
