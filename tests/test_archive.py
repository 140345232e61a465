"""Archive store tests."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, List

import pytest

from radialmap.archive import ArchiveStore
from radialmap.mindmap import MapNode
from radialmap.storage import JsonFileStorage, MemoryStorage, StorageQuotaExceededError


def _clock_from(ids: List[int]):
    moments: Iterator[datetime] = iter(
        datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=value)
        for value in ids
    )
    return lambda: next(moments)


def _map(title: str) -> MapNode:
    return MapNode(
        title=title,
        summary=f"{title} summary",
        children=[MapNode(title=f"{title} child", summary="c", source_text="quote")],
    )


class FlakyStorage(MemoryStorage):
    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageQuotaExceededError("quota exceeded")
        super().set_item(key, value)


def test_empty_archive_lists_nothing() -> None:
    assert ArchiveStore(MemoryStorage()).list() == []


def test_save_puts_new_entry_first() -> None:
    store = ArchiveStore(MemoryStorage(), clock=_clock_from([1000, 2000]))
    store.save("first.pdf", _map("First"))
    before = store.list()

    entries = store.save("second.pdf", _map("Second"))

    assert entries == store.list()
    assert len(entries) == len(before) + 1
    assert entries[0].file_name == "second.pdf"
    assert entries[0].id == 2000
    assert entries[0].mind_map == _map("Second")
    assert entries[0].created_at == "1970-01-01T00:00:02.000Z"


def test_listing_is_ordered_by_id_descending() -> None:
    store = ArchiveStore(MemoryStorage(), clock=_clock_from([100, 300, 200]))
    for name in ("a.pdf", "b.pdf", "c.pdf"):
        store.save(name, _map(name))

    assert [entry.id for entry in store.list()] == [300, 200, 100]


def test_delete_removes_only_matching_entry() -> None:
    store = ArchiveStore(MemoryStorage(), clock=_clock_from([1, 2, 3, 4]))
    for name in ("a", "b", "c", "d"):
        store.save(name, _map(name))

    remaining = store.delete(2)

    assert [entry.id for entry in remaining] == [4, 3, 1]
    assert [entry.file_name for entry in remaining] == ["d", "c", "a"]
    assert store.list() == remaining


def test_delete_of_unknown_id_is_a_no_op() -> None:
    store = ArchiveStore(MemoryStorage(), clock=_clock_from([5]))
    store.save("a", _map("a"))

    assert [entry.id for entry in store.delete(999)] == [5]


def test_failed_save_returns_previous_list(caplog: pytest.LogCaptureFixture) -> None:
    storage = FlakyStorage()
    store = ArchiveStore(storage, clock=_clock_from([10, 20]))
    before = store.save("kept.pdf", _map("Kept"))
    storage.fail_writes = True

    with caplog.at_level(logging.ERROR, logger="radialmap.archive"):
        after = store.save("lost.pdf", _map("Lost"))

    assert after == before
    assert store.list() == before
    assert "Failed to save" in caplog.text


def test_failed_delete_returns_previous_list() -> None:
    storage = FlakyStorage()
    store = ArchiveStore(storage, clock=_clock_from([10, 20]))
    store.save("a", _map("a"))
    before = store.save("b", _map("b"))
    storage.fail_writes = True

    assert store.delete(10) == before
    assert store.list() == before


def test_quota_rejects_oversized_archive() -> None:
    storage = MemoryStorage(quota_bytes=600)
    store = ArchiveStore(storage, clock=_clock_from([1, 2]))
    first = store.save("small", MapNode(title="t", summary="s"))

    second = store.save("big", MapNode(title="t", summary="s" * 2000))

    assert second == first
    assert len(second) == 1


@pytest.mark.parametrize(
    "blob",
    [
        "not json",
        json.dumps({"id": 1}),
        json.dumps([{"id": "x", "fileName": "a", "createdAt": "b", "mindMapData": {}}]),
        json.dumps([{"id": 1, "fileName": "a", "createdAt": "b", "mindMapData": {"title": 1}}]),
    ],
)
def test_corrupt_archive_lists_as_empty(blob: str, caplog: pytest.LogCaptureFixture) -> None:
    storage = MemoryStorage()
    storage.set_item("mindMapArchive", blob)

    with caplog.at_level(logging.ERROR, logger="radialmap.archive"):
        assert ArchiveStore(storage).list() == []
    assert "Failed to read" in caplog.text


def test_get_returns_entry_by_id() -> None:
    store = ArchiveStore(MemoryStorage(), clock=_clock_from([7, 8]))
    store.save("a", _map("a"))
    store.save("b", _map("b"))

    entry = store.get(7)

    assert entry is not None
    assert entry.file_name == "a"
    assert store.get(99) is None


def test_archive_round_trips_through_files(tmp_path: Path) -> None:
    storage = JsonFileStorage(tmp_path / "archive")
    store = ArchiveStore(storage, clock=_clock_from([1700000000000]))
    store.save("paper.pdf", _map("Paper"))

    reopened = ArchiveStore(JsonFileStorage(tmp_path / "archive"))
    entries = reopened.list()

    assert len(entries) == 1
    assert entries[0].mind_map == _map("Paper")
    stored = json.loads((tmp_path / "archive" / "mindMapArchive.json").read_text(encoding="utf-8"))
    assert stored[0]["fileName"] == "paper.pdf"
    assert stored[0]["mindMapData"]["children"][0]["sourceText"] == "quote"
    assert "children" not in stored[0]["mindMapData"]["children"][0]


def test_unreadable_archive_is_never_overwritten(caplog: pytest.LogCaptureFixture) -> None:
    good = {"fileName": "a", "createdAt": "b", "mindMapData": {"title": "t", "summary": "s"}}
    blob = json.dumps(
        [
            {"id": 3, **good},
            {"id": 2, **good},
            {"id": 1, "fileName": "bad", "createdAt": "b", "mindMapData": {"title": 1}},
        ]
    )
    storage = MemoryStorage()
    storage.set_item("mindMapArchive", blob)
    store = ArchiveStore(storage, clock=_clock_from([50]))

    with caplog.at_level(logging.ERROR, logger="radialmap.archive"):
        assert store.save("new.pdf", _map("New")) == []
        assert store.delete(3) == []

    assert storage.get_item("mindMapArchive") == blob
    assert "could not be read" in caplog.text
    assert "Failed to save" not in caplog.text
    assert "Failed to delete" not in caplog.text
