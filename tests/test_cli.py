"""Command line interface tests."""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import pytest
from pypdf import PdfWriter

from radialmap.cli import main, resolve_node
from radialmap.mindmap import MapNode
from radialmap.storage import JsonFileStorage


def _shutdown_logging() -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


@pytest.fixture()
def config_path(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"archive": {"directory": str(tmp_path / "archive")}}),
        encoding="utf-8",
    )
    yield path
    _shutdown_logging()


def _write_payload(tmp_path: Path) -> Path:
    payload = tmp_path / "payload.json"
    payload.write_text(
        json.dumps(
            {
                "title": "Doc",
                "summary": "s",
                "children": [
                    {"title": "A", "summary": "a", "children": [{"title": "A1", "summary": "x"}]},
                    {"notATitle": 1},
                    {"title": "B", "summary": "b"},
                ],
            }
        ),
        encoding="utf-8",
    )
    return payload


def _archived_ids(config_path: Path, capsys: pytest.CaptureFixture[str]) -> list[int]:
    capsys.readouterr()
    assert main(["--config", str(config_path), "list"]) == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if line]
    return [int(line.split("\t")[0]) for line in lines]


def test_import_list_show_render_delete(
    tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    payload = _write_payload(tmp_path)
    assert main(["--config", str(config_path), "import", str(payload), "--name", "doc.pdf"]) == 0

    ids = _archived_ids(config_path, capsys)
    assert len(ids) == 1
    entry_id = ids[0]

    assert main(["--config", str(config_path), "show", str(entry_id)]) == 0
    outline = capsys.readouterr().out
    assert outline.splitlines() == ["- Doc: s", "  - A: a", "    - A1: x", "  - B: b"]

    output = tmp_path / "out" / "map.svg"
    assert (
        main(
            [
                "--config",
                str(config_path),
                "render",
                str(entry_id),
                "--output",
                str(output),
                "--select",
                "0.0",
                "--dark",
            ]
        )
        == 0
    )
    svg = output.read_text(encoding="utf-8")
    assert svg.startswith("<?xml")
    assert 'opacity="0.15"' in svg

    assert main(["--config", str(config_path), "delete", str(entry_id)]) == 0
    assert _archived_ids(config_path, capsys) == []
    assert main(["--config", str(config_path), "delete", str(entry_id)]) == 1


def test_import_rejects_malformed_payload(tmp_path: Path, config_path: Path) -> None:
    payload = tmp_path / "bad.json"
    payload.write_text('{"summary": "missing title"}', encoding="utf-8")

    assert main(["--config", str(config_path), "import", str(payload)]) == 1


def test_generate_from_pdf(tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    pdf_path = tmp_path / "notes.pdf"
    pdf_path.write_bytes(buffer.getvalue())

    assert main(["--config", str(config_path), "generate", str(pdf_path)]) == 0

    capsys.readouterr()
    assert main(["--config", str(config_path), "list"]) == 0
    listing = capsys.readouterr().out
    assert "notes.pdf" in listing
    assert "\tnotes" in listing


def test_unknown_archive_id_fails(config_path: Path) -> None:
    assert main(["--config", str(config_path), "show", "12345"]) == 1


def test_resolve_node_follows_positions() -> None:
    tree = MapNode(
        title="root",
        summary="r",
        children=[MapNode(title="a", summary="a"), MapNode(title="b", summary="b")],
    )

    assert resolve_node(tree, "root") is tree
    assert resolve_node(tree, "1") is tree.children[1]
    with pytest.raises(ValueError):
        resolve_node(tree, "2")
    with pytest.raises(ValueError):
        resolve_node(tree, "x")


def test_show_includes_source_quotes(
    tmp_path: Path, config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    payload = tmp_path / "quoted.json"
    payload.write_text(
        json.dumps(
            {
                "title": "Doc",
                "summary": "s",
                "sourceText": "",
                "children": [
                    {"title": "A", "summary": "a", "sourceText": "Quoted line."},
                    {"title": "B", "summary": "b"},
                ],
            }
        ),
        encoding="utf-8",
    )
    assert main(["--config", str(config_path), "import", str(payload)]) == 0
    [entry_id] = _archived_ids(config_path, capsys)

    assert main(["--config", str(config_path), "show", str(entry_id)]) == 0

    assert capsys.readouterr().out.splitlines() == [
        "- Doc: s",
        '  - A: a ("Quoted line.")',
        "  - B: b",
    ]


def test_delete_reports_failed_write(
    tmp_path: Path,
    config_path: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    payload = _write_payload(tmp_path)
    assert main(["--config", str(config_path), "import", str(payload)]) == 0
    [entry_id] = _archived_ids(config_path, capsys)

    def refuse_write(self: JsonFileStorage, key: str, value: str) -> None:
        raise OSError("disk is read-only")

    with monkeypatch.context() as patch:
        patch.setattr(JsonFileStorage, "set_item", refuse_write)
        assert main(["--config", str(config_path), "delete", str(entry_id)]) == 1

    errors = capsys.readouterr().err
    assert "could not be deleted" in errors
    assert "No archived mind map" not in errors
    assert _archived_ids(config_path, capsys) == [entry_id]
