"""Interactive session state: the current map, its selection and focus mode."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .archive import ArchiveEntry, ArchiveStore
from .config import AppConfig
from .focus import EmphasisState, compute_emphasis, find_path
from .generators.base import MindMapGenerator
from .generators.simple import SimpleMindMapGenerator
from .layout import RadialLayout, RadialLayoutEngine
from .mindmap import MapNode
from .sanitizer import MalformedPayloadError, parse_payload, parse_payload_text
from .storage import JsonFileStorage

LOGGER = logging.getLogger("radialmap")

SelectionListener = Callable[[Optional[MapNode]], None]


class GenerationError(RuntimeError):
    """Raised when the generation collaborator itself fails."""


@dataclass(slots=True)
class MapSession:
    """Coordinate generation, the archive, layout and node selection.

    Generated payloads are always gated through the sanitizer before they become
    the current map or reach the archive.
    """

    generator: MindMapGenerator
    archive: ArchiveStore
    engine: RadialLayoutEngine = field(default_factory=RadialLayoutEngine)
    focus_mode: bool = True
    current: Optional[MapNode] = None
    current_name: Optional[str] = None
    sanitizer_options: Dict[str, int] = field(default_factory=dict)
    _selected: Optional[MapNode] = field(default=None, init=False, repr=False)
    _listeners: List[SelectionListener] = field(default_factory=list, init=False, repr=False)

    @property
    def selected(self) -> Optional[MapNode]:
        return self._selected

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register a selection listener; the returned callable removes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def generate_from_path(self, path: str | Path) -> MapNode:
        pdf_path = Path(path).expanduser()
        if not pdf_path.exists():
            raise FileNotFoundError(f"PDF not found: {pdf_path}")
        return self.generate_from_bytes(pdf_path.name, pdf_path.read_bytes())

    def generate_from_bytes(self, file_name: str, pdf_bytes: bytes) -> MapNode:
        LOGGER.info("Generating mind map for %s", file_name)
        try:
            raw = self.generator.generate(Path(file_name).stem, pdf_bytes)
        except MalformedPayloadError:
            raise
        except Exception as exc:
            raise GenerationError(f"Mind map generation failed for {file_name}") from exc
        return self.adopt_payload(file_name, raw)

    def adopt_payload(self, file_name: str, raw: Any) -> MapNode:
        """Gate an untrusted payload, archive it and make it the current map."""

        if isinstance(raw, (str, bytes)):
            text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
            mind_map = parse_payload_text(text, **self.sanitizer_options)
        else:
            mind_map = parse_payload(raw, **self.sanitizer_options)

        self.archive.save(file_name, mind_map)
        self._show(mind_map, file_name)
        return mind_map

    def load_from_archive(self, entry_id: int) -> ArchiveEntry:
        entry = self.archive.get(entry_id)
        if entry is None:
            raise KeyError(f"No archived mind map with id {entry_id}")
        self._show(entry.mind_map, entry.file_name)
        return entry

    def select(self, node: Optional[MapNode]) -> Optional[MapNode]:
        """Select ``node`` (or clear with ``None``) and notify listeners."""

        if node is not None and (self.current is None or find_path(self.current, node) is None):
            LOGGER.debug("Ignoring selection of a node outside the current map")
            node = None
        self._selected = node
        for listener in list(self._listeners):
            listener(node)
        return node

    def emphasis(self) -> Optional[EmphasisState]:
        if self.current is None:
            return None
        selected = self._selected if self.focus_mode else None
        return compute_emphasis(self.current, selected)

    def layout(self, width: float, height: float) -> Optional[RadialLayout]:
        if self.current is None:
            return None
        return self.engine.layout(self.current, width, height)

    def _show(self, mind_map: MapNode, name: str) -> None:
        self.current = mind_map
        self.current_name = name
        self.select(None)


def build_session(
    config: AppConfig, *, generator: Optional[MindMapGenerator] = None
) -> MapSession:
    """Wire a session from configuration, defaulting to the local generator."""

    options = config.sanitizer.as_options()
    storage = JsonFileStorage(
        config.archive.directory, quota_bytes=config.archive.quota_bytes
    )
    archive = ArchiveStore(storage, key=config.archive.key, sanitizer_options=options)
    return MapSession(
        generator=generator or SimpleMindMapGenerator(),
        archive=archive,
        engine=config.layout.build_engine(),
        sanitizer_options=options,
    )


__all__ = ["GenerationError", "MapSession", "SelectionListener", "build_session"]
