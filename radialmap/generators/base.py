"""Generation collaborator interface."""

from __future__ import annotations

from typing import Any, Protocol


class MindMapGenerator(Protocol):
    """Produce an unvalidated mind map payload from a PDF document."""

    def generate(self, document_name: str, pdf_bytes: bytes) -> Any:
        """Return a mapping or JSON text shaped like ``{title, summary, sourceText?, children?}``."""


__all__ = ["MindMapGenerator"]
