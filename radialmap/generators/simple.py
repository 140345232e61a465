"""A local generator that builds a shallow mind map from extracted PDF text."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass
from typing import Any, Dict, List

from pypdf import PdfReader

from .base import MindMapGenerator

EMPTY_DOCUMENT_TEXT = "The source PDF did not contain extractable text."

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


@dataclass(slots=True)
class SimpleMindMapGenerator(MindMapGenerator):
    """Turn each paragraph of the PDF into one branch under the document root.

    Useful for development and offline runs; it has no notion of topics and
    never nests deeper than one level.
    """

    title_words: int = 8
    max_branches: int = 40

    def generate(self, document_name: str, pdf_bytes: bytes) -> Dict[str, Any]:
        paragraphs = self._segment_paragraphs(self._extract_text(pdf_bytes))
        branches = [self._branch(paragraph) for paragraph in paragraphs[: self.max_branches]]
        summary = _first_sentence(paragraphs[0]) if paragraphs else EMPTY_DOCUMENT_TEXT
        payload: Dict[str, Any] = {
            "title": document_name or "Mind map",
            "summary": summary,
        }
        if branches:
            payload["children"] = branches
        return payload

    def _branch(self, paragraph: str) -> Dict[str, Any]:
        words = paragraph.split()
        title = " ".join(words[: self.title_words])
        if len(words) > self.title_words:
            title += "..."
        return {
            "title": title,
            "summary": paragraph,
            "sourceText": _first_sentence(paragraph),
        }

    @staticmethod
    def _extract_text(pdf_bytes: bytes) -> str:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        contents = []
        for page in reader.pages:
            page_text = page.extract_text() or ""
            contents.append(page_text.strip())
        return "\n\n".join(contents)

    @staticmethod
    def _segment_paragraphs(text: str) -> List[str]:
        raw_lines = [line.strip() for line in text.splitlines()]
        paragraphs: List[str] = []
        buffer: List[str] = []
        for line in raw_lines:
            if not line:
                if buffer:
                    paragraphs.append(" ".join(buffer))
                    buffer.clear()
                continue
            buffer.append(line)
        if buffer:
            paragraphs.append(" ".join(buffer))
        return paragraphs


def _first_sentence(paragraph: str) -> str:
    return _SENTENCE_END.split(paragraph.strip(), maxsplit=1)[0]


__all__ = ["SimpleMindMapGenerator"]
