"""Validation and cleaning of untrusted mind map payloads.

Generated payloads are not bound to any schema, so every value that reaches the
rest of the package goes through :func:`validate` first. Malformed inner nodes
are dropped together with their subtrees; only a malformed root rejects the
whole payload.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Set, Union

from .mindmap import SOURCE_TEXT_PLACEHOLDER, MapNode

LOGGER = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_DEPTH = 100

_EXHAUSTED = object()


class MalformedPayloadError(ValueError):
    """Raised when a payload does not describe a mind map at its root."""


@dataclass(frozen=True, slots=True)
class Valid:
    node: MapNode


@dataclass(frozen=True, slots=True)
class Invalid:
    reason: str


ValidationResult = Union[Valid, Invalid]


def validate(
    raw: Any,
    *,
    max_depth: int = MAX_DEPTH,
    max_title_length: int = MAX_TITLE_LENGTH,
) -> ValidationResult:
    """Validate ``raw`` and return the cleaned tree or the rejection reason."""

    if isinstance(raw, MapNode):
        raw = raw.to_dict()
    return _validate_tree(raw, max_depth=max_depth, max_title_length=max_title_length)


def sanitize(raw: Any, **options: int) -> Optional[MapNode]:
    """Return the cleaned tree, or ``None`` when the root is rejected."""

    result = validate(raw, **options)
    if isinstance(result, Valid):
        return result.node
    return None


def parse_payload(raw: Any, **options: int) -> MapNode:
    """Return the cleaned tree or raise :class:`MalformedPayloadError`."""

    result = validate(raw, **options)
    if isinstance(result, Invalid):
        raise MalformedPayloadError(
            f"Payload does not match the mind map structure: {result.reason}"
        )
    return result.node


def parse_payload_text(raw_text: str, **options: int) -> MapNode:
    """Decode a textual payload, tolerating code fences and surrounding prose."""

    if not isinstance(raw_text, str) or not raw_text.strip():
        raise MalformedPayloadError("Payload text is empty")

    text = _unwrap_code_fences(raw_text)
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        LOGGER.error("Could not find a JSON object in the payload text")
        raise MalformedPayloadError("Payload text does not contain a JSON object")

    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError("Payload JSON could not be parsed") from exc
    return parse_payload(parsed, **options)


@dataclass(slots=True)
class _Pending:
    """A mapping whose fields passed and whose children are still being walked."""

    raw: Mapping
    depth: int
    title: str
    summary: str
    source_text: str
    remaining: Iterator[Any]
    children: List[MapNode] = field(default_factory=list)

    def build(self, max_title_length: int) -> MapNode:
        return MapNode(
            title=self.title[:max_title_length],
            summary=self.summary,
            source_text=self.source_text,
            children=self.children,
        )


def _validate_tree(raw: Any, *, max_depth: int, max_title_length: int) -> ValidationResult:
    # Explicit stack: only max_depth limits how deep a payload may nest.
    opened = _open_node(raw, depth=0, active=set(), max_depth=max_depth)
    if isinstance(opened, Invalid):
        return opened
    active = {id(raw)}
    stack = [opened]
    while True:
        current = stack[-1]
        child_raw = next(current.remaining, _EXHAUSTED)
        if child_raw is _EXHAUSTED:
            stack.pop()
            active.discard(id(current.raw))
            node = current.build(max_title_length)
            if not stack:
                return Valid(node)
            stack[-1].children.append(node)
            continue
        child = _open_node(child_raw, depth=current.depth + 1, active=active, max_depth=max_depth)
        if isinstance(child, _Pending):
            active.add(id(child_raw))
            stack.append(child)


def _open_node(
    raw: Any, *, depth: int, active: Set[int], max_depth: int
) -> Union[_Pending, Invalid]:
    if depth > max_depth:
        return _reject(f"nesting deeper than {max_depth} levels", depth)
    if not isinstance(raw, Mapping):
        return _reject(f"expected a mapping, got {type(raw).__name__}", depth)
    if id(raw) in active:
        return _reject("node contains itself", depth)

    title = raw.get("title")
    summary = raw.get("summary")
    if not isinstance(title, str):
        return _reject("missing string 'title'", depth)
    if not isinstance(summary, str):
        return _reject("missing string 'summary'", depth)

    source_text = raw.get("sourceText")
    if not isinstance(source_text, str) or not source_text:
        source_text = SOURCE_TEXT_PLACEHOLDER

    children_raw = raw.get("children")
    if isinstance(children_raw, (list, tuple)):
        remaining = iter(children_raw)
    else:
        if children_raw is not None:
            LOGGER.debug(
                "Ignoring non-list 'children' (%s) on node %r",
                type(children_raw).__name__,
                title[:40],
            )
        remaining = iter(())

    return _Pending(
        raw=raw,
        depth=depth,
        title=title,
        summary=summary,
        source_text=source_text,
        remaining=remaining,
    )


def _reject(reason: str, depth: int) -> Invalid:
    LOGGER.warning("Discarding invalid node at depth %s: %s", depth, reason)
    return Invalid(reason)


def _unwrap_code_fences(value: str) -> str:
    trimmed = value.strip()
    if not trimmed.startswith("```"):
        return trimmed
    lines = trimmed.splitlines()
    if len(lines) >= 2 and lines[-1].startswith("```"):
        return "\n".join(lines[1:-1]).strip()
    return "\n".join(lines[1:]).strip()


__all__ = [
    "Invalid",
    "MAX_DEPTH",
    "MAX_TITLE_LENGTH",
    "MalformedPayloadError",
    "Valid",
    "ValidationResult",
    "parse_payload",
    "parse_payload_text",
    "sanitize",
    "validate",
]
