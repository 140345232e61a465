"""Mind map data structures and traversal helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

SOURCE_TEXT_PLACEHOLDER = "N/A"


@dataclass(slots=True)
class MapNode:
    """Single node within a sanitized mind map tree.

    Nodes never hold a reference to their parent. Ancestry is derived from the
    root whenever it is needed.
    """

    title: str
    summary: str
    source_text: str = SOURCE_TEXT_PLACEHOLDER
    children: List["MapNode"] = field(default_factory=list)

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire representation; leaves omit the ``children`` key."""

        data: Dict[str, Any] = {
            "title": self.title,
            "summary": self.summary,
            "sourceText": self.source_text,
        }
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass(frozen=True, slots=True)
class IndexedNode:
    """A node paired with the structure derived during one traversal."""

    index: int
    node: MapNode
    parent_index: Optional[int]
    depth: int


def iter_preorder(root: MapNode) -> Iterator[IndexedNode]:
    """Yield every node in pre-order with its per-pass index.

    The index is only meaningful for the traversal that produced it; layout and
    emphasis passes key their results by it.
    """

    stack: List[tuple[MapNode, Optional[int], int]] = [(root, None, 0)]
    index = 0
    while stack:
        node, parent_index, depth = stack.pop()
        yield IndexedNode(index=index, node=node, parent_index=parent_index, depth=depth)
        for child in reversed(node.children):
            stack.append((child, index, depth + 1))
        index += 1


def count_leaves(root: MapNode) -> int:
    return sum(1 for item in iter_preorder(root) if not item.node.children)


__all__ = [
    "IndexedNode",
    "MapNode",
    "SOURCE_TEXT_PLACEHOLDER",
    "count_leaves",
    "iter_preorder",
]
