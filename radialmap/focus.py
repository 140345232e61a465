"""Focus-mode emphasis along the root-to-selection path."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .mindmap import MapNode, iter_preorder

LOGGER = logging.getLogger(__name__)


class Tier(str, enum.Enum):
    FULL = "full"
    DIMMED = "dimmed"
    ACTIVE = "active"


@dataclass(frozen=True, slots=True)
class EmphasisState:
    """Emphasis tier per node and per edge, keyed by pre-order index."""

    nodes: Tuple[Tier, ...]
    edges: Dict[Tuple[int, int], Tier]
    selected_index: Optional[int] = None

    def node_tier(self, index: int) -> Tier:
        return self.nodes[index]

    def edge_tier(self, parent_index: int, child_index: int) -> Tier:
        return self.edges[(parent_index, child_index)]

    @property
    def path(self) -> List[int]:
        return [index for index, tier in enumerate(self.nodes) if tier is not Tier.DIMMED]


def find_path(tree: MapNode, target: MapNode) -> Optional[List[int]]:
    """Return the pre-order indices from the root to ``target`` inclusive.

    Matching is by identity; an equal-looking node from another tree is not
    part of this one.
    """

    parents: Dict[int, Optional[int]] = {}
    for item in iter_preorder(tree):
        parents[item.index] = item.parent_index
        if item.node is target:
            path = [item.index]
            parent = item.parent_index
            while parent is not None:
                path.append(parent)
                parent = parents[parent]
            path.reverse()
            return path
    return None


def compute_emphasis(tree: MapNode, selected: Optional[MapNode]) -> EmphasisState:
    items = list(iter_preorder(tree))
    edge_keys = [
        (item.parent_index, item.index) for item in items if item.parent_index is not None
    ]

    path = find_path(tree, selected) if selected is not None else None
    if selected is not None and path is None:
        LOGGER.debug("Selected node %r is not part of the current map", selected.title)

    if path is None:
        return EmphasisState(
            nodes=tuple(Tier.FULL for _ in items),
            edges={key: Tier.FULL for key in edge_keys},
        )

    on_path = set(path)
    selected_index = path[-1]
    tiers = []
    for item in items:
        if item.index == selected_index:
            tiers.append(Tier.ACTIVE)
        elif item.index in on_path:
            tiers.append(Tier.FULL)
        else:
            tiers.append(Tier.DIMMED)

    edges = {
        (parent, child): Tier.FULL if parent in on_path and child in on_path else Tier.DIMMED
        for parent, child in edge_keys
    }
    return EmphasisState(nodes=tuple(tiers), edges=edges, selected_index=selected_index)


__all__ = ["EmphasisState", "Tier", "compute_emphasis", "find_path"]
