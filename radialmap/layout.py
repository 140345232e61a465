"""Radial tree layout and viewport fitting."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .mindmap import MapNode, iter_preorder

LOGGER = logging.getLogger(__name__)

FULL_CIRCLE = 2 * math.pi
DEFAULT_UNITS_PER_LEAF = 35.0
DEFAULT_MIN_RADIUS_DIVISOR = 2.5
DEFAULT_PADDING = 100.0


@dataclass(frozen=True, slots=True)
class LayoutNode:
    """Polar placement of one node, keyed by its pre-order index."""

    index: int
    depth: int
    angle: float
    radius: float
    span_start: float
    span_end: float
    has_children: bool

    @property
    def x(self) -> float:
        return self.radius * math.cos(self.angle - math.pi / 2)

    @property
    def y(self) -> float:
        return self.radius * math.sin(self.angle - math.pi / 2)


@dataclass(frozen=True, slots=True)
class FitTransform:
    """Uniform scale followed by a translation, as consumed by a renderer."""

    scale: float
    translate_x: float
    translate_y: float

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        return (x * self.scale + self.translate_x, y * self.scale + self.translate_y)

    def to_svg(self) -> str:
        return (
            f"translate({self.translate_x:.3f},{self.translate_y:.3f}) "
            f"scale({self.scale:.6f})"
        )


@dataclass(frozen=True, slots=True)
class RadialLayout:
    """Result of one layout pass. Discarded whenever the tree or viewport changes."""

    nodes: List[LayoutNode]
    edges: List[Tuple[int, int]]
    outer_radius: float
    leaf_count: int
    transform: FitTransform
    width: float
    height: float

    def children_of(self, index: int) -> List[LayoutNode]:
        return [self.nodes[child] for parent, child in self.edges if parent == index]


@dataclass(slots=True)
class RadialLayoutEngine:
    """Assign angles and radii to a sanitized tree.

    Every leaf reserves ``units_per_leaf`` of circumference on the outer ring;
    sparse trees are still stretched to ``min(width, height) / min_radius_divisor``
    so they fill the viewport.
    """

    units_per_leaf: float = DEFAULT_UNITS_PER_LEAF
    min_radius_divisor: float = DEFAULT_MIN_RADIUS_DIVISOR
    padding: float = DEFAULT_PADDING

    def __post_init__(self) -> None:
        if self.units_per_leaf <= 0:
            raise ValueError("units_per_leaf must be positive")
        if self.min_radius_divisor <= 0:
            raise ValueError("min_radius_divisor must be positive")
        if self.padding < 0:
            raise ValueError("padding must not be negative")

    def outer_radius(self, leaf_count: int, width: float, height: float) -> float:
        required = leaf_count * self.units_per_leaf / FULL_CIRCLE
        minimum = min(width, height) / self.min_radius_divisor
        return max(required, minimum)

    def layout(self, tree: MapNode, width: float, height: float) -> Optional[RadialLayout]:
        """Lay out ``tree`` for a ``width`` x ``height`` viewport.

        Returns ``None`` when the viewport has no usable area yet; callers retry
        on the next size change.
        """

        if not _is_usable_extent(width) or not _is_usable_extent(height):
            LOGGER.debug("Viewport %sx%s not ready; skipping layout", width, height)
            return None

        items = list(iter_preorder(tree))
        children: Dict[int, List[int]] = {item.index: [] for item in items}
        edges: List[Tuple[int, int]] = []
        for item in items:
            if item.parent_index is not None:
                children[item.parent_index].append(item.index)
                edges.append((item.parent_index, item.index))

        leaves = [0] * len(items)
        for item in reversed(items):
            kids = children[item.index]
            leaves[item.index] = sum(leaves[kid] for kid in kids) if kids else 1

        leaf_count = leaves[0]
        deepest = max(item.depth for item in items)
        outer = self.outer_radius(leaf_count, width, height)

        spans: Dict[int, Tuple[float, float]] = {0: (0.0, FULL_CIRCLE)}
        for item in items:
            start, end = spans[item.index]
            kids = children[item.index]
            if not kids:
                continue
            extent = end - start
            total = leaves[item.index]
            cursor = start
            for position, kid in enumerate(kids):
                if position == len(kids) - 1:
                    kid_end = end
                else:
                    kid_end = cursor + extent * leaves[kid] / total
                spans[kid] = (cursor, kid_end)
                cursor = kid_end

        nodes: List[LayoutNode] = []
        for item in items:
            start, end = spans[item.index]
            radius = outer * item.depth / deepest if deepest else 0.0
            nodes.append(
                LayoutNode(
                    index=item.index,
                    depth=item.depth,
                    angle=(start + end) / 2,
                    radius=radius,
                    span_start=start,
                    span_end=end,
                    has_children=bool(children[item.index]),
                )
            )

        transform = self.fit(nodes, width, height)
        LOGGER.debug(
            "Laid out %s nodes (%s leaves, depth %s, outer radius %.1f)",
            len(nodes),
            leaf_count,
            deepest,
            outer,
        )
        return RadialLayout(
            nodes=nodes,
            edges=edges,
            outer_radius=outer,
            leaf_count=leaf_count,
            transform=transform,
            width=float(width),
            height=float(height),
        )

    def fit(self, nodes: List[LayoutNode], width: float, height: float) -> FitTransform:
        """Scale and center the node bounding box, plus padding, in the viewport."""

        xs = [node.x for node in nodes]
        ys = [node.y for node in nodes]
        min_x, max_x = min(xs), max(xs)
        min_y, max_y = min(ys), max(ys)
        box_width = max_x - min_x
        box_height = max_y - min_y

        available_x = box_width + self.padding * 2
        available_y = box_height + self.padding * 2
        if available_x > 0 and available_y > 0:
            scale = min(width / available_x, height / available_y)
        else:
            scale = 1.0

        return FitTransform(
            scale=scale,
            translate_x=width / 2 - (min_x + box_width / 2) * scale,
            translate_y=height / 2 - (min_y + box_height / 2) * scale,
        )


def _is_usable_extent(value: float) -> bool:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number > 0


__all__ = [
    "DEFAULT_MIN_RADIUS_DIVISOR",
    "DEFAULT_PADDING",
    "DEFAULT_UNITS_PER_LEAF",
    "FULL_CIRCLE",
    "FitTransform",
    "LayoutNode",
    "RadialLayout",
    "RadialLayoutEngine",
]
