"""SVG rendering of a laid-out mind map."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from .focus import EmphasisState, Tier
from .layout import LayoutNode, RadialLayout
from .mindmap import MapNode, iter_preorder

NODE_RADIUS = 5
ACTIVE_NODE_RADIUS = 8
DIMMED_NODE_OPACITY = 0.15
DIMMED_EDGE_OPACITY = 0.1
LABEL_OFFSET = 8


@dataclass(frozen=True, slots=True)
class Palette:
    background: str
    link: str
    branch_fill: str
    leaf_fill: str
    node_stroke: str
    active_fill: str
    text: str
    halo: str


LIGHT_PALETTE = Palette(
    background="#f9fafb",
    link="#cbd5e1",
    branch_fill="#0ea5e9",
    leaf_fill="#e0f2fe",
    node_stroke="#0ea5e9",
    active_fill="#f59e0b",
    text="#1f2937",
    halo="#f9fafb",
)

DARK_PALETTE = Palette(
    background="#111827",
    link="#475569",
    branch_fill="#38bdf8",
    leaf_fill="#0c4a6e",
    node_stroke="#38bdf8",
    active_fill="#f59e0b",
    text="#f9fafb",
    halo="#111827",
)


def palette_for(dark_mode: bool) -> Palette:
    return DARK_PALETTE if dark_mode else LIGHT_PALETTE


def render_svg(
    tree: MapNode,
    layout: RadialLayout,
    emphasis: Optional[EmphasisState] = None,
    *,
    dark_mode: bool = False,
) -> str:
    """Render ``tree`` as a standalone SVG document sized to the layout viewport."""

    palette = palette_for(dark_mode)
    titles: Dict[int, str] = {item.index: item.node.title for item in iter_preorder(tree)}
    if len(titles) != len(layout.nodes):
        raise ValueError("Layout does not belong to the supplied tree")

    width = _fmt(layout.width)
    height = _fmt(layout.height)
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">',
        f'  <rect width="100%" height="100%" fill="{palette.background}"/>',
        f'  <g transform="{layout.transform.to_svg()}">',
        f'    <g fill="none" stroke="{palette.link}" stroke-width="1">',
    ]

    for parent, child in layout.edges:
        opacity = 1.0
        if emphasis is not None and emphasis.edge_tier(parent, child) is Tier.DIMMED:
            opacity = DIMMED_EDGE_OPACITY
        path = _radial_link(layout.nodes[parent], layout.nodes[child])
        lines.append(f'      <path d="{path}" stroke-opacity="{_fmt(opacity)}"/>')
    lines.append("    </g>")

    lines.append("    <g>")
    for node in layout.nodes:
        tier = emphasis.node_tier(node.index) if emphasis is not None else Tier.FULL
        lines.extend(_render_node(node, titles[node.index], tier, palette))
    lines.append("    </g>")

    lines.append("  </g>")
    lines.append("</svg>")
    return "\n".join(lines)


def _render_node(node: LayoutNode, title: str, tier: Tier, palette: Palette) -> List[str]:
    opacity = DIMMED_NODE_OPACITY if tier is Tier.DIMMED else 1.0
    radius = ACTIVE_NODE_RADIUS if tier is Tier.ACTIVE else NODE_RADIUS
    if tier is Tier.ACTIVE:
        fill = palette.active_fill
    elif node.has_children:
        fill = palette.branch_fill
    else:
        fill = palette.leaf_fill

    rotation = node.angle * 180 / math.pi - 90
    left_half = node.angle >= math.pi
    anchor = "end" if left_half else "start"
    offset = -LABEL_OFFSET if left_half else LABEL_OFFSET
    label_rotation = 180 if left_half else 0
    text = _escape(title)
    text_attrs = (
        f'transform="rotate({label_rotation})" dy="0.31em" x="{offset}" '
        f'text-anchor="{anchor}" font-size="12" font-family="sans-serif"'
    )
    return [
        f'      <g transform="rotate({_fmt(rotation)}) translate({_fmt(node.radius)},0)" '
        f'opacity="{_fmt(opacity)}" data-index="{node.index}">',
        f'        <circle r="{radius}" fill="{fill}" stroke="{palette.node_stroke}" '
        'stroke-width="1.5"/>',
        f'        <text {text_attrs} stroke-linejoin="round" stroke-width="3" '
        f'stroke="{palette.halo}" fill="{palette.halo}">{text}</text>',
        f'        <text {text_attrs} fill="{palette.text}">{text}</text>',
        "      </g>",
    ]


def _radial_link(source: LayoutNode, target: LayoutNode) -> str:
    """Cubic curve bending from the source ring to the target ring."""

    middle = (source.radius + target.radius) / 2
    points = [
        _polar(source.angle, source.radius),
        _polar(source.angle, middle),
        _polar(target.angle, middle),
        _polar(target.angle, target.radius),
    ]
    (x0, y0), (x1, y1), (x2, y2), (x3, y3) = points
    return (
        f"M{_fmt(x0)},{_fmt(y0)}"
        f"C{_fmt(x1)},{_fmt(y1)},{_fmt(x2)},{_fmt(y2)},{_fmt(x3)},{_fmt(y3)}"
    )


def _polar(angle: float, radius: float) -> tuple[float, float]:
    return (radius * math.cos(angle - math.pi / 2), radius * math.sin(angle - math.pi / 2))


def _fmt(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in {"", "-0"} else text


def _escape(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


__all__ = ["DARK_PALETTE", "LIGHT_PALETTE", "Palette", "palette_for", "render_svg"]
