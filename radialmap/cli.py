"""Command line interface for radialmap."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import AppConfig, load_config
from .logging_utils import configure_logging
from .mindmap import SOURCE_TEXT_PLACEHOLDER, MapNode
from .render import render_svg
from .sanitizer import MalformedPayloadError
from .session import GenerationError, MapSession, build_session

LOGGER = logging.getLogger("radialmap.cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the JSON configuration file (defaults are used when omitted).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging output.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Build a mind map from a PDF and archive it.")
    generate.add_argument("pdf", type=Path)

    importer = commands.add_parser(
        "import", help="Validate a JSON mind map payload and archive it."
    )
    importer.add_argument("payload", type=Path)
    importer.add_argument("--name", help="Archive label; defaults to the file name.")

    commands.add_parser("list", help="List archived mind maps, newest first.")

    show = commands.add_parser("show", help="Print an archived mind map as an outline.")
    show.add_argument("id", type=int)

    delete = commands.add_parser("delete", help="Remove a mind map from the archive.")
    delete.add_argument("id", type=int)

    render = commands.add_parser("render", help="Render an archived mind map to SVG.")
    render.add_argument("id", type=int)
    render.add_argument("--output", type=Path, required=True)
    render.add_argument("--width", type=float, default=1200.0)
    render.add_argument("--height", type=float, default=900.0)
    render.add_argument(
        "--select",
        default=None,
        help="Dotted child positions of the node to focus, e.g. '1.0'; 'root' selects the root.",
    )
    render.add_argument("--dark", action="store_true", help="Use the dark palette.")
    return parser.parse_args(argv)


def resolve_node(root: MapNode, selector: str) -> MapNode:
    """Follow dotted child positions from ``root``."""

    node = root
    if selector.strip().lower() == "root":
        return node
    for part in selector.split("."):
        try:
            position = int(part)
        except ValueError as exc:
            raise ValueError(f"Invalid node selector segment: {part!r}") from exc
        if not 0 <= position < len(node.children):
            raise ValueError(f"Node selector {selector!r} is out of range")
        node = node.children[position]
    return node


def _format_outline(node: MapNode, depth: int = 0) -> list[str]:
    line = f"{'  ' * depth}- {node.title}: {node.summary}"
    if node.source_text != SOURCE_TEXT_PLACEHOLDER:
        line += f' ("{node.source_text}")'
    lines = [line]
    for child in node.children:
        lines.extend(_format_outline(child, depth + 1))
    return lines


def _run(args: argparse.Namespace, config: AppConfig, session: MapSession) -> int:
    if args.command == "generate":
        mind_map = session.generate_from_path(args.pdf)
        LOGGER.info("Generated mind map %r", mind_map.title)
        return 0

    if args.command == "import":
        raw_text = args.payload.read_text(encoding="utf-8")
        mind_map = session.adopt_payload(args.name or args.payload.name, raw_text)
        LOGGER.info("Imported mind map %r", mind_map.title)
        return 0

    if args.command == "list":
        for entry in session.archive.list():
            print(f"{entry.id}\t{entry.created_at}\t{entry.file_name}\t{entry.mind_map.title}")
        return 0

    if args.command == "delete":
        if session.archive.get(args.id) is None:
            LOGGER.warning("No archived mind map with id %s", args.id)
            return 1
        remaining = session.archive.delete(args.id)
        if any(entry.id == args.id for entry in remaining):
            LOGGER.error("Archived mind map %s could not be deleted", args.id)
            return 1
        return 0

    entry = session.load_from_archive(args.id)
    if args.command == "show":
        print("\n".join(_format_outline(entry.mind_map)))
        return 0

    layout = session.layout(args.width, args.height)
    if layout is None:
        LOGGER.error("Viewport %sx%s has no area", args.width, args.height)
        return 1
    if args.select:
        session.select(resolve_node(entry.mind_map, args.select))
    svg = render_svg(
        entry.mind_map,
        layout,
        session.emphasis(),
        dark_mode=args.dark or config.layout.dark_mode,
    )
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(svg, encoding="utf-8")
    LOGGER.info("Wrote SVG to %s", args.output)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_config(args.config) if args.config else AppConfig.from_dict({})
    configure_logging(
        args.verbose, config.logging.directory, keep_days=config.logging.keep_days
    )
    session = build_session(config)
    try:
        return _run(args, config, session)
    except (MalformedPayloadError, GenerationError, KeyError, ValueError, OSError) as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
