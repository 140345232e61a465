"""Top-level package for radialmap."""

from .archive import ArchiveEntry, ArchiveStore
from .config import AppConfig, load_config
from .focus import EmphasisState, Tier, compute_emphasis
from .layout import RadialLayout, RadialLayoutEngine
from .mindmap import MapNode
from .sanitizer import MalformedPayloadError, parse_payload, sanitize, validate
from .session import MapSession, build_session

__all__ = [
    "AppConfig",
    "ArchiveEntry",
    "ArchiveStore",
    "EmphasisState",
    "MalformedPayloadError",
    "MapNode",
    "MapSession",
    "RadialLayout",
    "RadialLayoutEngine",
    "Tier",
    "build_session",
    "compute_emphasis",
    "load_config",
    "parse_payload",
    "sanitize",
    "validate",
]
