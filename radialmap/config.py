"""Configuration utilities for radialmap."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .archive import ARCHIVE_KEY
from .layout import (
    DEFAULT_MIN_RADIUS_DIVISOR,
    DEFAULT_PADDING,
    DEFAULT_UNITS_PER_LEAF,
    RadialLayoutEngine,
)
from .sanitizer import MAX_DEPTH, MAX_TITLE_LENGTH

# Archived maps are nested JSON; the json module nests one call per level.
MAX_CONFIGURABLE_DEPTH = 500


@dataclass(slots=True)
class ArchiveConfig:
    """Where the archive blob lives.

    ``quota_bytes`` caps the serialized archive size; saves that would exceed it
    fail and leave the archive unchanged.
    """

    directory: Path
    key: str = ARCHIVE_KEY
    quota_bytes: Optional[int] = None


@dataclass(slots=True)
class LayoutConfig:
    """Tunables for the radial layout and the theme passed to the renderer."""

    units_per_leaf: float = DEFAULT_UNITS_PER_LEAF
    min_radius_divisor: float = DEFAULT_MIN_RADIUS_DIVISOR
    padding: float = DEFAULT_PADDING
    dark_mode: bool = False

    def build_engine(self) -> RadialLayoutEngine:
        return RadialLayoutEngine(
            units_per_leaf=self.units_per_leaf,
            min_radius_divisor=self.min_radius_divisor,
            padding=self.padding,
        )


@dataclass(slots=True)
class SanitizerConfig:
    max_depth: int = MAX_DEPTH
    max_title_length: int = MAX_TITLE_LENGTH

    def as_options(self) -> Dict[str, int]:
        return {"max_depth": self.max_depth, "max_title_length": self.max_title_length}


@dataclass(slots=True)
class LoggingConfig:
    directory: Optional[Path] = None
    keep_days: int = 7


@dataclass(slots=True)
class AppConfig:
    """Top-level application configuration."""

    archive: ArchiveConfig
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    sanitizer: SanitizerConfig = field(default_factory=SanitizerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @staticmethod
    def _coerce_path(value: Optional[str | Path]) -> Optional[Path]:
        if value is None:
            return None
        return Path(os.path.expandvars(str(value))).expanduser().resolve()

    @staticmethod
    def _positive(value: Any, name: str, cast=float):
        try:
            number = cast(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{name} must be a number") from exc
        if number <= 0:
            raise ValueError(f"{name} must be positive")
        return number

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        archive_data = data.get("archive") or {}
        directory = cls._coerce_path(archive_data.get("directory", "~/.radialmap"))
        key = str(archive_data.get("key", ARCHIVE_KEY)).strip()
        if not key:
            raise ValueError("archive.key must not be empty")
        quota_raw = archive_data.get("quota_bytes")
        quota = (
            cls._positive(quota_raw, "archive.quota_bytes", int)
            if quota_raw is not None
            else None
        )
        archive = ArchiveConfig(directory=directory, key=key, quota_bytes=quota)

        layout_data = data.get("layout") or {}
        padding = float(layout_data.get("padding", DEFAULT_PADDING))
        if padding < 0:
            raise ValueError("layout.padding must not be negative")
        layout = LayoutConfig(
            units_per_leaf=cls._positive(
                layout_data.get("units_per_leaf", DEFAULT_UNITS_PER_LEAF),
                "layout.units_per_leaf",
            ),
            min_radius_divisor=cls._positive(
                layout_data.get("min_radius_divisor", DEFAULT_MIN_RADIUS_DIVISOR),
                "layout.min_radius_divisor",
            ),
            padding=padding,
            dark_mode=bool(layout_data.get("dark_mode", False)),
        )

        sanitizer_data = data.get("sanitizer") or {}
        max_depth = cls._positive(
            sanitizer_data.get("max_depth", MAX_DEPTH), "sanitizer.max_depth", int
        )
        if max_depth > MAX_CONFIGURABLE_DEPTH:
            raise ValueError(f"sanitizer.max_depth must be at most {MAX_CONFIGURABLE_DEPTH}")
        sanitizer = SanitizerConfig(
            max_depth=max_depth,
            max_title_length=cls._positive(
                sanitizer_data.get("max_title_length", MAX_TITLE_LENGTH),
                "sanitizer.max_title_length",
                int,
            ),
        )

        logging_data = data.get("logging") or {}
        logging_cfg = LoggingConfig(
            directory=cls._coerce_path(logging_data.get("directory")),
            keep_days=cls._positive(logging_data.get("keep_days", 7), "logging.keep_days", int),
        )

        return cls(
            archive=archive,
            layout=layout,
            sanitizer=sanitizer,
            logging=logging_cfg,
        )


def load_config(path: str | Path) -> AppConfig:
    """Load configuration data from a JSON file."""

    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    return AppConfig.from_dict(data)


__all__ = [
    "AppConfig",
    "ArchiveConfig",
    "LayoutConfig",
    "LoggingConfig",
    "SanitizerConfig",
    "load_config",
]
