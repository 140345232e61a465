"""Mind map generators for radialmap."""

from .base import MindMapGenerator
from .simple import SimpleMindMapGenerator

__all__ = ["MindMapGenerator", "SimpleMindMapGenerator"]
