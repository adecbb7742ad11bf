"""Rendering backends for chunkraster."""

from .base import RasterBackend, SourceImage, crop_rgba, intersect, source_size
from .cairo import CairoBackend

__all__ = [
    "RasterBackend",
    "SourceImage",
    "crop_rgba",
    "intersect",
    "source_size",
    "CairoBackend",
]
