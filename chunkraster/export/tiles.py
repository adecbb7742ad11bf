"""Tile grid planning and single-surface checks."""

from __future__ import annotations

import math

from ..core.config import DEFAULT_LIMITS, ExportLimits
from ..core.models import Tile


def plan_tiles(width: int, height: int, tile_size: int = DEFAULT_LIMITS.safe_tile_size) -> list[Tile]:
    """Partition a ``width x height`` raster into a row-major grid of tiles.

    Tiles are at most ``tile_size`` on each edge; the last column and row
    are clipped to the raster edge. Together they cover every pixel exactly
    once.

    Raises:
        ValueError: If any argument is not positive
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Raster size must be positive, got {width}x{height}")
    if tile_size <= 0:
        raise ValueError(f"Tile size must be positive, got {tile_size}")

    cols = math.ceil(width / tile_size)
    rows = math.ceil(height / tile_size)

    tiles: list[Tile] = []
    for row in range(rows):
        for col in range(cols):
            x = col * tile_size
            y = row * tile_size
            tiles.append(
                Tile(
                    index=len(tiles),
                    x=x,
                    y=y,
                    width=min(tile_size, width - x),
                    height=min(tile_size, height - y),
                )
            )
    return tiles


def needs_chunking(width: int, height: int, limits: ExportLimits = DEFAULT_LIMITS) -> bool:
    """Whether a raster is too large for a single rendering surface."""
    return (
        width > limits.max_single_canvas
        or height > limits.max_single_canvas
        or width * height > limits.max_single_pixels
    )
