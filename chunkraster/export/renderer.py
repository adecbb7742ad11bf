"""Per-tile rendering.

A tile is rendered in three layers, bottom to top: the background color,
the optional editor grid, and the slice of the scaled scene that falls
inside the tile. Layers are composited source-over with straight alpha.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import NDArray

from ..backend.base import RasterBackend, SourceImage
from ..core.colors import RGBA, parse_color
from ..core.config import ExportOptions
from ..core.errors import ExportError, RenderBackendUnavailableError
from ..core.models import Tile

logger = logging.getLogger(__name__)


def blend_over(dst: NDArray[np.uint8], src: NDArray[np.uint8]) -> None:
    """Composite ``src`` over ``dst`` in place (both HxWx4, straight alpha)."""
    alpha = src[..., 3]
    opaque = alpha == 255
    dst[opaque] = src[opaque]

    partial = (alpha > 0) & ~opaque
    if not partial.any():
        return

    s = src[partial].astype(np.float32) / 255.0
    d = dst[partial].astype(np.float32) / 255.0
    sa = s[:, 3:4]
    da = d[:, 3:4] * (1.0 - sa)
    out_a = sa + da
    rgb = (s[:, :3] * sa + d[:, :3] * da) / np.where(out_a > 0, out_a, 1.0)
    blended = np.concatenate([rgb, out_a], axis=1)
    dst[partial] = np.clip(np.rint(blended * 255.0), 0, 255).astype(np.uint8)


def blend_color(region: NDArray[np.uint8], color: RGBA) -> None:
    """Composite a solid color over ``region`` in place."""
    r, g, b, a = color
    if a == 0:
        return
    if a == 255:
        region[...] = color
        return

    sa = a / 255.0
    d = region.astype(np.float32) / 255.0
    da = d[..., 3:4] * (1.0 - sa)
    out_a = sa + da
    src_rgb = np.array([r, g, b], dtype=np.float32) / 255.0
    rgb = (src_rgb * sa + d[..., :3] * da) / np.where(out_a > 0, out_a, 1.0)
    region[...] = np.clip(np.rint(np.concatenate([rgb, out_a], axis=-1) * 255.0), 0, 255).astype(
        np.uint8
    )


def grid_line_spans(origin: int, length: int, spacing: float, line_width: int) -> list[tuple[int, int]]:
    """Pixel spans of grid lines crossing ``[origin, origin + length)``.

    Lines sit at global multiples of ``spacing``, so adjacent tiles agree on
    where they fall. The first line inside the tile is at local offset
    ``floor(origin / spacing) * spacing - origin``; the line before it is
    also considered in case its width reaches into the tile.

    Returns:
        (start, stop) pairs in tile-local pixels, clipped to the tile
    """
    half = (line_width - 1) // 2
    spans: list[tuple[int, int]] = []
    k = math.floor(origin / spacing) - 1
    while True:
        lo = math.floor(k * spacing) - half - origin
        if lo >= length:
            break
        start, stop = max(lo, 0), min(lo + line_width, length)
        if start < stop:
            spans.append((start, stop))
        k += 1
    return spans


def draw_grid(pixels: NDArray[np.uint8], tile: Tile, options: ExportOptions, scale: float) -> None:
    """Draw the editor grid onto a tile's pixels in place."""
    spacing = options.grid_size * scale
    if spacing <= 0:
        return
    line_width = max(1, math.floor(scale / 2 + 0.5))
    color = parse_color(options.grid_color)

    for start, stop in grid_line_spans(tile.x, tile.width, spacing, line_width):
        blend_color(pixels[:, start:stop], color)
    for start, stop in grid_line_spans(tile.y, tile.height, spacing, line_width):
        blend_color(pixels[start:stop, :], color)


def render_tile(
    tile: Tile,
    source: SourceImage,
    backend: RasterBackend,
    options: ExportOptions,
    scale: float,
) -> NDArray[np.uint8]:
    """Render one tile of the output raster.

    Tile coordinates are in output space; the scene sits ``options.padding``
    pixels in from the output's top-left corner, so the source region for
    the tile starts at ``(tile.x - padding, tile.y - padding)``.

    Args:
        tile: Tile to render
        source: Source image loaded by ``backend``
        backend: Backend used to sample the source image
        options: Export options (background, grid, padding)
        scale: Scale the source image was rasterized at

    Returns:
        tile.height x tile.width x 4 uint8 RGBA array

    Raises:
        RenderBackendUnavailableError: If the tile surface cannot be
            allocated or the backend fails to sample
    """
    try:
        pixels = np.empty((tile.height, tile.width, 4), dtype=np.uint8)
    except MemoryError as e:
        raise RenderBackendUnavailableError(
            f"Could not allocate a {tile.width}x{tile.height} surface for tile {tile.index}"
        ) from e

    pixels[...] = parse_color(options.background_color)

    if options.include_grid:
        draw_grid(pixels, tile, options, scale)

    try:
        region = backend.sample(
            source,
            tile.x - options.padding,
            tile.y - options.padding,
            tile.width,
            tile.height,
        )
    except ExportError:
        raise
    except Exception as e:
        raise RenderBackendUnavailableError(f"Failed to render tile {tile.index}: {e}") from e

    if region.shape != pixels.shape:
        raise RenderBackendUnavailableError(
            f"Backend returned {region.shape} for tile {tile.index}, expected {pixels.shape}"
        )

    blend_over(pixels, region)
    return pixels
