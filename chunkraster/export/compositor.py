"""Output pixel buffer and tile compositing."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from ..core.errors import RenderBackendUnavailableError
from ..core.models import Tile

logger = logging.getLogger(__name__)


class PixelBuffer:
    """A contiguous RGBA byte buffer for the whole output raster.

    Owned by a single export call. Tiles are written into it one at a time
    and it is not read until every tile has been written.

    Attributes:
        width: Output width in pixels
        height: Output height in pixels
        data: Flat uint8 array of ``width * height * 4`` bytes, row-major
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Buffer size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        try:
            self.data: NDArray[np.uint8] = np.zeros(width * height * 4, dtype=np.uint8)
        except MemoryError as e:
            raise RenderBackendUnavailableError(
                f"Could not allocate a {width}x{height} output buffer"
            ) from e
        self.tiles_written = 0

    @property
    def nbytes(self) -> int:
        return int(self.data.nbytes)

    def row_offset(self, tile: Tile, row: int) -> int:
        """Byte offset in ``data`` where row ``row`` of ``tile`` starts."""
        return ((tile.y + row) * self.width + tile.x) * 4

    def _check_bounds(self, tile: Tile) -> None:
        if tile.x < 0 or tile.y < 0 or tile.right > self.width or tile.bottom > self.height:
            raise ValueError(
                f"Tile {tile.index} ({tile.x},{tile.y} {tile.width}x{tile.height}) "
                f"exceeds {self.width}x{self.height} buffer"
            )

    def write_tile(self, tile: Tile, region: NDArray[np.uint8]) -> None:
        """Copy a rendered tile into its position, row by row.

        Args:
            tile: Tile the region belongs to
            region: tile.height x tile.width x 4 uint8 pixels
        """
        self._check_bounds(tile)
        if region.shape != (tile.height, tile.width, 4):
            raise ValueError(
                f"Tile {tile.index} region has shape {region.shape}, "
                f"expected {(tile.height, tile.width, 4)}"
            )

        row_bytes = tile.width * 4
        rows = np.ascontiguousarray(region, dtype=np.uint8).reshape(tile.height, row_bytes)
        for r in range(tile.height):
            start = self.row_offset(tile, r)
            self.data[start:start + row_bytes] = rows[r]
        self.tiles_written += 1

    def read_region(self, tile: Tile) -> NDArray[np.uint8]:
        """Return a copy of the pixels under ``tile`` as HxWx4."""
        self._check_bounds(tile)
        return self.as_image()[tile.y:tile.bottom, tile.x:tile.right].copy()

    def as_image(self) -> NDArray[np.uint8]:
        """View the buffer as a height x width x 4 array (no copy)."""
        return self.data.reshape(self.height, self.width, 4)

    def tobytes(self) -> bytes:
        return self.data.tobytes()
