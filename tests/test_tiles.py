"""Tests for tile grid planning."""

import numpy as np
import pytest

from chunkraster.core.config import ExportLimits
from chunkraster.export.tiles import needs_chunking, plan_tiles


def coverage(tiles, width, height):
    counts = np.zeros((height, width), dtype=np.int32)
    for t in tiles:
        counts[t.y:t.bottom, t.x:t.right] += 1
    return counts


class TestPlanTiles:
    """Test tile partitioning."""

    def test_single_tile(self):
        """Test a raster smaller than a tile gives one tile."""
        tiles = plan_tiles(1000, 500)
        assert len(tiles) == 1
        assert (tiles[0].x, tiles[0].y, tiles[0].width, tiles[0].height) == (0, 0, 1000, 500)

    def test_9000_square(self):
        """Test 9000x9000 gives a 3x3 grid with 808 px remainders."""
        tiles = plan_tiles(9000, 9000)
        assert len(tiles) == 9
        assert [t.width for t in tiles[:3]] == [4096, 4096, 808]
        assert [t.height for t in tiles[::3]] == [4096, 4096, 808]

    def test_row_major_order(self):
        """Test tiles are ordered left to right, then top to bottom."""
        tiles = plan_tiles(10, 6, tile_size=4)
        assert [(t.x, t.y) for t in tiles] == [
            (0, 0), (4, 0), (8, 0),
            (0, 4), (4, 4), (8, 4),
        ]
        assert [t.index for t in tiles] == list(range(6))

    @pytest.mark.parametrize("size", [(37, 23, 8), (64, 64, 16), (1, 1, 5), (100, 7, 7)])
    def test_exact_partition(self, size):
        """Test tiles cover every pixel exactly once."""
        width, height, tile_size = size
        tiles = plan_tiles(width, height, tile_size)
        assert (coverage(tiles, width, height) == 1).all()
        assert sum(t.area for t in tiles) == width * height
        assert all(0 < t.width <= tile_size and 0 < t.height <= tile_size for t in tiles)

    @pytest.mark.parametrize("args", [(0, 10), (10, 0), (-5, 10)])
    def test_invalid_size(self, args):
        """Test non-positive raster sizes are rejected."""
        with pytest.raises(ValueError):
            plan_tiles(*args)

    def test_invalid_tile_size(self):
        """Test a non-positive tile size is rejected."""
        with pytest.raises(ValueError):
            plan_tiles(10, 10, tile_size=0)


class TestNeedsChunking:
    """Test the single-surface check."""

    def test_at_limit(self):
        """Test a surface at exactly the edge and pixel limits fits."""
        assert needs_chunking(8192, 8192) is False

    def test_edge_over_limit(self):
        """Test one edge over the limit requires chunking."""
        assert needs_chunking(8193, 100) is True

    def test_pixels_over_limit(self):
        """Test the pixel count alone can require chunking."""
        assert needs_chunking(7000, 10000) is True

    def test_custom_limits(self):
        """Test the check reads its thresholds from the limits table."""
        limits = ExportLimits(max_single_canvas=100, max_single_pixels=5000)
        assert needs_chunking(100, 50, limits) is False
        assert needs_chunking(100, 51, limits) is True
