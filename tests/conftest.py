"""Shared fixtures: a deterministic in-memory rendering backend and sample scenes."""

import numpy as np
import pytest

from chunkraster.backend.base import RasterBackend, SourceImage, crop_rgba, intersect, source_size
from chunkraster.scene.scene import VectorScene


def pattern(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Opaque RGBA pattern that identifies each source pixel by its coordinates."""
    out = np.empty(np.broadcast_shapes(np.shape(xs), np.shape(ys)) + (4,), dtype=np.uint8)
    out[..., 0] = xs % 256
    out[..., 1] = ys % 256
    out[..., 2] = (xs // 256 + ys // 256 * 7) % 256
    out[..., 3] = 255
    return out


class PatternBackend(RasterBackend):
    """Computes ``pattern`` for any requested window without holding the full image."""

    name = "pattern"

    def __init__(self, fail_rasterize: Exception | None = None, fail_sample: Exception | None = None):
        self.fail_rasterize = fail_rasterize
        self.fail_sample = fail_sample
        self.samples: list[tuple[int, int, int, int]] = []
        self.released = False

    def rasterize(self, scene):
        if self.fail_rasterize is not None:
            raise self.fail_rasterize
        width, height = source_size(scene)
        return SourceImage(width=width, height=height, data=scene)

    def sample(self, source, x, y, width, height):
        if self.fail_sample is not None:
            raise self.fail_sample
        self.samples.append((x, y, width, height))
        out = np.zeros((height, width, 4), dtype=np.uint8)
        clip = intersect(x, y, width, height, source.width, source.height)
        if clip is None:
            return out
        cx, cy, cw, ch = clip
        ys, xs = np.ogrid[cy:cy + ch, cx:cx + cw]
        out[cy - y:cy - y + ch, cx - x:cx - x + cw] = pattern(xs, ys)
        return out

    def release(self, source):
        self.released = True
        super().release(source)


class ArrayBackend(RasterBackend):
    """Serves a fixed RGBA array as the source image."""

    name = "array"

    def __init__(self, image: np.ndarray):
        self.image = image

    def rasterize(self, scene):
        return SourceImage(width=self.image.shape[1], height=self.image.shape[0], data=self.image)

    def sample(self, source, x, y, width, height):
        return crop_rgba(source.data, x, y, width, height)


def make_scene(width: float, height: float, body: str = "", **kwargs) -> VectorScene:
    """Build a scene with a viewBox of the given size."""
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width} {height}">'
        f"{body}</svg>"
    )
    return VectorScene.from_string(svg, **kwargs)


@pytest.fixture
def pattern_backend():
    return PatternBackend()

