"""Rendering backend interface.

The export engine does not draw vector graphics itself. A backend turns a
projected scene into a source image and samples pixel regions from it.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..scene.styles import ProjectedScene


@dataclass
class SourceImage:
    """A rasterizable scene as loaded by a backend.

    Attributes:
        width: Pixel width of the scaled scene
        height: Pixel height of the scaled scene
        data: Backend-specific payload
    """

    width: int
    height: int
    data: Any = None


def source_size(scene: ProjectedScene) -> tuple[int, int]:
    """Pixel size a backend should give the source image of ``scene``."""
    width, height = scene.pixel_size
    return max(1, math.ceil(width)), max(1, math.ceil(height))


def intersect(
    x: int, y: int, width: int, height: int, bound_w: int, bound_h: int
) -> tuple[int, int, int, int] | None:
    """Clip a rectangle to ``[0, bound_w) x [0, bound_h)``.

    Returns:
        (x, y, width, height) of the intersection, or None if empty
    """
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + width, bound_w), min(y + height, bound_h)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1 - x0, y1 - y0


def crop_rgba(image: NDArray[np.uint8], x: int, y: int, width: int, height: int) -> NDArray[np.uint8]:
    """Cut a region out of an HxWx4 image, transparent where it falls outside.

    Args:
        image: Source RGBA array
        x: Left edge of the region (may be negative)
        y: Top edge of the region (may be negative)
        width: Region width
        height: Region height

    Returns:
        height x width x 4 uint8 array
    """
    out = np.zeros((height, width, 4), dtype=np.uint8)
    clip = intersect(x, y, width, height, image.shape[1], image.shape[0])
    if clip is None:
        return out
    cx, cy, cw, ch = clip
    out[cy - y:cy - y + ch, cx - x:cx - x + cw] = image[cy:cy + ch, cx:cx + cw]
    return out


class RasterBackend(ABC):
    """Turns projected scenes into sampled RGBA pixels.

    Implementations must be deterministic and scale-correct: sampling the
    same region twice gives the same pixels, and a region of the source
    image corresponds to the scene scaled by ``ProjectedScene.scale``.
    """

    name: str = "abstract"

    @abstractmethod
    def rasterize(self, scene: ProjectedScene) -> SourceImage:
        """Load a projected scene as a source image.

        Raises:
            ImageLoadFailedError: If the scene cannot be rasterized
            RenderBackendUnavailableError: If the backend cannot run
        """

    @abstractmethod
    def sample(self, source: SourceImage, x: int, y: int, width: int, height: int) -> NDArray[np.uint8]:
        """Return the ``width x height`` region at (x, y) of the source image.

        Coordinates may fall partly or wholly outside the source image;
        those pixels are fully transparent.

        Returns:
            height x width x 4 uint8 array of straight (non-premultiplied) RGBA
        """

    def release(self, source: SourceImage) -> None:
        """Free resources held by a source image."""
        source.data = None
