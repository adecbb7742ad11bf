"""CairoSVG rendering backend.

Instead of rasterizing the whole scene at export scale, which is exactly the
single huge surface tiling avoids, each ``sample`` call renders only the
requested window by pointing the SVG viewBox at the matching region of the
scene.
"""

from __future__ import annotations

import io
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from types import ModuleType

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from ..core.errors import ImageLoadFailedError, RenderBackendUnavailableError
from ..scene.styles import ProjectedScene
from .base import RasterBackend, SourceImage, intersect, source_size

logger = logging.getLogger(__name__)


def _load_cairosvg() -> ModuleType:
    # cairosvg needs the native cairo library at import time
    try:
        import cairosvg
    except (ImportError, OSError) as e:
        raise RenderBackendUnavailableError(
            f"CairoSVG is not available: {e}. Install it with: pip install cairosvg"
        ) from e
    return cairosvg


def _fmt(value: float) -> str:
    return f"{value:.6f}".rstrip("0").rstrip(".")


@dataclass
class _Window:
    scene: ProjectedScene
    cairosvg: ModuleType


class CairoBackend(RasterBackend):
    """Renders SVG regions with CairoSVG.

    Args:
        unsafe: Allow external file access and XML entities while parsing
    """

    name = "cairosvg"

    def __init__(self, unsafe: bool = False):
        self.unsafe = unsafe

    def _render(self, cairosvg: ModuleType, svg_text: str, width: int, height: int) -> NDArray[np.uint8]:
        png = cairosvg.svg2png(
            bytestring=svg_text.encode("utf-8"),
            output_width=width,
            output_height=height,
            unsafe=self.unsafe,
        )
        with Image.open(io.BytesIO(png)) as img:
            rgba = np.asarray(img.convert("RGBA"), dtype=np.uint8)
        if rgba.shape[:2] != (height, width):
            # cairosvg rounds output sizes; normalise to the requested window
            padded = np.zeros((height, width, 4), dtype=np.uint8)
            h = min(height, rgba.shape[0])
            w = min(width, rgba.shape[1])
            padded[:h, :w] = rgba[:h, :w]
            rgba = padded
        return rgba

    def rasterize(self, scene: ProjectedScene) -> SourceImage:
        cairosvg = _load_cairosvg()
        width, height = source_size(scene)

        # Render a thumbnail to surface parse errors before tiling starts
        try:
            self._render(cairosvg, scene.to_svg(), 1, 1)
        except Exception as e:
            raise ImageLoadFailedError(f"Failed to load projected scene: {e}") from e

        logger.debug(f"Loaded scene as {width}x{height} source image")
        return SourceImage(width=width, height=height, data=_Window(scene, cairosvg))

    def sample(self, source: SourceImage, x: int, y: int, width: int, height: int) -> NDArray[np.uint8]:
        window: _Window | None = source.data
        if window is None:
            raise RenderBackendUnavailableError("Source image has been released")

        out = np.zeros((height, width, 4), dtype=np.uint8)
        clip = intersect(x, y, width, height, source.width, source.height)
        if clip is None:
            return out
        cx, cy, cw, ch = clip

        scene = window.scene
        dims = scene.dimensions
        scale = scene.scale

        # Children are shared with the projected tree, attributes are not
        root = ET.Element(scene.root.tag, dict(scene.root.attrib))
        root.text = scene.root.text
        root.extend(list(scene.root))
        # Point the viewBox at the clipped window, in scene units
        root.set(
            "viewBox",
            f"{_fmt(dims.origin_x + cx / scale)} {_fmt(dims.origin_y + cy / scale)} "
            f"{_fmt(cw / scale)} {_fmt(ch / scale)}",
        )
        root.set("width", str(cw))
        root.set("height", str(ch))
        root.set("preserveAspectRatio", "none")
        svg_text = ET.tostring(root, encoding="unicode")

        out[cy - y:cy - y + ch, cx - x:cx - x + cw] = self._render(window.cairosvg, svg_text, cw, ch)
        return out
