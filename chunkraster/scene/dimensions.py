"""Intrinsic dimensions of a vector scene."""

from __future__ import annotations

import logging
import re

from ..core.models import SceneDimensions
from .scene import VectorScene

logger = logging.getLogger(__name__)

# CSS absolute units in px
_UNIT_FACTORS = {
    "": 1.0,
    "px": 1.0,
    "pt": 4.0 / 3.0,
    "pc": 16.0,
    "in": 96.0,
    "cm": 96.0 / 2.54,
    "mm": 96.0 / 25.4,
    "q": 96.0 / 101.6,
}

_LENGTH_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*([a-zA-Z]*)\s*$")


def parse_length(value: str | None) -> float | None:
    """Parse an absolute SVG length into px.

    Percentages and font-relative units have no absolute meaning here and
    yield None.
    """
    if value is None:
        return None
    match = _LENGTH_RE.match(value)
    if not match:
        return None
    factor = _UNIT_FACTORS.get(match.group(2).lower())
    if factor is None:
        return None
    return float(match.group(1)) * factor


def parse_view_box(value: str | None) -> tuple[float, float, float, float] | None:
    """Parse a ``viewBox`` attribute into (x, y, width, height)."""
    if not value:
        return None
    parts = [p for p in re.split(r"[\s,]+", value.strip()) if p]
    if len(parts) != 4:
        return None
    try:
        x, y, w, h = (float(p) for p in parts)
    except ValueError:
        return None
    return x, y, w, h


def resolve_dimensions(scene: VectorScene) -> SceneDimensions:
    """Get the intrinsic size and origin of a scene.

    The declared viewBox is used when it has a positive size. Otherwise the
    rendered size (the on-screen size, or the root width/height attributes)
    is divided by the display zoom and the origin is (0, 0).

    Args:
        scene: Scene to measure

    Returns:
        SceneDimensions with positive width and height
    """
    root = scene.root

    view_box = parse_view_box(root.get("viewBox"))
    if view_box is not None:
        x, y, w, h = view_box
        if w > 0 and h > 0:
            return SceneDimensions(width=w, height=h, origin_x=x, origin_y=y)
        logger.debug(f"Ignoring degenerate viewBox {root.get('viewBox')!r}")

    if scene.display_size is not None:
        rendered_w, rendered_h = scene.display_size
    else:
        rendered_w = parse_length(root.get("width")) or 0.0
        rendered_h = parse_length(root.get("height")) or 0.0

    width = rendered_w / scene.zoom
    height = rendered_h / scene.zoom

    if width <= 0 or height <= 0:
        logger.warning(
            f"Scene has no usable size ({width:g}x{height:g}); clamping to at least 1 unit"
        )
        width = max(width, 1.0)
        height = max(height, 1.0)

    return SceneDimensions(width=width, height=height, origin_x=0.0, origin_y=0.0)
