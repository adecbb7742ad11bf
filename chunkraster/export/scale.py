"""Export scale selection under output size limits."""

from __future__ import annotations

import logging
import math

from ..core.config import DEFAULT_LIMITS, ExportLimits
from ..core.models import SceneDimensions

logger = logging.getLogger(__name__)


def padded_size(width: float, height: float, padding: float, scale: float) -> tuple[float, float]:
    """Output (width, height) of a scene scaled by ``scale`` with padding on each side."""
    return width * scale + padding * 2, height * scale + padding * 2


def fits_limits(
    width: float,
    height: float,
    padding: float,
    scale: float,
    limits: ExportLimits = DEFAULT_LIMITS,
) -> bool:
    """Check whether the padded output at ``scale`` is within the export limits."""
    out_w, out_h = padded_size(width, height, padding, scale)
    return (
        out_w <= limits.max_export_dimension
        and out_h <= limits.max_export_dimension
        and out_w * out_h <= limits.max_export_pixels
    )


def max_scale_for_limits(
    width: float,
    height: float,
    padding: float,
    limits: ExportLimits = DEFAULT_LIMITS,
) -> float:
    """Largest scale allowed by each limit on its own, whichever is smallest.

    The pixel-budget bound is the positive root of
    ``w*h*s**2 + 2p(w+h)*s + 4p**2 - max_pixels = 0``, the padded output area
    at scale ``s`` set equal to the budget. Returns 0 when the padding alone
    breaks a limit.
    """
    pad = padding * 2
    max_by_width = (limits.max_export_dimension - pad) / width
    max_by_height = (limits.max_export_dimension - pad) / height

    room = limits.max_export_pixels - pad * pad
    if room <= 0:
        return 0.0
    linear = pad * (width + height)
    # Rationalized root, stable when the padding term dominates
    max_by_pixels = 2 * room / (linear + math.sqrt(linear * linear + 4 * width * height * room))

    scale = max(0.0, min(max_by_width, max_by_height, max_by_pixels))
    # Rounding can leave the root a few ulps past the limit
    while scale > 0 and not fits_limits(width, height, padding, scale, limits):
        scale = math.nextafter(scale, 0.0)
    return scale


def optimize_scale(
    width: float,
    height: float,
    padding: float,
    preferred: float,
    limits: ExportLimits = DEFAULT_LIMITS,
) -> float:
    """Find the largest usable scale not above ``preferred``.

    Steps down from ``preferred`` by ``limits.scale_step`` while the scale is
    at least 0.5 and returns the first one whose padded output fits. If none
    does, the analytic maximum from ``max_scale_for_limits`` is used, never
    below ``limits.min_scale``. A preferred scale under the floor is kept.

    Args:
        width: Intrinsic scene width
        height: Intrinsic scene height
        padding: Padding in output pixels on each side
        preferred: Requested scale
        limits: Export limits

    Returns:
        Scale no larger than ``preferred``, and at least ``limits.min_scale``
        unless ``preferred`` itself is smaller

    Raises:
        ValueError: If ``preferred`` is not a positive finite number
    """
    if not math.isfinite(preferred) or preferred <= 0:
        raise ValueError(f"Scale factor must be a positive number, got {preferred}")

    scale = preferred
    while scale >= 0.5:
        if fits_limits(width, height, padding, scale, limits):
            if scale < preferred:
                logger.info(f"Reduced export scale from {preferred:g} to {scale:g} to fit limits")
            return scale
        scale -= limits.scale_step

    analytic = max_scale_for_limits(width, height, padding, limits)
    clamped = min(preferred, max(limits.min_scale, analytic))
    if clamped == preferred:
        return clamped
    if analytic < limits.min_scale:
        logger.warning(
            f"Scene too large for export limits even at scale {analytic:.4f}; "
            f"using minimum scale {limits.min_scale:g}"
        )
    else:
        logger.info(f"Reduced export scale from {preferred:g} to {clamped:.4f} to fit limits")
    return clamped


def output_size(dimensions: SceneDimensions, scale: float, padding: int) -> tuple[int, int]:
    """Final integer (width, height) of the padded output raster."""
    out_w, out_h = padded_size(dimensions.width, dimensions.height, padding, scale)
    return math.ceil(out_w), math.ceil(out_h)
