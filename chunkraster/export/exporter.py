"""Chunked raster export.

Exports a vector scene as one lossless PNG by rendering it in tiles, so no
single rendering surface exceeds the safe size, and stitching the tiles
into one output buffer.

The export runs as a generator that yields after each composited tile.
``export_raster`` drives it straight through; ``export_raster_async`` hands
control back to the event loop at every yield point.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Generator

from ..backend.base import RasterBackend
from ..core.config import DEFAULT_LIMITS, ExportLimits, ExportOptions
from ..core.errors import (
    ExportCancelledError,
    ExportError,
    ImageLoadFailedError,
    SceneUnavailableError,
    SizeExceededError,
)
from ..core.models import ExportResult, SceneDimensions, Tile
from ..scene.dimensions import resolve_dimensions
from ..scene.scene import VectorScene
from ..scene.styles import project_styles
from .compositor import PixelBuffer
from .encoder import encode_png
from .progress import ProgressCallback, ProgressReporter
from .renderer import render_tile
from .scale import fits_limits, optimize_scale, output_size
from .tiles import needs_chunking, plan_tiles

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]


@dataclass
class ExportPlan:
    """Everything decided about an export before any pixel is rendered."""

    dimensions: SceneDimensions
    requested_scale: float
    scale: float
    width: int
    height: int
    tiles: list[Tile]
    chunked: bool

    @property
    def tile_count(self) -> int:
        return len(self.tiles)

    @property
    def scale_reduced(self) -> bool:
        return self.scale < self.requested_scale

    @property
    def total_pixels(self) -> int:
        return self.width * self.height


def _require_scene(scene: VectorScene | None) -> VectorScene:
    if not isinstance(scene, VectorScene):
        raise SceneUnavailableError(f"Expected a VectorScene, got {type(scene).__name__}")
    # Raises if detached or not an <svg> root
    _ = scene.root
    return scene


def plan_export(
    scene: VectorScene,
    options: ExportOptions | None = None,
    limits: ExportLimits = DEFAULT_LIMITS,
) -> ExportPlan:
    """Work out scale, output size and tiling for an export.

    Raises:
        SceneUnavailableError: If the scene cannot be read
        SizeExceededError: If ``options.fail_on_oversize`` is set and the
            output exceeds the limits even at the minimum scale
    """
    scene = _require_scene(scene)
    options = options or ExportOptions()

    dimensions = resolve_dimensions(scene)
    scale = optimize_scale(
        dimensions.width, dimensions.height, options.padding, options.scale_factor, limits
    )
    if options.fail_on_oversize and not fits_limits(
        dimensions.width, dimensions.height, options.padding, scale, limits
    ):
        raise SizeExceededError(
            f"Scene of {dimensions.width:g}x{dimensions.height:g} units exceeds export limits "
            f"even at scale {scale:g}"
        )

    width, height = output_size(dimensions, scale, options.padding)
    tiles = plan_tiles(width, height, limits.safe_tile_size)

    return ExportPlan(
        dimensions=dimensions,
        requested_scale=options.scale_factor,
        scale=scale,
        width=width,
        height=height,
        tiles=tiles,
        chunked=needs_chunking(width, height, limits),
    )


def _run_export(
    scene: VectorScene,
    options: ExportOptions | None,
    on_progress: ProgressCallback | None,
    backend: RasterBackend | None,
    limits: ExportLimits,
    cancel_check: CancelCheck | None,
) -> Generator[Tile, None, ExportResult]:
    start_time = time.perf_counter()
    options = options or ExportOptions()
    reporter = ProgressReporter(on_progress)

    try:
        reporter.preparing()

        plan = plan_export(scene, options, limits)
        projected = project_styles(scene, plan.scale, plan.dimensions)
        total_tiles = plan.tile_count

        if backend is None:
            from ..backend.cairo import CairoBackend

            backend = CairoBackend()

        logger.info(
            f"Exporting {plan.width}x{plan.height} px at scale {plan.scale:g} "
            f"in {total_tiles} tile(s) using {backend.name}"
        )

        try:
            source = backend.rasterize(projected)
        except ExportError:
            raise
        except Exception as e:
            raise ImageLoadFailedError(f"Failed to load projected scene: {e}") from e

        try:
            buffer = PixelBuffer(plan.width, plan.height)
            for i, tile in enumerate(plan.tiles):
                reporter.rendering(i + 1, total_tiles)

                pixels = render_tile(tile, source, backend, options, plan.scale)
                buffer.write_tile(tile, pixels)
                del pixels

                yield tile

                if cancel_check is not None and cancel_check():
                    raise ExportCancelledError(
                        f"Export cancelled after tile {i + 1} of {total_tiles}"
                    )
        finally:
            backend.release(source)

        reporter.encoding()
        image_bytes = encode_png(buffer.data, plan.width, plan.height)
        del buffer

        duration_ms = (time.perf_counter() - start_time) * 1000.0
        reporter.complete(duration_ms)
        logger.info(
            f"Export complete: {plan.width}x{plan.height} px, {len(image_bytes):,} bytes "
            f"in {duration_ms:.0f}ms"
        )

        return ExportResult(
            image_bytes=image_bytes,
            width=plan.width,
            height=plan.height,
            tile_count=total_tiles,
            duration_ms=duration_ms,
            scale_factor=plan.scale,
        )

    except ExportCancelledError as e:
        logger.warning(f"Export cancelled: {e}")
        reporter.error(str(e))
        raise
    except ExportError as e:
        logger.error(f"Export failed ({e.kind.value}): {e}")
        reporter.error(str(e))
        raise
    except Exception as e:
        logger.error(f"Export failed: {e}")
        reporter.error(str(e) or e.__class__.__name__)
        raise


def export_raster(
    scene: VectorScene,
    options: ExportOptions | None = None,
    on_progress: ProgressCallback | None = None,
    *,
    backend: RasterBackend | None = None,
    limits: ExportLimits = DEFAULT_LIMITS,
    cancel_check: CancelCheck | None = None,
) -> ExportResult:
    """Export a scene as a high-resolution PNG using tiled rendering.

    Args:
        scene: Scene to export
        options: Export options (defaults if omitted)
        on_progress: Called synchronously at each phase and for every tile
        backend: Rendering backend (CairoSVG if omitted)
        limits: Size limits and tiling constants
        cancel_check: Polled after every tile; returning True cancels

    Returns:
        ExportResult with the encoded PNG

    Raises:
        ExportError: Any failure; no partial image is returned
    """
    steps = _run_export(scene, options, on_progress, backend, limits, cancel_check)
    while True:
        try:
            next(steps)
        except StopIteration as stop:
            return stop.value


async def export_raster_async(
    scene: VectorScene,
    options: ExportOptions | None = None,
    on_progress: ProgressCallback | None = None,
    *,
    backend: RasterBackend | None = None,
    limits: ExportLimits = DEFAULT_LIMITS,
    cancel_check: CancelCheck | None = None,
) -> ExportResult:
    """Like ``export_raster``, but yields to the event loop after every tile.

    Tiles are still rendered one at a time on the calling thread.
    """
    steps = _run_export(scene, options, on_progress, backend, limits, cancel_check)
    try:
        while True:
            try:
                next(steps)
            except StopIteration as stop:
                return stop.value
            await asyncio.sleep(0)
    finally:
        steps.close()
