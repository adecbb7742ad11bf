"""Chunked raster export pipeline."""

from .compositor import PixelBuffer
from .encoder import decode_png, encode_png
from .exporter import ExportPlan, export_raster, export_raster_async, plan_export
from .progress import ProgressCallback, ProgressReporter
from .renderer import render_tile
from .scale import fits_limits, optimize_scale, output_size
from .tiles import needs_chunking, plan_tiles

__all__ = [
    "PixelBuffer",
    "decode_png",
    "encode_png",
    "ExportPlan",
    "export_raster",
    "export_raster_async",
    "plan_export",
    "ProgressCallback",
    "ProgressReporter",
    "render_tile",
    "fits_limits",
    "optimize_scale",
    "output_size",
    "needs_chunking",
    "plan_tiles",
]
