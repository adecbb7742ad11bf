"""chunkraster - High-resolution PNG export for large vector diagrams.

Renders SVG scenes in tiles that stay under per-surface size limits and
stitches them into one lossless image.
"""

__version__ = "0.1.0"

from .core.config import CLIPBOARD_SIZE_LIMIT, DEFAULT_LIMITS, ExporterConfig, ExportLimits, ExportOptions, default_export_options
from .core.errors import ExportError, ExportErrorKind
from .core.models import ExportPhase, ExportProgress, ExportResult, SceneDimensions, Tile
from .scene import VectorScene, project_styles, resolve_dimensions
from .backend import CairoBackend, RasterBackend, SourceImage
from .export import export_raster, export_raster_async, needs_chunking, optimize_scale, plan_export, plan_tiles

__all__ = [
    "CLIPBOARD_SIZE_LIMIT",
    "DEFAULT_LIMITS",
    "ExporterConfig",
    "ExportLimits",
    "ExportOptions",
    "default_export_options",
    "ExportError",
    "ExportErrorKind",
    "ExportPhase",
    "ExportProgress",
    "ExportResult",
    "SceneDimensions",
    "Tile",
    "VectorScene",
    "project_styles",
    "resolve_dimensions",
    "CairoBackend",
    "RasterBackend",
    "SourceImage",
    "export_raster",
    "export_raster_async",
    "needs_chunking",
    "optimize_scale",
    "plan_export",
    "plan_tiles",
]
