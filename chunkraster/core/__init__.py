"""Core modules for chunkraster."""

from .config import (
    CLIPBOARD_SIZE_LIMIT,
    DEFAULT_LIMITS,
    ExporterConfig,
    ExportLimits,
    ExportOptions,
    default_export_options,
)
from .errors import (
    EncodingFailedError,
    ExportCancelledError,
    ExportError,
    ExportErrorKind,
    ImageLoadFailedError,
    RenderBackendUnavailableError,
    SceneUnavailableError,
    SizeExceededError,
)
from .models import ExportPhase, ExportProgress, ExportResult, SceneDimensions, Tile

__all__ = [
    "CLIPBOARD_SIZE_LIMIT",
    "DEFAULT_LIMITS",
    "ExporterConfig",
    "ExportLimits",
    "ExportOptions",
    "default_export_options",
    "EncodingFailedError",
    "ExportCancelledError",
    "ExportError",
    "ExportErrorKind",
    "ImageLoadFailedError",
    "RenderBackendUnavailableError",
    "SceneUnavailableError",
    "SizeExceededError",
    "ExportPhase",
    "ExportProgress",
    "ExportResult",
    "SceneDimensions",
    "Tile",
]
