"""Exception types raised by the export engine."""

from __future__ import annotations

from enum import Enum


class ExportErrorKind(str, Enum):
    """Stable error codes for export failures."""

    SCENE_UNAVAILABLE = "scene_unavailable"
    RENDER_BACKEND_UNAVAILABLE = "render_backend_unavailable"
    IMAGE_LOAD_FAILED = "image_load_failed"
    ENCODING_FAILED = "encoding_failed"
    SIZE_EXCEEDED = "size_exceeded"
    CANCELLED = "cancelled"


class ExportError(Exception):
    """Base class for export failures.

    Every failure aborts the whole export; callers never receive a partial
    image. ``kind`` identifies the failure, ``message`` is human readable.
    """

    kind: ExportErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class SceneUnavailableError(ExportError):
    """Raised when the scene handle is missing, detached or not an SVG root."""

    kind = ExportErrorKind.SCENE_UNAVAILABLE


class RenderBackendUnavailableError(ExportError):
    """Raised when a rendering surface could not be acquired."""

    kind = ExportErrorKind.RENDER_BACKEND_UNAVAILABLE


class ImageLoadFailedError(ExportError):
    """Raised when the projected scene could not be rasterized."""

    kind = ExportErrorKind.IMAGE_LOAD_FAILED


class EncodingFailedError(ExportError):
    """Raised when the finished buffer could not be encoded."""

    kind = ExportErrorKind.ENCODING_FAILED


class SizeExceededError(ExportError):
    """Raised when the output cannot fit the limits even at the minimum scale."""

    kind = ExportErrorKind.SIZE_EXCEEDED


class ExportCancelledError(ExportError):
    """Raised when the caller cancels an in-flight export."""

    kind = ExportErrorKind.CANCELLED
