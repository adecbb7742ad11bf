"""Data structures shared by the export pipeline.

All of these are created fresh for each export call and discarded when the
call returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .config import DEFAULT_LIMITS, ExportLimits


@dataclass(frozen=True)
class SceneDimensions:
    """Intrinsic logical size and coordinate origin of a vector scene.

    Attributes:
        width: Logical width in scene units
        height: Logical height in scene units
        origin_x: X of the viewport origin (may be negative)
        origin_y: Y of the viewport origin (may be negative)
    """

    width: float
    height: float
    origin_x: float = 0.0
    origin_y: float = 0.0

    def scaled(self, scale: float) -> tuple[float, float]:
        """Return (width, height) multiplied by ``scale``."""
        return self.width * scale, self.height * scale


@dataclass(frozen=True)
class Tile:
    """A rectangular region of the final output raster.

    Coordinates are absolute output pixels with the origin at the top-left
    corner of the padded output.
    """

    index: int
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        """Number of pixels covered by this tile."""
        return self.width * self.height

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


class ExportPhase(str, Enum):
    """Stages reported through progress callbacks."""

    PREPARING = "preparing"
    RENDERING = "rendering"
    ENCODING = "encoding"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class ExportProgress:
    """Progress information during an export."""

    phase: ExportPhase
    current_tile: int
    total_tiles: int
    percentage: int
    message: str


@dataclass
class ExportResult:
    """Outcome of a successful export.

    Attributes:
        image_bytes: Encoded lossless PNG
        width: Output width in pixels
        height: Output height in pixels
        tile_count: Number of tiles rendered
        duration_ms: Wall-clock export time in milliseconds
        scale_factor: Scale actually used (may be below the requested one)
    """

    image_bytes: bytes
    width: int
    height: int
    tile_count: int
    duration_ms: float
    scale_factor: float

    @property
    def size_bytes(self) -> int:
        return len(self.image_bytes)

    def clipboard_safe(self, limits: ExportLimits = DEFAULT_LIMITS) -> bool:
        """Whether the encoded image is small enough to put on the clipboard."""
        return self.size_bytes <= limits.clipboard_size_limit

    def save(self, path: Path | str) -> Path:
        """Write the encoded image to ``path`` and return it."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.image_bytes)
        return path
