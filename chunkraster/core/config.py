"""Configuration management for chunkraster.

This module defines the export options and the hard limits table using
Pydantic for validation. Configuration can be loaded from JSON files or
constructed programmatically.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .colors import parse_color


class ExportOptions(BaseModel):
    """Caller-supplied options for a raster export.

    Only ``scale_factor`` is treated as a preference: the scale optimizer may
    lower it to keep the output within the export limits.
    """

    scale_factor: float = Field(
        default=4.0, gt=0, allow_inf_nan=False, description="Preferred output scale"
    )
    padding: int = Field(default=60, ge=0, description="Border around the scene in output pixels")
    include_grid: bool = Field(default=False, description="Draw the editor grid behind the scene")
    grid_size: int = Field(default=20, ge=1, description="Grid spacing in scene units")
    background_color: str = Field(default="#ffffff", description="CSS color for the background")
    grid_color: str = Field(default="rgba(0, 0, 0, 0.1)", description="CSS color for grid lines")

    # Oversize handling
    fail_on_oversize: bool = Field(
        default=False,
        description="Raise SizeExceeded instead of exporting over the limits at the minimum scale",
    )

    @field_validator("background_color", "grid_color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        parse_color(value)
        return value


class ExportLimits(BaseModel):
    """Hard limits and tuning constants for the export engine.

    A single immutable table passed into the orchestrator. The defaults are
    conservative values below known per-surface limits of common raster
    backends.
    """

    # Tiling
    safe_tile_size: int = Field(default=4096, ge=1, description="Edge length of a render tile (px)")

    # Whole-output limits
    max_export_dimension: int = Field(default=65536, ge=1, description="Max output width/height (px)")
    max_export_pixels: int = Field(default=500_000_000, ge=1, description="Max output pixel count")

    # Single-surface limits
    max_single_canvas: int = Field(default=8192, ge=1, description="Max single-surface edge (px)")
    max_single_pixels: int = Field(default=67_108_864, ge=1, description="Max single-surface pixels")

    clipboard_size_limit: int = Field(
        default=16 * 1024 * 1024,
        ge=1,
        description="Largest encoded image considered clipboard-safe (bytes)",
    )

    # Scale search
    min_scale: float = Field(default=0.25, gt=0, description="Scale floor")
    scale_step: float = Field(default=0.5, gt=0, description="Decrement used by the scale search")

    model_config = {"frozen": True}


DEFAULT_LIMITS = ExportLimits()

CLIPBOARD_SIZE_LIMIT: int = DEFAULT_LIMITS.clipboard_size_limit


def default_export_options() -> ExportOptions:
    """Return the default export options."""
    return ExportOptions()


class ExporterConfig(BaseModel):
    """Main configuration container."""

    options: ExportOptions = Field(default_factory=ExportOptions)
    limits: ExportLimits = Field(default_factory=ExportLimits)

    @classmethod
    def from_file(cls, path: Path | str) -> ExporterConfig:
        """Load configuration from a JSON file."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)
        return cls.model_validate(data)

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)

    @classmethod
    def default(cls) -> ExporterConfig:
        """Create a default configuration."""
        return cls()
