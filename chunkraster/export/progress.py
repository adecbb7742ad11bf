"""Staged progress reporting for exports.

Percentages are allocated as: preparing 0, rendering 0-80 (one event per
tile), encoding 85, complete 100. Callers drive progress bars from these
fixed points.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

from ..core.models import ExportPhase, ExportProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ExportProgress], None]

RENDERING_SHARE = 80
ENCODING_PERCENT = 85


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ProgressReporter:
    """Emits progress events to an optional callback."""

    def __init__(self, callback: ProgressCallback | None = None):
        self.callback = callback
        self.phase: ExportPhase | None = None
        self.percentage = 0
        self.current_tile = 0
        self.total_tiles = 0

    def _emit(self, phase: ExportPhase, percentage: int, message: str) -> ExportProgress:
        self.phase = phase
        self.percentage = percentage
        progress = ExportProgress(
            phase=phase,
            current_tile=self.current_tile,
            total_tiles=self.total_tiles,
            percentage=percentage,
            message=message,
        )
        logger.debug(f"[{phase.value} {percentage}%] {message}")
        if self.callback is not None:
            self.callback(progress)
        return progress

    def preparing(self) -> ExportProgress:
        return self._emit(ExportPhase.PREPARING, 0, "Preparing diagram for export...")

    def rendering(self, tile_number: int, total_tiles: int) -> ExportProgress:
        """Report that tile ``tile_number`` (1-based) is being rendered."""
        self.current_tile = tile_number
        self.total_tiles = total_tiles
        percentage = _round_half_up(tile_number / total_tiles * RENDERING_SHARE)
        return self._emit(
            ExportPhase.RENDERING,
            percentage,
            f"Rendering tile {tile_number} of {total_tiles}...",
        )

    def encoding(self) -> ExportProgress:
        self.current_tile = self.total_tiles
        return self._emit(ExportPhase.ENCODING, ENCODING_PERCENT, "Encoding PNG...")

    def complete(self, duration_ms: float) -> ExportProgress:
        return self._emit(
            ExportPhase.COMPLETE,
            100,
            f"Export complete in {_round_half_up(duration_ms)}ms",
        )

    def error(self, message: str) -> ExportProgress:
        return self._emit(ExportPhase.ERROR, self.percentage, message)
