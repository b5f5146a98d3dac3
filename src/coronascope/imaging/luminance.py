"""RGB to luminance conversion."""

from __future__ import annotations

import math
from enum import StrEnum

import numpy as np

from coronascope.imaging.buffers import PixelBuffer

_LOG_SCALE = 255.0 / math.log(256.0)


class LuminanceMode(StrEnum):
    LINEAR = "linear"
    LOG = "log"


def luminance(r: float, g: float, b: float, mode: LuminanceMode = LuminanceMode.LINEAR) -> float:
    """Rec. 601 luma of one RGB triple, optionally log-compressed, clamped to [0, 255]."""
    lum = 0.299 * r + 0.587 * g + 0.114 * b
    if mode == LuminanceMode.LOG:
        lum = math.log1p(lum) * _LOG_SCALE
    return min(255.0, max(0.0, lum))


def luminance_grid(buffer: PixelBuffer, mode: LuminanceMode = LuminanceMode.LINEAR) -> PixelBuffer:
    """Compute a single-channel luminance buffer from an RGB(A) buffer.

    Values are clamped and then truncated to bytes, so thresholds compare
    against the same integers a stored greyscale image would hold.
    """
    if buffer.channels < 3:  # noqa: PLR2004
        msg = f"luminance needs an RGB or RGBA buffer, got {buffer.channels} channel(s)"
        raise ValueError(msg)

    rgb = buffer.as_array()[:, :, :3].astype(np.float64)
    lum = 0.299 * rgb[:, :, 0] + 0.587 * rgb[:, :, 1] + 0.114 * rgb[:, :, 2]
    if mode == LuminanceMode.LOG:
        lum = np.log1p(lum) * _LOG_SCALE
    grid = np.clip(lum, 0.0, 255.0).astype(np.uint8)
    return PixelBuffer.from_array(grid)
