"""Flat pixel buffers and grid coordinates.

All grids in the pipeline are stored as flat row-major arenas: the cell at
``(x, y)`` lives at index ``y * width + x`` (times the channel count for
multi-channel buffers).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

_VALID_CHANNELS = (1, 3, 4)


class Point(NamedTuple):
    """Integer grid coordinate."""

    x: int
    y: int

    def scaled(self, factor: int) -> Point:
        return Point(self.x * factor, self.y * factor)


@dataclass
class PixelBuffer:
    """A ``width`` x ``height`` grid with ``channels`` bytes per cell.

    ``data`` is a flat uint8 array of length ``width * height * channels``.
    """

    width: int
    height: int
    channels: int
    data: NDArray[np.uint8]

    def __post_init__(self) -> None:
        if self.channels not in _VALID_CHANNELS:
            msg = f"channels must be one of {_VALID_CHANNELS}, got {self.channels}"
            raise ValueError(msg)
        if self.width < 0 or self.height < 0:
            msg = f"invalid dimensions {self.width}x{self.height}"
            raise ValueError(msg)
        if self.data.ndim != 1 or self.data.dtype != np.uint8:
            msg = "data must be a flat uint8 array"
            raise ValueError(msg)
        expected = self.width * self.height * self.channels
        if self.data.size != expected:
            msg = f"buffer length {self.data.size} does not match {self.width}x{self.height}x{self.channels}"
            raise ValueError(msg)

    @classmethod
    def from_array(cls, array: NDArray[np.uint8]) -> PixelBuffer:
        """Build a buffer from an HxW or HxWxC array (copied into a flat arena)."""
        if array.ndim == 2:  # noqa: PLR2004
            array = array[:, :, np.newaxis]
        height, width, channels = array.shape
        flat = np.ascontiguousarray(array, dtype=np.uint8).reshape(-1).copy()
        return cls(width=width, height=height, channels=channels, data=flat)

    def as_array(self) -> NDArray[np.uint8]:
        """Return an HxWxC view sharing memory with ``data``."""
        return self.data.reshape(self.height, self.width, self.channels)

    def index(self, x: int, y: int) -> int:
        """Flat index of the first channel of cell ``(x, y)``."""
        return (y * self.width + x) * self.channels

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def to_rgba(self) -> PixelBuffer:
        """Return a new 4-channel buffer; greyscale is replicated, alpha is opaque."""
        src = self.as_array()
        rgba = np.full((self.height, self.width, 4), 255, dtype=np.uint8)
        if self.channels == 1:
            rgba[:, :, :3] = src
        else:
            rgba[:, :, :3] = src[:, :, :3]
            if self.channels == 4:  # noqa: PLR2004
                rgba[:, :, 3] = src[:, :, 3]
        return PixelBuffer.from_array(rgba)
