"""Dark-region edge detection on the luminance grid."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from coronascope.imaging.buffers import PixelBuffer, Point

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from coronascope.imaging.disk import DiskMask


@dataclass
class EdgeMask:
    """Flat boolean arena marking hole-boundary cells."""

    width: int
    height: int
    cells: NDArray[np.bool_]

    def __post_init__(self) -> None:
        if self.cells.ndim != 1 or self.cells.size != self.width * self.height:
            msg = f"mask of {self.cells.size} cells does not match {self.width}x{self.height}"
            raise ValueError(msg)

    @classmethod
    def from_points(cls, width: int, height: int, points: list[Point] | list[tuple[int, int]]) -> EdgeMask:
        cells = np.zeros(width * height, dtype=np.bool_)
        for x, y in points:
            cells[y * width + x] = True
        return cls(width, height, cells)

    def __getitem__(self, point: tuple[int, int]) -> bool:
        x, y = point
        return bool(self.cells[y * self.width + x])

    @property
    def count(self) -> int:
        return int(np.count_nonzero(self.cells))

    def points(self) -> list[Point]:
        """Flagged cells in row-major order."""
        return [Point(int(i % self.width), int(i // self.width)) for i in np.flatnonzero(self.cells)]


def detect_edges(luminance: PixelBuffer, disk: DiskMask, threshold: int) -> EdgeMask:
    """Flag dark in-disk cells that touch a bright cell.

    A cell is flagged when its luminance is below ``threshold`` and at least
    one of its four axis neighbours is at or above it. Only interior cells
    are evaluated; the outermost rows and columns are never flagged.
    """
    if luminance.channels != 1:
        msg = f"expected a single-channel luminance grid, got {luminance.channels} channels"
        raise ValueError(msg)
    if (disk.width, disk.height) != (luminance.width, luminance.height):
        msg = "disk mask and luminance grid dimensions differ"
        raise ValueError(msg)

    width, height = luminance.width, luminance.height
    grid = luminance.data.reshape(height, width)
    dark = grid < threshold
    bright = ~dark

    touches_bright = bright[1:-1, :-2] | bright[1:-1, 2:] | bright[:-2, 1:-1] | bright[2:, 1:-1]
    mask = np.zeros((height, width), dtype=np.bool_)
    mask[1:-1, 1:-1] = dark[1:-1, 1:-1] & touches_bright & disk.to_array()[1:-1, 1:-1]
    return EdgeMask(width, height, mask.reshape(-1))
