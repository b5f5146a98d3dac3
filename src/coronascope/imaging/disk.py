"""Circular region of interest centred on the analysis grid."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


@dataclass(frozen=True)
class DiskMask:
    """In-disk predicate for a ``width`` x ``height`` grid.

    The radius is ``width * radius_fraction`` regardless of height, so on
    non-square grids the region is sized by the horizontal extent.
    """

    width: int
    height: int
    radius_fraction: float
    center_x: float = field(init=False)
    center_y: float = field(init=False)
    max_radius_sq: float = field(init=False)

    def __post_init__(self) -> None:
        if not 0 < self.radius_fraction <= 1:
            msg = f"radius_fraction must be in (0, 1], got {self.radius_fraction}"
            raise ValueError(msg)
        object.__setattr__(self, "center_x", self.width / 2)
        object.__setattr__(self, "center_y", self.height / 2)
        object.__setattr__(self, "max_radius_sq", (self.width * self.radius_fraction) ** 2)

    def contains(self, x: int, y: int) -> bool:
        dx = x - self.center_x
        dy = y - self.center_y
        return dx * dx + dy * dy <= self.max_radius_sq

    def to_array(self) -> NDArray[np.bool_]:
        """Boolean HxW grid, True for in-disk cells."""
        ys, xs = np.ogrid[: self.height, : self.width]
        dx = xs - self.center_x
        dy = ys - self.center_y
        return dx * dx + dy * dy <= self.max_radius_sq
