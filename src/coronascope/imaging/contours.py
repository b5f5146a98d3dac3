"""Chain edge cells into ordered polylines.

The walk is greedy: from each unvisited edge cell it keeps stepping to the
first unvisited flagged neighbour in a fixed order and stops at a dead end.
It does not backtrack, so branching boundaries are split arbitrarily and
contours are not guaranteed to close.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from coronascope.imaging.buffers import Point

if TYPE_CHECKING:
    from collections.abc import Iterator

    from coronascope.imaging.detector import EdgeMask

MIN_CONTOUR_LENGTH = 5

# W, NW, N, NE, E, SE, S, SW
NEIGHBOUR_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
)


@dataclass(frozen=True)
class Contour:
    """An ordered chain of grid coordinates."""

    points: tuple[Point, ...]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def scaled(self, factor: int) -> Contour:
        return Contour(tuple(p.scaled(factor) for p in self.points))

    def segments(self) -> Iterator[tuple[Point, Point]]:
        """Consecutive point pairs; the chain is not closed."""
        return zip(self.points, self.points[1:], strict=False)


def trace_contours(mask: EdgeMask, min_length: int = MIN_CONTOUR_LENGTH) -> list[Contour]:
    """Split the flagged cells of ``mask`` into greedy 8-connected chains.

    Chains start at unvisited cells in row-major order. Chains shorter than
    ``min_length`` are dropped; their cells stay visited and never join
    another chain.
    """
    width, height = mask.width, mask.height
    cells = mask.cells.tolist()
    visited = bytearray(width * height)
    contours: list[Contour] = []

    for start, flagged in enumerate(cells):
        if not flagged or visited[start]:
            continue

        visited[start] = 1
        chain = [start]
        x, y = start % width, start // width
        while True:
            for dx, dy in NEIGHBOUR_OFFSETS:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < width and 0 <= ny < height):
                    continue
                idx = ny * width + nx
                if cells[idx] and not visited[idx]:
                    visited[idx] = 1
                    chain.append(idx)
                    x, y = nx, ny
                    break
            else:
                break

        if len(chain) >= min_length:
            contours.append(Contour(tuple(Point(i % width, i // width) for i in chain)))

    return contours
