"""Highlight overlays drawn onto preview buffers.

Both overlays write in place into the buffer they are given and only ever
touch the highlighted cells. Coordinates outside the buffer are skipped.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from coronascope.imaging.buffers import PixelBuffer, Point
    from coronascope.imaging.contours import Contour

HIGHLIGHT_CYAN: tuple[int, int, int] = (0, 255, 255)


class OverlayMode(StrEnum):
    POINTS = "points"
    LINES = "lines"


def set_pixel(buffer: PixelBuffer, x: int, y: int, color: tuple[int, int, int]) -> bool:
    """Paint one cell; returns False (and does nothing) when out of bounds."""
    if not buffer.contains(x, y):
        return False
    i = buffer.index(x, y)
    if buffer.channels == 1:
        # Greyscale buffers get the colour's luma.
        r, g, b = color
        buffer.data[i] = min(255, int(0.299 * r + 0.587 * g + 0.114 * b))
    else:
        buffer.data[i : i + 3] = color
        if buffer.channels == 4:  # noqa: PLR2004
            buffer.data[i + 3] = 255
    return True


def line_points(x0: int, y0: int, x1: int, y1: int) -> Iterator[tuple[int, int]]:
    """Integer Bresenham rasterization from ``(x0, y0)`` to ``(x1, y1)`` inclusive."""
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy
    while True:
        yield x0, y0
        if x0 == x1 and y0 == y1:
            return
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def draw_line(buffer: PixelBuffer, start: Point, end: Point, color: tuple[int, int, int]) -> None:
    for x, y in line_points(start.x, start.y, end.x, end.y):
        set_pixel(buffer, x, y, color)


def overlay_points(
    buffer: PixelBuffer,
    points: Iterable[Point],
    color: tuple[int, int, int] = HIGHLIGHT_CYAN,
) -> PixelBuffer:
    """Paint every point in ``points``. Returns ``buffer`` for chaining."""
    for x, y in points:
        set_pixel(buffer, x, y, color)
    return buffer


def overlay_contours(
    buffer: PixelBuffer,
    contours: Iterable[Contour],
    color: tuple[int, int, int] = HIGHLIGHT_CYAN,
) -> PixelBuffer:
    """Draw each contour as a polyline through its points. Returns ``buffer``."""
    for contour in contours:
        if len(contour) == 1:
            overlay_points(buffer, contour, color)
            continue
        for start, end in contour.segments():
            draw_line(buffer, start, end, color)
    return buffer
