"""Tests for preview overlays."""

from __future__ import annotations

import numpy as np

from coronascope.imaging.buffers import PixelBuffer, Point
from coronascope.imaging.contours import Contour
from coronascope.imaging.render import (
    HIGHLIGHT_CYAN,
    line_points,
    overlay_contours,
    overlay_points,
    set_pixel,
)


def _grey_rgba(width: int, height: int, value: int = 40) -> PixelBuffer:
    pixels = np.full((height, width, 4), value, dtype=np.uint8)
    pixels[:, :, 3] = 255
    return PixelBuffer.from_array(pixels)


def _highlighted(buffer: PixelBuffer) -> set[Point]:
    arr = buffer.as_array()
    ys, xs = np.nonzero(np.all(arr[:, :, :3] == HIGHLIGHT_CYAN, axis=2))
    return {Point(int(x), int(y)) for x, y in zip(xs, ys, strict=True)}


class TestLinePoints:
    def test_horizontal(self) -> None:
        assert list(line_points(1, 2, 4, 2)) == [(1, 2), (2, 2), (3, 2), (4, 2)]

    def test_vertical_reversed(self) -> None:
        assert list(line_points(0, 3, 0, 0)) == [(0, 3), (0, 2), (0, 1), (0, 0)]

    def test_diagonal(self) -> None:
        assert list(line_points(0, 0, 3, 3)) == [(0, 0), (1, 1), (2, 2), (3, 3)]

    def test_single_point(self) -> None:
        assert list(line_points(5, 5, 5, 5)) == [(5, 5)]

    def test_shallow_slope_is_continuous(self) -> None:
        pts = list(line_points(0, 0, 7, 3))
        assert pts[0] == (0, 0)
        assert pts[-1] == (7, 3)
        assert len(pts) == 8
        for (ax, ay), (bx, by) in zip(pts, pts[1:], strict=False):
            assert max(abs(ax - bx), abs(ay - by)) == 1


class TestOverlayPoints:
    def test_only_listed_pixels_change(self) -> None:
        buf = _grey_rgba(6, 4)
        before = buf.data.copy()
        overlay_points(buf, [Point(1, 1), Point(4, 2)])

        assert _highlighted(buf) == {Point(1, 1), Point(4, 2)}
        changed = np.flatnonzero(before != buf.data)
        assert set(changed // 4) == {1 * 6 + 1, 2 * 6 + 4}

    def test_alpha_forced_opaque(self) -> None:
        buf = PixelBuffer.from_array(np.zeros((2, 2, 4), dtype=np.uint8))
        overlay_points(buf, [Point(0, 1)])
        assert buf.as_array()[1, 0].tolist() == [0, 255, 255, 255]

    def test_out_of_bounds_is_ignored(self) -> None:
        buf = _grey_rgba(3, 3)
        before = buf.data.copy()
        overlay_points(buf, [Point(-1, 0), Point(3, 1), Point(0, 9)])
        assert np.array_equal(before, buf.data)

    def test_custom_colour(self) -> None:
        buf = _grey_rgba(2, 2)
        overlay_points(buf, [Point(1, 0)], color=(255, 0, 0))
        assert buf.as_array()[0, 1, :3].tolist() == [255, 0, 0]

    def test_greyscale_buffer_gets_luma(self) -> None:
        buf = PixelBuffer.from_array(np.zeros((2, 2), dtype=np.uint8))
        assert set_pixel(buf, 1, 1, (255, 255, 255))
        assert buf.as_array()[1, 1, 0] >= 254


class TestOverlayContours:
    def test_segments_are_rasterized(self) -> None:
        buf = _grey_rgba(10, 10)
        contour = Contour((Point(1, 1), Point(5, 1), Point(5, 4)))
        overlay_contours(buf, [contour])

        expected = {Point(x, 1) for x in range(1, 6)} | {Point(5, y) for y in range(1, 5)}
        assert _highlighted(buf) == expected

    def test_clipping_at_bounds(self) -> None:
        buf = _grey_rgba(4, 4)
        contour = Contour((Point(2, 2), Point(8, 2)))
        overlay_contours(buf, [contour])
        assert _highlighted(buf) == {Point(2, 2), Point(3, 2)}

    def test_single_point_contour(self) -> None:
        buf = _grey_rgba(4, 4)
        overlay_contours(buf, [Contour((Point(3, 0),))])
        assert _highlighted(buf) == {Point(3, 0)}

    def test_returns_same_buffer(self) -> None:
        buf = _grey_rgba(4, 4)
        assert overlay_contours(buf, []) is buf
        assert overlay_points(buf, []) is buf
