"""End-to-end coronal hole detection on one encoded image."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from coronascope.imaging.codec import ImageDecoder, ImageEncoder, PillowDecoder, PillowEncoder
from coronascope.imaging.contours import Contour, trace_contours
from coronascope.imaging.detector import detect_edges
from coronascope.imaging.disk import DiskMask
from coronascope.imaging.downsample import downsample
from coronascope.imaging.luminance import LuminanceMode, luminance_grid
from coronascope.imaging.render import OverlayMode, overlay_contours, overlay_points

if TYPE_CHECKING:
    from coronascope.config import Settings
    from coronascope.imaging.buffers import Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionResult:
    """Output of one pipeline run. Coordinates are at original resolution."""

    original_width: int
    original_height: int
    analysis_width: int
    analysis_height: int
    step: int
    points: tuple[Point, ...]
    contours: tuple[Contour, ...]
    preview: bytes
    preview_media_type: str


class CoronalHolePipeline:
    """Decode, analyse and render one solar disk image.

    Holds configuration only; every call to ``run`` works on its own buffers,
    so one instance can serve concurrent runs.
    """

    def __init__(
        self,
        settings: Settings,
        decoder: ImageDecoder | None = None,
        encoder: ImageEncoder | None = None,
    ) -> None:
        self._settings = settings
        self._decoder = decoder or PillowDecoder(max_pixels=settings.max_image_pixels)
        self._encoder = encoder or PillowEncoder(settings.preview_format)

    def run(self, image_bytes: bytes) -> DetectionResult:
        """Run the full pipeline.

        Raises:
            DecodeError: If ``image_bytes`` is not a readable image.
            EncodeError: If the preview cannot be serialized.
        """
        settings = self._settings
        started = time.perf_counter()

        source = self._decoder.decode(image_bytes)
        analysis, step = downsample(source, settings.target_size)
        lum = luminance_grid(analysis, LuminanceMode(settings.luminance_mode))
        disk = DiskMask(lum.width, lum.height, settings.disk_radius)
        edges = detect_edges(lum, disk, settings.dark_threshold)
        points = edges.points()
        contours = trace_contours(edges, settings.min_contour_length)

        preview = lum.to_rgba() if settings.preview_source == "luminance" else analysis.to_rgba()
        if OverlayMode(settings.overlay_mode) == OverlayMode.LINES:
            overlay_contours(preview, contours, settings.highlight_color)
        else:
            overlay_points(preview, points, settings.highlight_color)
        encoded = self._encoder.encode(preview)

        logger.info(
            "Analysed %dx%d image at %dx%d (step=%d): %d edge points, %d contours",
            source.width,
            source.height,
            analysis.width,
            analysis.height,
            step,
            len(points),
            len(contours),
        )
        logger.debug("Pipeline run took %.1f ms", (time.perf_counter() - started) * 1000)

        return DetectionResult(
            original_width=source.width,
            original_height=source.height,
            analysis_width=analysis.width,
            analysis_height=analysis.height,
            step=step,
            points=tuple(p.scaled(step) for p in points),
            contours=tuple(c.scaled(step) for c in contours),
            preview=encoded,
            preview_media_type=self._encoder.media_type,
        )
