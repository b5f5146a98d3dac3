"""Decoder and encoder adapters.

The pipeline only talks to the ``ImageDecoder`` / ``ImageEncoder``
protocols; the Pillow implementations below are the defaults.
"""

from __future__ import annotations

import io
import logging
from typing import Literal, Protocol

import numpy as np
from PIL import Image, UnidentifiedImageError

from coronascope.errors import DecodeError, EncodeError
from coronascope.imaging.buffers import PixelBuffer

logger = logging.getLogger(__name__)

_FORMATS: dict[str, tuple[str, str]] = {
    "png": ("PNG", "image/png"),
    "bmp": ("BMP", "image/bmp"),
}


class ImageDecoder(Protocol):
    """Protocol for turning encoded bytes into pixels."""

    def decode(self, image_bytes: bytes) -> PixelBuffer:
        """Decode raw image bytes into an RGBA pixel buffer.

        Args:
            image_bytes: Raw file bytes (any supported format).

        Returns:
            4-channel buffer at the image's native resolution.

        Raises:
            DecodeError: If the bytes are not a readable image.
        """
        ...


class ImageEncoder(Protocol):
    """Protocol for serializing a pixel buffer into a raster container."""

    @property
    def media_type(self) -> str:
        """Return the MIME type of the produced bytes."""
        ...

    def encode(self, buffer: PixelBuffer) -> bytes:
        """Encode a 1-, 3- or 4-channel buffer.

        Raises:
            EncodeError: If the buffer cannot be written.
        """
        ...


class PillowDecoder:
    """Decode any format Pillow understands, rejecting oversized images."""

    def __init__(self, max_pixels: int | None = None) -> None:
        self._max_pixels = max_pixels

    def decode(self, image_bytes: bytes) -> PixelBuffer:
        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                width, height = img.size
                if self._max_pixels is not None and width * height > self._max_pixels:
                    msg = f"image is {width}x{height}, limit is {self._max_pixels} pixels"
                    raise DecodeError(msg)
                rgba = img.convert("RGBA")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise DecodeError(str(exc) or type(exc).__name__) from exc

        logger.debug("Decoded %dx%d image (%s)", width, height, rgba.mode)
        return PixelBuffer.from_array(np.asarray(rgba, dtype=np.uint8))


class PillowEncoder:
    """Encode buffers as PNG (default) or BMP."""

    def __init__(self, image_format: Literal["png", "bmp"] = "png") -> None:
        try:
            self._pil_format, self._media_type = _FORMATS[image_format]
        except KeyError:
            msg = f"unsupported preview format: {image_format!r}"
            raise ValueError(msg) from None

    @property
    def media_type(self) -> str:
        return self._media_type

    def encode(self, buffer: PixelBuffer) -> bytes:
        pixels = buffer.as_array()
        if buffer.channels == 1:
            pixels = pixels[:, :, 0]
        out = io.BytesIO()
        try:
            Image.fromarray(pixels).save(out, format=self._pil_format)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeError(str(exc) or type(exc).__name__) from exc
        return out.getvalue()
