"""Nearest-neighbour downsampling at an integer stride."""

from __future__ import annotations

from coronascope.imaging.buffers import PixelBuffer


def compute_stride(width: int, target_size: int) -> int:
    """Return the sampling stride that brings ``width`` down to about ``target_size``.

    Never below 1, so images narrower than the target are left untouched.
    """
    if target_size < 1:
        msg = f"target_size must be >= 1, got {target_size}"
        raise ValueError(msg)
    return max(1, width // target_size)


def downsample(buffer: PixelBuffer, target_size: int) -> tuple[PixelBuffer, int]:
    """Subsample ``buffer`` so its width is close to ``target_size``.

    Output cell ``(x, y)`` is a copy of source cell ``(x * step, y * step)``;
    no averaging is done.

    Returns:
        The reduced buffer (same channel count, new arena) and the stride used.
    """
    step = compute_stride(buffer.width, target_size)
    out_w = buffer.width // step
    out_h = buffer.height // step
    sampled = buffer.as_array()[: out_h * step : step, : out_w * step : step]
    return PixelBuffer.from_array(sampled), step
