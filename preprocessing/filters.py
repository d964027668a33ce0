"""
Per-pixel filters of the main preprocessing chain.

All functions are pure: they take a PixelBuffer and return a new one without
mutating the input. Every filter except grayscale() reads the R channel only
and expects a grayscale buffer (R == G == B); that precondition is asserted.

Zero-area buffers are a no-op: a fresh empty buffer of the same dimensions
is returned.
"""

from __future__ import annotations

import cv2
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .buffer import PixelBuffer, with_channels


def _require_grayscale(buffer: PixelBuffer, stage: str) -> None:
    assert buffer.is_grayscale(), f"{stage} requires a grayscale buffer (R == G == B)"


def grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """Replace R, G and B with their unweighted average; alpha is kept.

    The average (R + G + B) / 3 is rounded to the nearest integer. Its
    fractional part is always 0, 1/3 or 2/3, so no tie-breaking is involved.

    Examples:
        >>> buf = PixelBuffer.from_bytes(1, 1, [10, 20, 30, 255])
        >>> grayscale(buf).data[0, 0].tolist()
        [20, 20, 20, 255]
    """
    if buffer.is_empty:
        return buffer.copy()
    rgb_sum = buffer.data[..., :3].sum(axis=2, dtype=np.uint16)
    luminance = ((rgb_sum + 1) // 3).astype(np.uint8)
    return with_channels(buffer, luminance, buffer.data[..., 3])


def clamped_windows(channel: np.ndarray, radius: int) -> np.ndarray:
    """Return a (H, W, 2r+1, 2r+1) view of every pixel's neighborhood.

    Out-of-range coordinates clamp to the nearest valid row or column.
    """
    padded = np.pad(channel, radius, mode="edge")
    size = 2 * radius + 1
    return sliding_window_view(padded, (size, size))


def median_blur(buffer: PixelBuffer, radius: int = 1) -> PixelBuffer:
    """Rank-order denoise over a (2r+1) x (2r+1) clamp-to-edge neighborhood.

    Each output pixel is the element at index floor(n / 2) of the sorted
    neighborhood samples. Alpha is forced to 255.

    Args:
        buffer: Grayscale input buffer.
        radius: Neighborhood radius, r >= 0. Zero leaves values unchanged.
    """
    if radius < 0:
        raise ValueError(f"radius must be non-negative, got {radius}")
    if buffer.is_empty:
        return buffer.copy()
    _require_grayscale(buffer, "median_blur")

    windows = clamped_windows(buffer.red(), radius)
    count = windows.shape[-1] * windows.shape[-2]
    flat = windows.reshape(buffer.height, buffer.width, count)
    kth = count // 2
    median = np.partition(flat, kth, axis=-1)[..., kth]
    return with_channels(buffer, median, 255)


def sobel_edges(buffer: PixelBuffer) -> PixelBuffer:
    """Gradient magnitude using the 3x3 Sobel kernels.

    Only interior pixels (1 <= x <= W-2, 1 <= y <= H-2) are computed; the
    outermost one-pixel frame keeps the freshly allocated value of 0 in every
    channel, alpha included. Computed pixels get min(255, sqrt(Gx^2 + Gy^2))
    rounded half-to-even, and alpha 255.
    """
    if buffer.is_empty:
        return buffer.copy()
    _require_grayscale(buffer, "sobel_edges")

    out = np.zeros_like(buffer.data)
    if buffer.width < 3 or buffer.height < 3:
        return PixelBuffer(buffer.width, buffer.height, out)

    channel = buffer.red().astype(np.float64)
    gx = cv2.Sobel(channel, cv2.CV_64F, 1, 0, ksize=3)[1:-1, 1:-1]
    gy = cv2.Sobel(channel, cv2.CV_64F, 0, 1, ksize=3)[1:-1, 1:-1]
    magnitude = np.minimum(255.0, np.sqrt(gx * gx + gy * gy))
    values = np.rint(magnitude).astype(np.uint8)

    out[1:-1, 1:-1, 0] = values
    out[1:-1, 1:-1, 1] = values
    out[1:-1, 1:-1, 2] = values
    out[1:-1, 1:-1, 3] = 255
    return PixelBuffer(buffer.width, buffer.height, out)


def integral_image(buffer: PixelBuffer) -> np.ndarray:
    """Summed-area table of the R channel.

    Returns a float64 array of shape (H + 1, W + 1) where entry [y, x] is the
    sum of all samples with row < y and column < x. Row 0 and column 0 are
    the zero padding.
    """
    if buffer.is_empty:
        return np.zeros((buffer.height + 1, buffer.width + 1), dtype=np.float64)
    return cv2.integral(buffer.red(), sdepth=cv2.CV_64F)


def adaptive_threshold(
    buffer: PixelBuffer,
    window_size: int = 15,
    c: float = 7,
) -> PixelBuffer:
    """Local-mean binarization.

    For every pixel, the mean of the window of half-width floor(window_size/2)
    (clamped to the buffer) is read from the integral table in O(1). The
    output is 0 where value < mean - c and 255 elsewhere, in every channel.

    Args:
        buffer: Grayscale input buffer.
        window_size: Window side length (> 0, odd keeps it centered).
        c: Offset subtracted from the local mean.
    """
    if window_size <= 0:
        raise ValueError(f"window_size must be positive, got {window_size}")
    if buffer.is_empty:
        return buffer.copy()
    _require_grayscale(buffer, "adaptive_threshold")

    integral = integral_image(buffer)
    half = window_size // 2
    h, w = buffer.height, buffer.width

    ys = np.arange(h)
    xs = np.arange(w)
    y1 = np.maximum(0, ys - half)
    y2 = np.minimum(h - 1, ys + half)
    x1 = np.maximum(0, xs - half)
    x2 = np.minimum(w - 1, xs + half)

    total = (
        integral[np.ix_(y2 + 1, x2 + 1)]
        - integral[np.ix_(y1, x2 + 1)]
        - integral[np.ix_(y2 + 1, x1)]
        + integral[np.ix_(y1, x1)]
    )
    count = np.outer(y2 - y1 + 1, x2 - x1 + 1)
    mean = total / count

    values = buffer.data[..., 0]
    binary = np.where(values < mean - c, 0, 255).astype(np.uint8)
    return with_channels(buffer, binary, 255)


def global_threshold(buffer: PixelBuffer, threshold: float) -> PixelBuffer:
    """Single-cut binarization: 0 where value < threshold, else 255.

    Alpha is carried over from the input unchanged.
    """
    if buffer.is_empty:
        return buffer.copy()
    values = buffer.data[..., 0]
    binary = np.where(values < threshold, 0, 255).astype(np.uint8)
    return with_channels(buffer, binary, buffer.data[..., 3])
