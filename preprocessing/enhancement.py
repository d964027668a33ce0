"""
Contrast and sharpness enhancement applied before the main chain.

These run on the raw capture (before grayscale conversion) and read the R
channel only. On a colour capture that makes them an approximation, which is
accepted: barcodes are printed in dark ink on a light ground, so any single
channel carries the symbol.

CLAHE here is tile-wise without bilinear blending between tiles. Tile
boundaries can be visible, but decoders do not mind and it is much cheaper.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import cv2
import numpy as np

from .buffer import PixelBuffer, with_channels

logger = logging.getLogger(__name__)

LEVELS = 256


@dataclass(frozen=True)
class ClippedHistogram:
    """Histogram after clipping, before redistribution.

    Attributes:
        counts: 256 clipped bucket counts (int64).
        excess: Total count removed from buckets above the clip limit.
    """

    counts: np.ndarray
    excess: float

    @property
    def increment(self) -> int:
        """Per-bucket share of the excess; the remainder is dropped."""
        return int(math.floor(self.excess / LEVELS))

    def redistributed(self) -> np.ndarray:
        """Counts with the excess spread uniformly over every bucket."""
        return self.counts + self.increment


def clip_histogram(hist: np.ndarray, clip_limit: float) -> ClippedHistogram:
    """Clamp every bucket to clip_limit and total up what was removed."""
    hist = np.asarray(hist, dtype=np.int64)
    over = hist > clip_limit
    excess = float(np.sum(hist[over] - clip_limit))
    counts = hist.copy()
    # Bucket counts are integers; a fractional limit truncates.
    counts[over] = int(clip_limit)
    return ClippedHistogram(counts=counts, excess=excess)


def tile_bounds(length: int, tiles: int) -> list[tuple[int, int]]:
    """Split [0, length) into `tiles` spans at floor(i * length / tiles)."""
    edges = [(i * length) // tiles for i in range(tiles + 1)]
    return list(zip(edges[:-1], edges[1:]))


def tile_lookup_table(
    tile: np.ndarray,
    clip_limit: float,
) -> tuple[np.ndarray, bool]:
    """Build the equalization table for one tile.

    Returns:
        Tuple of:
        - 256-entry uint8 lookup table
        - True if the tile was degenerate (normalization denominator of 0).
          A degenerate tile gets the identity table.
    """
    hist = np.bincount(tile.ravel(), minlength=LEVELS)
    adjusted = clip_histogram(hist, clip_limit).redistributed()
    cdf = np.cumsum(adjusted)
    cdf_min = cdf[0]
    denominator = tile.size - cdf_min
    if denominator == 0:
        # Only reachable when every sample in the tile is 0.
        return np.arange(LEVELS, dtype=np.uint8), True

    scaled = (cdf - cdf_min) / denominator * 255.0
    lut = np.clip(np.floor(scaled + 0.5), 0, 255).astype(np.uint8)
    return lut, False


def clahe(
    buffer: PixelBuffer,
    tile_size: int = 8,
    clip_limit: float = 40,
) -> tuple[PixelBuffer, int]:
    """Tile-wise contrast-limited histogram equalization.

    The buffer is split into max(1, W // tile_size) x max(1, H // tile_size)
    tiles. Each tile is equalized with its own clipped histogram. The output
    has R = G = B = mapped level; alpha is carried over unchanged.

    Returns:
        Tuple of the enhanced buffer and the number of degenerate tiles.
    """
    if tile_size <= 0:
        raise ValueError(f"tile_size must be positive, got {tile_size}")
    if clip_limit <= 0:
        raise ValueError(f"clip_limit must be positive, got {clip_limit}")
    if buffer.is_empty:
        return buffer.copy(), 0

    levels = buffer.red()
    mapped = np.empty_like(levels)
    n_tiles_x = max(1, buffer.width // tile_size)
    n_tiles_y = max(1, buffer.height // tile_size)
    degenerate = 0

    for y0, y1 in tile_bounds(buffer.height, n_tiles_y):
        for x0, x1 in tile_bounds(buffer.width, n_tiles_x):
            tile = levels[y0:y1, x0:x1]
            lut, is_degenerate = tile_lookup_table(tile, clip_limit)
            degenerate += is_degenerate
            mapped[y0:y1, x0:x1] = lut[tile]

    if degenerate:
        logger.debug("CLAHE: %d degenerate tile(s) left unnormalized", degenerate)
    return with_channels(buffer, mapped, buffer.data[..., 3]), degenerate


def box_blur(channel: np.ndarray, radius: int) -> np.ndarray:
    """Mean of the (2r+1)^2 clamp-to-edge window, rounded half up.

    Args:
        channel: (H, W) uint8 array.
        radius: Window radius, r >= 0.

    Returns:
        (H, W) uint8 array.
    """
    size = 2 * radius + 1
    padded = np.pad(channel, radius, mode="edge")
    integral = cv2.integral(padded, sdepth=cv2.CV_64F)
    window_sum = (
        integral[size:, size:]
        - integral[:-size, size:]
        - integral[size:, :-size]
        + integral[:-size, :-size]
    )
    return np.floor(window_sum / (size * size) + 0.5).astype(np.uint8)


def unsharp_mask(
    buffer: PixelBuffer,
    radius: int = 1,
    amount: float = 1.0,
) -> PixelBuffer:
    """Sharpen by amplifying the residual against a box blur.

    Output = clamp(round(v + amount * (v - blurred)), 0, 255) on R, G, B,
    with alpha forced to 255. Rounding is half up.
    """
    if radius < 0:
        raise ValueError(f"radius must be non-negative, got {radius}")
    if buffer.is_empty:
        return buffer.copy()

    original = buffer.red()
    blurred = box_blur(original, radius).astype(np.float64)
    values = original.astype(np.float64)
    sharpened = np.floor(values + amount * (values - blurred) + 0.5)
    result = np.clip(sharpened, 0, 255).astype(np.uint8)
    return with_channels(buffer, result, 255)
