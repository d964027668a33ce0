"""Region-of-interest cropping for captured frames."""

from __future__ import annotations

import math

from config import (
    ROI_X_FRACTION,
    ROI_Y_FRACTION,
    ROI_WIDTH_FRACTION,
    ROI_HEIGHT_FRACTION,
)
from preprocessing import PixelBuffer

# Rectangle as (x, y, width, height)
Rect = tuple[int, int, int, int]


def center_roi(width: int, height: int) -> Rect:
    """Return the centre band of a width x height frame.

    Every coordinate is floored, so the band always fits inside the frame.
    """
    return (
        math.floor(width * ROI_X_FRACTION),
        math.floor(height * ROI_Y_FRACTION),
        math.floor(width * ROI_WIDTH_FRACTION),
        math.floor(height * ROI_HEIGHT_FRACTION),
    )


def crop_to_roi(buffer: PixelBuffer) -> tuple[PixelBuffer, Rect]:
    """Crop a buffer to its centre band.

    Returns:
        Tuple of the cropped buffer and the rectangle it was taken from.
    """
    rect = center_roi(buffer.width, buffer.height)
    return buffer.crop(*rect), rect


def roi_to_frame(point: tuple[int, int], rect: Rect) -> tuple[int, int]:
    """Map a point from ROI coordinates back to full-frame coordinates."""
    return point[0] + rect[0], point[1] + rect[1]
