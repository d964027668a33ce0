"""
RGBA pixel buffer shared by every preprocessing stage.

A PixelBuffer is the Python shape of a canvas ImageData: width, height and
W*H RGBA samples with 8 bits per channel. Stages never write into a buffer
they were given; they allocate and return a new one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

CHANNELS = 4


class InvalidDimensionError(ValueError):
    """Raised when a buffer's dimensions and sample data disagree."""


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Fixed-size grid of RGBA samples.

    Attributes:
        width: Number of columns (W >= 0).
        height: Number of rows (H >= 0).
        data: uint8 array of shape (H, W, 4). Channel order is R, G, B, A.
    """

    width: int
    height: int
    data: np.ndarray

    def __post_init__(self) -> None:
        if not isinstance(self.data, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(self.data).__name__}")
        if self.width < 0 or self.height < 0:
            raise InvalidDimensionError(
                f"Dimensions must be non-negative, got {self.width}x{self.height}"
            )
        if self.data.dtype != np.uint8:
            raise TypeError(f"Pixel data must be uint8, got {self.data.dtype}")
        expected = (self.height, self.width, CHANNELS)
        if self.data.shape != expected:
            raise InvalidDimensionError(
                f"Pixel data shape {self.data.shape} does not match "
                f"{self.width}x{self.height} RGBA (expected {expected})"
            )

    @classmethod
    def zeros(cls, width: int, height: int) -> PixelBuffer:
        """Allocate a buffer with every channel (alpha included) set to 0."""
        if width < 0 or height < 0:
            raise InvalidDimensionError(
                f"Dimensions must be non-negative, got {width}x{height}"
            )
        return cls(width, height, np.zeros((height, width, CHANNELS), dtype=np.uint8))

    @classmethod
    def from_bytes(
        cls,
        width: int,
        height: int,
        samples: bytes | bytearray | Sequence[int] | np.ndarray,
    ) -> PixelBuffer:
        """Build a buffer from a flat RGBA sample sequence.

        Raises:
            InvalidDimensionError: If len(samples) != width * height * 4.
        """
        if width < 0 or height < 0:
            raise InvalidDimensionError(
                f"Dimensions must be non-negative, got {width}x{height}"
            )
        if isinstance(samples, (bytes, bytearray)):
            flat = np.frombuffer(samples, dtype=np.uint8)
        else:
            flat = np.asarray(samples)
            if flat.size and (flat.min() < 0 or flat.max() > 255):
                raise ValueError("Sample values must be within [0, 255]")
            flat = flat.astype(np.uint8)
        expected = width * height * CHANNELS
        if flat.ndim != 1 or flat.size != expected:
            raise InvalidDimensionError(
                f"Expected {expected} samples for {width}x{height} RGBA, got {flat.size}"
            )
        return cls(width, height, flat.reshape(height, width, CHANNELS).copy())

    @classmethod
    def from_array(cls, img: np.ndarray) -> PixelBuffer:
        """Wrap an image array as an RGBA buffer.

        Accepts 2D grayscale, (H, W, 1), RGB or RGBA uint8 arrays. Missing
        channels are filled in (gray is replicated into R, G, B; alpha is 255).
        The input is always copied.
        """
        if not isinstance(img, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(img).__name__}")
        if img.dtype != np.uint8:
            raise TypeError(f"Image must be uint8, got {img.dtype}")
        if img.ndim < 2 or img.ndim > 3:
            raise InvalidDimensionError(
                f"Image must be 2D or 3D array, got {img.ndim}D array with shape {img.shape}"
            )

        height, width = img.shape[:2]
        rgba = np.empty((height, width, CHANNELS), dtype=np.uint8)
        if img.ndim == 2:
            rgba[..., :3] = img[..., None]
            rgba[..., 3] = 255
        else:
            channels = img.shape[2]
            if channels == 1:
                rgba[..., :3] = img
                rgba[..., 3] = 255
            elif channels == 3:
                rgba[..., :3] = img
                rgba[..., 3] = 255
            elif channels == 4:
                rgba[...] = img
            else:
                raise InvalidDimensionError(
                    f"Unsupported number of channels: {channels}. "
                    "Expected 1, 3 (RGB), or 4 (RGBA)."
                )
        return cls(width, height, rgba)

    @property
    def is_empty(self) -> bool:
        """True for zero-area buffers (W == 0 or H == 0)."""
        return self.width == 0 or self.height == 0

    @property
    def shape(self) -> tuple[int, int]:
        """(width, height) of the buffer."""
        return self.width, self.height

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.width, self.height, self.data.copy())

    def red(self) -> np.ndarray:
        """Return a contiguous copy of the R channel as an (H, W) uint8 array."""
        return self.data[..., 0].copy()

    def is_grayscale(self) -> bool:
        """True when R == G == B for every pixel."""
        rgb = self.data[..., :3]
        return bool(
            np.array_equal(rgb[..., 0], rgb[..., 1])
            and np.array_equal(rgb[..., 1], rgb[..., 2])
        )

    def crop(self, x: int, y: int, width: int, height: int) -> PixelBuffer:
        """Return a copy of the rectangle at (x, y) with the given size.

        Raises:
            InvalidDimensionError: If the rectangle leaves the buffer.
        """
        if (
            x < 0 or y < 0 or width < 0 or height < 0
            or x + width > self.width or y + height > self.height
        ):
            raise InvalidDimensionError(
                f"Crop rectangle ({x}, {y}, {width}, {height}) is outside "
                f"{self.width}x{self.height} buffer"
            )
        region = self.data[y:y + height, x:x + width].copy()
        return PixelBuffer(width, height, region)

    def to_bytes(self) -> bytes:
        """Flat RGBA bytes in row-major order."""
        return self.data.tobytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and np.array_equal(self.data, other.data)
        )

    def __hash__(self) -> int:
        return hash((self.width, self.height, self.data.tobytes()))


def with_channels(like: PixelBuffer, value: np.ndarray, alpha: np.ndarray | int) -> PixelBuffer:
    """Build a buffer with R = G = B = value and the given alpha."""
    out = np.empty_like(like.data)
    out[..., 0] = value
    out[..., 1] = value
    out[..., 2] = value
    out[..., 3] = alpha
    return PixelBuffer(like.width, like.height, out)
