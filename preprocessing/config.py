"""
Configuration for the preprocessing pipeline.

All stages are parameterized through StageConfig so that one frame's
processing is fully described by a single immutable value. Callers build a
fresh StageConfig per invocation instead of sharing mutable UI state.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from config import (
    MEDIAN_RADIUS,
    ADAPTIVE_WINDOW_SIZE,
    ADAPTIVE_C,
    CLAHE_TILE_SIZE,
    CLAHE_CLIP_LIMIT,
    UNSHARP_RADIUS,
    UNSHARP_AMOUNT,
)

from .buffer import PixelBuffer


@dataclass(frozen=True)
class StageConfig:
    """Stage selection and parameters for one pipeline run.

    Grayscale always runs first and has no switch.

    Attributes:
        median: Run the median blur denoiser.
        median_radius: Median neighborhood radius (window is 2r+1 square).
        sobel: Replace the image with its Sobel gradient magnitude.
        adaptive: Binarize against the local mean.
        window_size: Adaptive threshold window side length.
        c: Offset subtracted from the local mean.
        threshold: Global cut used when adaptive is off. None or 0 disables it.
        clahe: Run the CLAHE contrast pre-pass.
        clahe_tile_size: Nominal CLAHE tile side in pixels.
        clahe_clip_limit: Maximum histogram bucket count before clipping.
        unsharp: Run the unsharp-mask sharpening pre-pass.
        unsharp_radius: Box blur radius for the unsharp mask.
        unsharp_amount: Gain on the high-frequency residual.
    """

    # Main chain
    median: bool = False
    median_radius: int = MEDIAN_RADIUS
    sobel: bool = False
    adaptive: bool = False
    window_size: int = ADAPTIVE_WINDOW_SIZE
    c: float = ADAPTIVE_C
    threshold: Optional[float] = None

    # Enhancement pre-pass
    clahe: bool = False
    clahe_tile_size: int = CLAHE_TILE_SIZE
    clahe_clip_limit: float = CLAHE_CLIP_LIMIT
    unsharp: bool = False
    unsharp_radius: int = UNSHARP_RADIUS
    unsharp_amount: float = UNSHARP_AMOUNT

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If any parameter is invalid.
        """
        if self.median_radius < 0:
            raise ValueError(
                f"median_radius must be non-negative, got {self.median_radius}"
            )
        if self.window_size <= 0:
            raise ValueError(f"window_size must be positive, got {self.window_size}")
        if self.threshold is not None and not (0 <= self.threshold <= 255):
            raise ValueError(
                f"threshold must be within [0, 255], got {self.threshold}"
            )
        if self.clahe_tile_size <= 0:
            raise ValueError(
                f"clahe_tile_size must be positive, got {self.clahe_tile_size}"
            )
        if self.clahe_clip_limit <= 0:
            raise ValueError(
                f"clahe_clip_limit must be positive, got {self.clahe_clip_limit}"
            )
        if self.unsharp_radius < 0:
            raise ValueError(
                f"unsharp_radius must be non-negative, got {self.unsharp_radius}"
            )

    @property
    def enhances(self) -> bool:
        """True if any pre-pass stage is selected."""
        return self.clahe or self.unsharp

    @property
    def thresholds(self) -> bool:
        """True if the chain ends in a binarization stage."""
        return self.adaptive or self.uses_global_threshold

    @property
    def uses_global_threshold(self) -> bool:
        """True if the global cut runs: adaptive is off and threshold is non-zero.

        A threshold of 0 would turn every pixel white, so it means "no cut".
        """
        return not self.adaptive and bool(self.threshold)


@dataclass
class PreprocessResult:
    """Result of the full preprocessing run (pre-pass plus main chain).

    Attributes:
        original: Input buffer, preserved for reference.
        enhanced: Buffer after the CLAHE/unsharp pre-pass. Equals a copy of
                  the original when no pre-pass stage is selected.
        processed: Final buffer, the one handed to a decoder.
        config: The configuration used for preprocessing.
        artifact_paths: Dict mapping step names to saved file paths (if artifact saving enabled).
        metadata: Per-step status and metrics.
    """

    original: PixelBuffer
    enhanced: PixelBuffer
    processed: PixelBuffer
    config: StageConfig
    artifact_paths: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def dimensions(self) -> tuple[int, int]:
        """Get (width, height) of the processed buffer."""
        return self.processed.width, self.processed.height
