"""
Preprocessing step classes with a common interface.

Each step is a frozen dataclass that implements the PreprocessStep interface.
Steps are pure: they take a PixelBuffer and return a new one without
mutating the input.

Usage:
    from preprocessing.steps import GrayscaleStep, MedianBlurStep, Pipeline

    pipeline = Pipeline(steps=[
        GrayscaleStep(),
        MedianBlurStep(radius=1),
    ])
    result = pipeline.run(buffer)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import cv2

from config import ARTIFACT_EXTENSION

from .buffer import PixelBuffer
from .enhancement import clahe, unsharp_mask
from .filters import (
    adaptive_threshold,
    global_threshold,
    grayscale,
    median_blur,
    sobel_edges,
)

logger = logging.getLogger(__name__)


class PreprocessStep(ABC):
    """Base class for preprocessing steps.

    All preprocessing steps must implement this interface. Steps should be
    pure functions: they take an input buffer and return a new output without
    mutating the original.

    Steps can optionally produce metadata (like CLAHE's degenerate tile
    count) that is kept alongside the intermediate buffers.
    """

    @abstractmethod
    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        """Apply this preprocessing step to a buffer.

        Must be pure: never mutates the input buffer.

        Args:
            buffer: Input pixel buffer.

        Returns:
            Processed buffer with the same dimensions.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for logging and debugging."""
        pass

    def get_metadata(self) -> dict[str, Any]:
        """Return any metadata produced by the last apply() call.

        Returns:
            Dictionary of metadata. Empty by default.
        """
        return {}


@dataclass(frozen=True)
class GrayscaleStep(PreprocessStep):
    """Unweighted (R + G + B) / 3 luminance into R, G and B."""

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return grayscale(buffer)

    @property
    def name(self) -> str:
        return "grayscale"


@dataclass(frozen=True)
class MedianBlurStep(PreprocessStep):
    """Median denoise over a clamp-to-edge (2r+1)^2 neighborhood.

    Requires grayscale input.
    """

    radius: int = 1

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return median_blur(buffer, self.radius)

    @property
    def name(self) -> str:
        return f"median(r={self.radius})"


@dataclass(frozen=True)
class SobelStep(PreprocessStep):
    """Sobel gradient magnitude; the one-pixel border stays zero.

    Requires grayscale input.
    """

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return sobel_edges(buffer)

    @property
    def name(self) -> str:
        return "sobel"


@dataclass(frozen=True)
class AdaptiveThresholdStep(PreprocessStep):
    """Local-mean binarization using an integral table.

    Requires grayscale input.

    Attributes:
        window_size: Side length of the local window.
        c: Offset subtracted from the local mean.
    """

    window_size: int = 15
    c: float = 7

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return adaptive_threshold(buffer, self.window_size, self.c)

    @property
    def name(self) -> str:
        return f"adaptive(window={self.window_size}, c={self.c})"

    def get_metadata(self) -> dict[str, Any]:
        return {"threshold_mode": "adaptive"}


@dataclass(frozen=True)
class GlobalThresholdStep(PreprocessStep):
    """Single global cut: 0 below the threshold, 255 at or above it."""

    threshold: float

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return global_threshold(buffer, self.threshold)

    @property
    def name(self) -> str:
        return f"threshold({self.threshold})"

    def get_metadata(self) -> dict[str, Any]:
        return {"threshold_mode": "global"}


@dataclass(frozen=True)
class CLAHEStep(PreprocessStep):
    """Tile-wise contrast-limited histogram equalization.

    Reads the R channel only, so it may run on a raw colour capture.

    apply() records the degenerate tile count on the instance for
    get_metadata(), so one instance must not be shared between threads.
    build_enhance_pipeline() creates a fresh step for every call.

    Attributes:
        tile_size: Nominal tile side in pixels.
        clip_limit: Maximum histogram bucket count before clipping.
    """

    tile_size: int = 8
    clip_limit: float = 40
    _degenerate_tiles: int = field(default=0, init=False, repr=False)

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        result, degenerate = clahe(buffer, self.tile_size, self.clip_limit)
        object.__setattr__(self, "_degenerate_tiles", degenerate)
        return result

    @property
    def name(self) -> str:
        return f"clahe(tile={self.tile_size}, clip={self.clip_limit})"

    def get_metadata(self) -> dict[str, Any]:
        return {
            "step_metrics": {"degenerate_tiles": self._degenerate_tiles},
        }


@dataclass(frozen=True)
class UnsharpMaskStep(PreprocessStep):
    """Box-blur unsharp mask.

    Attributes:
        radius: Box blur radius.
        amount: Gain on the (original - blurred) residual.
    """

    radius: int = 1
    amount: float = 1.0

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return unsharp_mask(buffer, self.radius, self.amount)

    @property
    def name(self) -> str:
        return f"unsharp(r={self.radius}, amount={self.amount})"


@dataclass
class StepResult:
    """Result of applying a single preprocessing step.

    Attributes:
        name: Name of the step that produced this result.
        buffer: Output buffer from the step.
        metadata: Any metadata produced by the step.
        artifact_path: Path where the image was saved (if artifact saving enabled).
    """

    name: str
    buffer: PixelBuffer
    metadata: dict[str, Any] = field(default_factory=dict)
    artifact_path: str | None = None


@dataclass
class PipelineStepResults:
    """Results from running a preprocessing pipeline.

    Provides access to all intermediate buffers and aggregated metadata.

    Attributes:
        original: The original input buffer.
        steps: List of StepResult for each step in order.
        original_artifact_path: Path where original image was saved (if artifact saving enabled).
    """

    original: PixelBuffer
    steps: list[StepResult] = field(default_factory=list)
    original_artifact_path: str | None = None
    step_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def final(self) -> PixelBuffer:
        """Get the final processed buffer."""
        if not self.steps:
            return self.original
        return self.steps[-1].buffer

    def get_intermediate(self, step_name: str) -> PixelBuffer | None:
        """Get intermediate buffer by step name.

        Matches either the full name (e.g. "median(r=1)") or its key
        (e.g. "median").

        Returns:
            The buffer produced by that step, or None if not found.
        """
        for step in self.steps:
            if step.name == step_name or step_key(step.name) == step_name:
                return step.buffer
        return None

    @property
    def artifact_paths(self) -> dict[str, str]:
        """Get all artifact paths as a dict mapping step key to path.

        Returns:
            Dict with keys like "original", "grayscale", "median" and path values.
            Only includes steps that have artifact_path set.
        """
        paths = {}
        if self.original_artifact_path:
            paths["original"] = self.original_artifact_path
        for step in self.steps:
            if step.artifact_path:
                paths[step_key(step.name)] = step.artifact_path
        return paths


def step_key(name: str) -> str:
    """Normalize a step name for use as a key (e.g. "median(r=1)" -> "median")."""
    return name.split("(")[0]


def save_buffer(buffer: PixelBuffer, path: str) -> None:
    """Save a buffer to disk as an image.

    Args:
        buffer: RGBA pixel buffer.
        path: Output file path; the extension selects the format.
    """
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(path, cv2.cvtColor(buffer.data, cv2.COLOR_RGBA2BGRA)):
        raise OSError(f"Failed to write image: {path}")


@dataclass
class Pipeline:
    """A sequence of preprocessing steps to apply to buffers.

    The pipeline runs each step in order, passing the output of one step
    as the input to the next. All intermediate results are preserved.

    Attributes:
        steps: List of PreprocessStep instances to apply in order.
    """

    steps: list[PreprocessStep]

    def run(
        self,
        buffer: PixelBuffer,
        artifact_dir: str | None = None,
        prefix: str = "",
        save_original: bool = True,
    ) -> PipelineStepResults:
        """Run the pipeline on a buffer.

        Args:
            buffer: Input pixel buffer. Never mutated.
            artifact_dir: Optional directory to save intermediate images.
                         If provided, saves the original and each step's output.
                         Zero-area buffers are never written.
            prefix: Optional file name prefix for saved artifacts.
            save_original: Whether to also save the input buffer.

        Returns:
            PipelineStepResults containing all intermediate buffers and metadata.
        """
        result = PipelineStepResults(original=buffer.copy())
        current = buffer

        save = bool(artifact_dir) and not buffer.is_empty
        if save and save_original:
            original_path = f"{artifact_dir}/original{ARTIFACT_EXTENSION}"
            save_buffer(buffer, original_path)
            result.original_artifact_path = original_path

        for step in self.steps:
            output = step.apply(current)
            metadata = step.get_metadata()
            key = step_key(step.name)
            logger.debug("Applied %s to %dx%d buffer", step.name, output.width, output.height)
            result.step_metadata[key] = {
                "status": metadata.get("step_status", "applied"),
                "metrics": metadata.get("step_metrics", {}),
            }

            artifact_path = None
            if save:
                artifact_path = f"{artifact_dir}/{prefix}{key}{ARTIFACT_EXTENSION}"
                save_buffer(output, artifact_path)

            result.steps.append(
                StepResult(
                    name=step.name,
                    buffer=output,
                    metadata=metadata,
                    artifact_path=artifact_path,
                )
            )
            current = output

        return result

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)
