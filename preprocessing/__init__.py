"""
Image preprocessing for barcode and QR decoding.

This module provides pure, deterministic transforms applied to a captured
frame before it is handed to a decoder. All functions follow the pattern:
input -> output with no mutation of the original buffer.

Key components:
- buffer: PixelBuffer, the RGBA sample grid every stage reads and writes
- config: StageConfig dataclass selecting and parameterizing stages
- filters: grayscale, median blur, Sobel edges, adaptive/global threshold
- enhancement: CLAHE and unsharp mask pre-pass
- steps: Class-based steps with a common PreprocessStep interface
- pipeline: run(), enhance() and run_pipeline() in the fixed stage order

Two APIs are available:
1. Function-based: run(buffer, config) -> PixelBuffer
2. Class-based: Pipeline(steps=[...]).run(buffer) -> PipelineStepResults
"""

from .buffer import PixelBuffer, InvalidDimensionError
from .config import StageConfig, PreprocessResult
from .filters import (
    grayscale,
    median_blur,
    sobel_edges,
    integral_image,
    adaptive_threshold,
    global_threshold,
)
from .enhancement import clahe, clip_histogram, unsharp_mask, box_blur
from .pipeline import (
    run,
    enhance,
    run_pipeline,
    build_pipeline,
    build_enhance_pipeline,
)
from .steps import (
    PreprocessStep,
    GrayscaleStep,
    MedianBlurStep,
    SobelStep,
    AdaptiveThresholdStep,
    GlobalThresholdStep,
    CLAHEStep,
    UnsharpMaskStep,
    Pipeline,
    PipelineStepResults,
    StepResult,
)

__all__ = [
    # Buffer and config
    "PixelBuffer",
    "InvalidDimensionError",
    "StageConfig",
    "PreprocessResult",
    # Function API
    "grayscale",
    "median_blur",
    "sobel_edges",
    "integral_image",
    "adaptive_threshold",
    "global_threshold",
    "clahe",
    "clip_histogram",
    "unsharp_mask",
    "box_blur",
    "run",
    "enhance",
    "run_pipeline",
    "build_pipeline",
    "build_enhance_pipeline",
    # Class-based API
    "PreprocessStep",
    "GrayscaleStep",
    "MedianBlurStep",
    "SobelStep",
    "AdaptiveThresholdStep",
    "GlobalThresholdStep",
    "CLAHEStep",
    "UnsharpMaskStep",
    "Pipeline",
    "PipelineStepResults",
    "StepResult",
]
