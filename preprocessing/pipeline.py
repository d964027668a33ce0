"""
Preprocessing pipeline that applies the selected steps in a fixed order.

Two chains exist and they are never interleaved:

- The enhancement pre-pass, on the raw capture:
  CLAHE (if selected) -> UnsharpMask (if selected)
- The main chain:
  Grayscale (always) -> MedianBlur -> SobelEdge -> Adaptive or Global threshold

run() is the main chain only; callers wanting CLAHE or unsharp effects call
enhance() first. run_pipeline() does both and keeps every intermediate for
debugging and visualization.
"""

from __future__ import annotations

from .buffer import PixelBuffer
from .config import PreprocessResult, StageConfig
from .steps import (
    AdaptiveThresholdStep,
    CLAHEStep,
    GlobalThresholdStep,
    GrayscaleStep,
    MedianBlurStep,
    Pipeline,
    PreprocessStep,
    SobelStep,
    UnsharpMaskStep,
    step_key,
)


def _validate_input(buffer: PixelBuffer) -> None:
    """Validate the input buffer type.

    Raises:
        TypeError: If buffer is not a PixelBuffer.
    """
    if not isinstance(buffer, PixelBuffer):
        raise TypeError(f"Expected PixelBuffer, got {type(buffer).__name__}")


def build_enhance_pipeline(config: StageConfig) -> Pipeline:
    """Build the CLAHE/unsharp pre-pass from a StageConfig.

    Returns an empty Pipeline when neither stage is selected.
    """
    steps: list[PreprocessStep] = []
    if config.clahe:
        steps.append(
            CLAHEStep(
                tile_size=config.clahe_tile_size,
                clip_limit=config.clahe_clip_limit,
            )
        )
    if config.unsharp:
        steps.append(
            UnsharpMaskStep(
                radius=config.unsharp_radius,
                amount=config.unsharp_amount,
            )
        )
    return Pipeline(steps=steps)


def build_pipeline(config: StageConfig) -> Pipeline:
    """Build the main chain from a StageConfig.

    1. GrayscaleStep - always
    2. MedianBlurStep - if config.median
    3. SobelStep - if config.sobel
    4. AdaptiveThresholdStep if config.adaptive, otherwise
       GlobalThresholdStep if config.threshold is set and non-zero

    Args:
        config: Preprocessing configuration.

    Returns:
        Pipeline configured according to the config.
    """
    steps: list[PreprocessStep] = [GrayscaleStep()]

    if config.median:
        steps.append(MedianBlurStep(radius=config.median_radius))

    if config.sobel:
        steps.append(SobelStep())

    if config.adaptive:
        steps.append(
            AdaptiveThresholdStep(window_size=config.window_size, c=config.c)
        )
    elif config.uses_global_threshold:
        steps.append(GlobalThresholdStep(threshold=config.threshold))

    return Pipeline(steps=steps)


def enhance(buffer: PixelBuffer, config: StageConfig | None = None) -> PixelBuffer:
    """Apply the CLAHE/unsharp pre-pass to a raw capture.

    Returns a copy of the input when neither stage is selected.
    """
    if config is None:
        config = StageConfig()
    config.validate()
    _validate_input(buffer)
    return build_enhance_pipeline(config).run(buffer).final.copy()


def run(buffer: PixelBuffer, config: StageConfig | None = None) -> PixelBuffer:
    """Run the main chain and return the final buffer.

    The source buffer is never mutated; the result is always a new buffer
    with the same dimensions.

    Raises:
        ValueError: If the configuration is invalid.
        TypeError: If buffer is not a PixelBuffer.

    Examples:
        >>> buf = PixelBuffer.zeros(4, 4)
        >>> run(buf, StageConfig(median=True)).shape
        (4, 4)
    """
    if config is None:
        config = StageConfig()
    config.validate()
    _validate_input(buffer)
    return build_pipeline(config).run(buffer).final


def run_pipeline(
    buffer: PixelBuffer,
    config: StageConfig | None = None,
    artifact_dir: str | None = None,
) -> PreprocessResult:
    """Apply the enhancement pre-pass and then the main chain.

    Args:
        buffer: Raw capture. Never mutated.
        config: Preprocessing configuration. If None, uses default settings.
        artifact_dir: Optional directory to save intermediate images.
                     Pre-pass outputs are saved as "enhance_<step>", main
                     chain outputs under their own step keys.

    Returns:
        PreprocessResult with the original, enhanced and processed buffers.

    Raises:
        ValueError: If configuration is invalid.
        TypeError: If buffer is not a PixelBuffer.
    """
    if config is None:
        config = StageConfig()
    config.validate()
    _validate_input(buffer)

    original = buffer.copy()

    enhance_result = build_enhance_pipeline(config).run(
        original, artifact_dir=artifact_dir, prefix="enhance_"
    )
    enhanced = enhance_result.final.copy()

    main_result = build_pipeline(config).run(
        enhanced, artifact_dir=artifact_dir, save_original=False
    )

    artifact_paths: dict[str, str] = {}
    if enhance_result.original_artifact_path:
        artifact_paths["original"] = enhance_result.original_artifact_path
    for step in enhance_result.steps:
        if step.artifact_path:
            artifact_paths[f"enhance_{step_key(step.name)}"] = step.artifact_path
    for step in main_result.steps:
        if step.artifact_path:
            artifact_paths[step_key(step.name)] = step.artifact_path

    metadata = {
        **{f"enhance_{k}": v for k, v in enhance_result.step_metadata.items()},
        **main_result.step_metadata,
    }

    return PreprocessResult(
        original=original,
        enhanced=enhanced,
        processed=main_result.final,
        config=config,
        artifact_paths=artifact_paths,
        metadata=metadata,
    )
