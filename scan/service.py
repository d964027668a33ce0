"""Scan service entrypoints for reuse across the CLI and library callers.

A scan is: load -> optional centre crop -> enhancement pre-pass -> main
preprocessing chain -> decode. Every decision about fallbacks lives here,
outside the preprocessing core.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from decoding import Decoder, DecodeResult, Polygon, get_decoder
from preprocessing import PixelBuffer, PreprocessResult, StageConfig, run_pipeline
from sources import load_image, scan_local_images

from .roi import Rect, crop_to_roi, roi_to_frame

logger = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    """Result of scanning one image.

    Attributes:
        result: Decoded symbol, or None if nothing was found.
        preprocess: Buffers produced on the way to the decoder.
        roi: Rectangle the image was cropped to, or None for the full frame.
        source_path: File the image was loaded from, if any.
    """

    result: DecodeResult | None
    preprocess: PreprocessResult
    roi: Rect | None = None
    source_path: str | None = None

    @property
    def found(self) -> bool:
        return self.result is not None

    @property
    def frame_polygon(self) -> Polygon | None:
        """Symbol outline in full-frame coordinates."""
        if self.result is None or self.result.polygon is None:
            return None
        if self.roi is None:
            return self.result.polygon
        return [list(roi_to_frame((x, y), self.roi)) for x, y in self.result.polygon]

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_path": self.source_path,
            "found": self.found,
            "result": self.result.to_dict() if self.result else None,
            "roi": list(self.roi) if self.roi else None,
            "polygon": self.frame_polygon,
        }


def scan_buffer(
    buffer: PixelBuffer,
    config: StageConfig | None = None,
    decoder: Decoder | None = None,
    use_roi: bool = False,
    artifact_dir: str | None = None,
) -> ScanOutcome:
    """Preprocess a captured frame and decode it.

    Args:
        buffer: Raw RGBA capture.
        config: Stage selection. If None, uses default settings.
        decoder: Decoder to use. If None, uses the configured engine.
        use_roi: Crop to the centre band before preprocessing.
        artifact_dir: Optional directory for intermediate images.

    Raises:
        ValueError: If the configuration is invalid.
    """
    if decoder is None:
        decoder = get_decoder()

    roi = None
    if use_roi:
        buffer, roi = crop_to_roi(buffer)
        logger.debug("Cropped to ROI %s", roi)

    preprocess = run_pipeline(buffer, config, artifact_dir=artifact_dir)
    result = decoder.decode(preprocess.processed)
    return ScanOutcome(result=result, preprocess=preprocess, roi=roi)


def scan_file(
    path: str | Path,
    config: StageConfig | None = None,
    decoder: Decoder | None = None,
    use_roi: bool = False,
    artifact_dir: str | None = None,
) -> ScanOutcome:
    """Load an image file and scan it.

    Raises:
        OSError: If the image cannot be read.
    """
    buffer = load_image(path)
    outcome = scan_buffer(
        buffer,
        config=config,
        decoder=decoder,
        use_roi=use_roi,
        artifact_dir=artifact_dir,
    )
    outcome.source_path = str(path)
    return outcome


@dataclass
class ScanStats:
    """Totals for a multi-image scan."""

    images_found: int = 0
    images_decoded: int = 0
    images_not_found: int = 0
    images_failed: int = 0
    outcomes: list[ScanOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, int]:
        return {
            "images_found": self.images_found,
            "images_decoded": self.images_decoded,
            "images_not_found": self.images_not_found,
            "images_failed": self.images_failed,
        }


def run_scan(
    source: str,
    config: StageConfig | None = None,
    decoder: Decoder | None = None,
    use_roi: bool = False,
    artifact_dir: str | None = None,
    limit: int | None = None,
) -> ScanStats:
    """Scan a single image file or every image in a directory.

    Unreadable images are logged and counted, not raised.

    Raises:
        ValueError: If source is not an image file or directory, or the
            configuration is invalid.
    """
    if config is None:
        config = StageConfig()
    config.validate()
    if decoder is None:
        decoder = get_decoder()

    image_files = scan_local_images(source)
    logger.info("Found %s images in %s", len(image_files), source)
    if limit is not None:
        image_files = image_files[:limit]
        logger.info("Processing limited to %s images", limit)

    stats = ScanStats(images_found=len(image_files))
    for image_path in image_files:
        image_artifacts = f"{artifact_dir}/{image_path.name}" if artifact_dir else None
        try:
            outcome = scan_file(
                image_path,
                config=config,
                decoder=decoder,
                use_roi=use_roi,
                artifact_dir=image_artifacts,
            )
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", image_path, exc)
            stats.images_failed += 1
            continue

        stats.outcomes.append(outcome)
        if outcome.found:
            stats.images_decoded += 1
            logger.info(
                "%s: %s %r (%s)",
                image_path.name,
                outcome.result.format.value,
                outcome.result.text,
                outcome.result.engine,
            )
        else:
            stats.images_not_found += 1
            logger.info("%s: no symbol found", image_path.name)

    return stats
