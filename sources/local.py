"""
Local image files.

Functions for finding images in local directories and converting them to
and from PixelBuffers.
"""

from pathlib import Path

import numpy as np
from PIL import Image

from preprocessing import PixelBuffer

# Supported image extensions
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tiff", ".tif", ".gif"}


def scan_local_images(path: str) -> list[Path]:
    """Find all image files in a directory or return a single image file.

    Args:
        path: Path to directory or single image file to scan.

    Returns:
        Sorted list of image file paths.

    Raises:
        ValueError: If path doesn't exist or isn't a valid image/directory.
    """
    file_path = Path(path).resolve()

    if file_path.is_file():
        if file_path.suffix.lower() in IMAGE_EXTENSIONS:
            return [file_path]
        raise ValueError(f"{path} is not a supported image file")

    if not file_path.is_dir():
        raise ValueError(f"{path} is not a valid file or directory")

    return sorted(
        p for p in file_path.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def load_image(path: str | Path) -> PixelBuffer:
    """Decode an image file into an RGBA PixelBuffer.

    Animated formats contribute their first frame only.

    Raises:
        OSError: If the file cannot be read or is not a recognizable image.
    """
    with Image.open(path) as img:
        rgba = np.asarray(img.convert("RGBA"), dtype=np.uint8)
    return PixelBuffer.from_array(rgba)


def save_image(buffer: PixelBuffer, path: str | Path) -> None:
    """Encode a PixelBuffer to an image file; the extension selects the format.

    Formats without an alpha channel (JPEG) are written as RGB.
    """
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    img = Image.fromarray(buffer.data)
    if output.suffix.lower() in {".jpg", ".jpeg"}:
        img = img.convert("RGB")
    img.save(output)
