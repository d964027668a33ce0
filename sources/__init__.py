"""
Image source adapters.

Each source yields images as PixelBuffers for processing.
"""

from .local import IMAGE_EXTENSIONS, scan_local_images, load_image, save_image

__all__ = [
    "IMAGE_EXTENSIONS",
    "scan_local_images",
    "load_image",
    "save_image",
]
