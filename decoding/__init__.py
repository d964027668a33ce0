"""
Barcode and QR decoding adapters.

This package provides a swappable decoder interface over external engines
(ZBar via pyzbar, OpenCV) and the engine-neutral result types.
"""

from .backend import (
    Decoder,
    PyzbarDecoder,
    OpenCVDecoder,
    HybridDecoder,
    DECODER_CHOICES,
    get_decoder,
)
from .types import BarcodeFormat, DecodeResult, Polygon

__all__ = [
    "Decoder",
    "PyzbarDecoder",
    "OpenCVDecoder",
    "HybridDecoder",
    "DECODER_CHOICES",
    "get_decoder",
    "BarcodeFormat",
    "DecodeResult",
    "Polygon",
]
