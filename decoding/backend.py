"""
Decoder interface and adapters over external decoding engines.

Symbol decoding itself is delegated entirely to third-party engines. The
adapters only convert a PixelBuffer into the engine's input, translate the
engine's result into a DecodeResult, and map "nothing found" to None.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
import logging
from typing import Protocol

import cv2
import numpy as np

import config
from preprocessing import PixelBuffer
from .types import BarcodeFormat, DecodeResult, Polygon

logger = logging.getLogger(__name__)


class Decoder(Protocol):
    """Interface for decoding engines."""

    name: str

    def decode(self, buffer: PixelBuffer) -> DecodeResult | None:
        """Decode the first readable symbol, or return None if none is found."""


def to_gray(buffer: PixelBuffer) -> np.ndarray:
    """Single-channel uint8 view of a buffer for engines that want gray input."""
    if buffer.is_grayscale():
        return buffer.red()
    return cv2.cvtColor(buffer.data, cv2.COLOR_RGBA2GRAY)


def _points_to_polygon(points) -> Polygon | None:
    if points is None:
        return None
    corners = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if corners.size == 0:
        return None
    return [[int(round(x)), int(round(y))] for x, y in corners]


def _allowed(result: DecodeResult, formats: tuple[BarcodeFormat, ...]) -> bool:
    return not formats or result.format in formats


# ZBar symbol type names as reported by pyzbar
_ZBAR_FORMATS: dict[str, BarcodeFormat] = {
    "QRCODE": BarcodeFormat.QR_CODE,
    "CODE128": BarcodeFormat.CODE_128,
    "CODE39": BarcodeFormat.CODE_39,
    "CODE93": BarcodeFormat.CODE_93,
    "EAN13": BarcodeFormat.EAN_13,
    "EAN8": BarcodeFormat.EAN_8,
    "UPCA": BarcodeFormat.UPC_A,
    "UPCE": BarcodeFormat.UPC_E,
    "I25": BarcodeFormat.ITF,
    "CODABAR": BarcodeFormat.CODABAR,
    "PDF417": BarcodeFormat.PDF_417,
    "DATABAR": BarcodeFormat.DATABAR,
    "DATABAR_EXP": BarcodeFormat.DATABAR,
}


@dataclass
class PyzbarDecoder:
    """ZBar engine via pyzbar. Reads 1-D symbologies and QR codes.

    Attributes:
        formats: If non-empty, results of any other format are discarded.
    """

    formats: tuple[BarcodeFormat, ...] = ()
    name: str = field(default="pyzbar", init=False)

    def decode(self, buffer: PixelBuffer) -> DecodeResult | None:
        if buffer.is_empty:
            return None
        # Imported lazily: pyzbar needs the zbar shared library at import time.
        from pyzbar.pyzbar import decode as zbar_decode

        for symbol in zbar_decode(to_gray(buffer)):
            result = DecodeResult(
                text=symbol.data.decode("utf-8", errors="replace"),
                format=_ZBAR_FORMATS.get(symbol.type, BarcodeFormat.UNKNOWN),
                engine=self.name,
                polygon=_points_to_polygon([(p.x, p.y) for p in symbol.polygon]),
            )
            if _allowed(result, self.formats):
                return result
            logger.debug("pyzbar: ignoring %s symbol", result.format.value)
        return None


@dataclass
class OpenCVDecoder:
    """OpenCV engine: QR detector plus the 1-D barcode detector.

    The 1-D detector ships with opencv-python 4.8 and later; on older builds
    only QR codes are read.

    Attributes:
        formats: If non-empty, results of any other format are discarded.
    """

    formats: tuple[BarcodeFormat, ...] = ()
    name: str = field(default="opencv", init=False)

    def decode(self, buffer: PixelBuffer) -> DecodeResult | None:
        if buffer.is_empty:
            return None
        gray = to_gray(buffer)

        for attempt in (self._decode_qr, self._decode_linear):
            result = attempt(gray)
            if result is not None and _allowed(result, self.formats):
                return result
        return None

    def _decode_qr(self, gray: np.ndarray) -> DecodeResult | None:
        if self.formats and BarcodeFormat.QR_CODE not in self.formats:
            return None
        text, points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
        if not text:
            return None
        return DecodeResult(
            text=text,
            format=BarcodeFormat.QR_CODE,
            engine=self.name,
            polygon=_points_to_polygon(points),
        )

    def _decode_linear(self, gray: np.ndarray) -> DecodeResult | None:
        barcode_module = getattr(cv2, "barcode", None)
        if barcode_module is None or not hasattr(barcode_module, "BarcodeDetector"):
            return None
        detector = barcode_module.BarcodeDetector()
        if not hasattr(detector, "detectAndDecodeWithType"):
            return None
        ok, infos, types, points = detector.detectAndDecodeWithType(gray)
        if not ok:
            return None
        for index, (text, kind) in enumerate(zip(infos, types)):
            if not text:
                continue
            try:
                symbology = BarcodeFormat.parse(kind)
            except ValueError:
                symbology = BarcodeFormat.UNKNOWN
            corners = points[index] if points is not None and len(points) > index else None
            result = DecodeResult(
                text=text,
                format=symbology,
                engine=self.name,
                polygon=_points_to_polygon(corners),
            )
            if _allowed(result, self.formats):
                return result
        return None


@dataclass
class HybridDecoder:
    """Try each engine in turn and return the first result.

    Attributes:
        decoders: Engines in priority order.
    """

    decoders: list[Decoder]
    name: str = field(default="hybrid", init=False)

    def decode(self, buffer: PixelBuffer) -> DecodeResult | None:
        for decoder in self.decoders:
            result = decoder.decode(buffer)
            if result is not None:
                return result
            logger.debug("%s found nothing, falling back", decoder.name)
        return None


_DECODERS: dict[str, type] = {
    "pyzbar": PyzbarDecoder,
    "opencv": OpenCVDecoder,
}

DECODER_CHOICES = (*_DECODERS, "hybrid")


def get_decoder(decoder_name: str | None = None, **kwargs) -> Decoder:
    """Instantiate a decoder by name with parameter overrides.

    Args:
        decoder_name: "pyzbar", "opencv" or "hybrid". Defaults to
            ``config.DECODER_ENGINE`` if None.
        **kwargs: Constructor keyword arguments to override. For "hybrid"
            they are passed to every engine in ``config.HYBRID_ENGINES``.

    Raises:
        ValueError: If ``decoder_name`` is unknown or any kwarg is not a
            valid field for the selected decoder.
    """
    name = decoder_name if decoder_name is not None else config.DECODER_ENGINE
    if name == "hybrid":
        return HybridDecoder(
            decoders=[get_decoder(engine, **kwargs) for engine in config.HYBRID_ENGINES]
        )
    decoder_cls = _DECODERS.get(name)
    if decoder_cls is None:
        raise ValueError(f"Unknown decoder: {name!r}")
    valid_fields = {f.name for f in dataclasses.fields(decoder_cls) if f.init}
    unknown = set(kwargs) - valid_fields
    if unknown:
        raise ValueError(
            f"Unknown kwargs for decoder {name!r}: {sorted(unknown)}"
        )
    return decoder_cls(**kwargs)
