"""
Data structures for decoded symbols.

Decoders report what they read in these engine-neutral types so that callers
never see an engine's own result objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Symbol outline: list of [x, y] corner points in buffer coordinates
Polygon = list[list[int]]


class BarcodeFormat(str, Enum):
    """Symbologies the decoding engines can report."""

    QR_CODE = "QR_CODE"
    CODE_128 = "CODE_128"
    CODE_39 = "CODE_39"
    CODE_93 = "CODE_93"
    EAN_13 = "EAN_13"
    EAN_8 = "EAN_8"
    UPC_A = "UPC_A"
    UPC_E = "UPC_E"
    ITF = "ITF"
    CODABAR = "CODABAR"
    PDF_417 = "PDF_417"
    DATABAR = "DATABAR"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, name: str) -> BarcodeFormat:
        """Parse a user-supplied format name ("code128", "QR_CODE", "ean-13").

        Raises:
            ValueError: If the name matches no known format.
        """
        wanted = name.upper().replace("-", "").replace("_", "")
        for member in cls:
            if member.value.replace("_", "") == wanted:
                return member
        raise ValueError(f"Unknown barcode format: {name!r}")


@dataclass(frozen=True)
class DecodeResult:
    """A decoded symbol.

    Attributes:
        text: Decoded payload.
        format: Symbology of the decoded symbol.
        engine: Name of the engine that produced the result.
        polygon: Corner points of the symbol, if the engine reports them.
    """

    text: str
    format: BarcodeFormat
    engine: str
    polygon: Polygon | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "format": self.format.value,
            "engine": self.engine,
            "polygon": self.polygon,
        }
