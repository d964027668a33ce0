"""Tests for decoder adapters and the decoder factory.

The engines themselves are replaced with fakes so these tests do not need
the zbar shared library. The real-engine round trip is marked slow.
"""

import sys
from types import ModuleType, SimpleNamespace
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from decoding import (
    BarcodeFormat,
    DecodeResult,
    HybridDecoder,
    OpenCVDecoder,
    PyzbarDecoder,
    get_decoder,
)
from decoding.backend import to_gray
from preprocessing import PixelBuffer


def _fake_pyzbar(symbols):
    """Build stand-in pyzbar modules whose decode() returns `symbols`."""
    package = ModuleType("pyzbar")
    module = ModuleType("pyzbar.pyzbar")
    module.decode = MagicMock(return_value=symbols)
    package.pyzbar = module
    return {"pyzbar": package, "pyzbar.pyzbar": module}


def _symbol(data: bytes, kind: str, corners=((0, 0), (4, 0), (4, 4), (0, 4))):
    return SimpleNamespace(
        data=data,
        type=kind,
        polygon=[SimpleNamespace(x=x, y=y) for x, y in corners],
    )


class FakeDecoder:
    """Decoder that returns a fixed result and records calls."""

    def __init__(self, name, result=None):
        self.name = name
        self.result = result
        self.calls = 0

    def decode(self, buffer):
        self.calls += 1
        return self.result


@pytest.fixture
def gray_frame():
    return PixelBuffer.from_array(np.full((10, 12), 200, dtype=np.uint8))


class TestBarcodeFormat:
    """Tests for BarcodeFormat.parse."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("QR_CODE", BarcodeFormat.QR_CODE),
            ("qrcode", BarcodeFormat.QR_CODE),
            ("code128", BarcodeFormat.CODE_128),
            ("ean-13", BarcodeFormat.EAN_13),
            ("Upc_A", BarcodeFormat.UPC_A),
        ],
    )
    def test_parse_normalizes_names(self, name, expected):
        assert BarcodeFormat.parse(name) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown barcode format"):
            BarcodeFormat.parse("aztec")

    def test_result_equality_ignores_polygon(self):
        a = DecodeResult("1", BarcodeFormat.EAN_8, "x", polygon=[[0, 0]])
        b = DecodeResult("1", BarcodeFormat.EAN_8, "x", polygon=None)
        assert a == b
        assert a.to_dict()["format"] == "EAN_8"


class TestToGray:
    """Tests for the gray conversion used by the adapters."""

    def test_grayscale_buffer_uses_red(self, gray_frame):
        assert np.all(to_gray(gray_frame) == 200)

    def test_colour_buffer_converted(self):
        rgba = np.zeros((2, 2, 4), dtype=np.uint8)
        rgba[..., 1] = 255
        gray = to_gray(PixelBuffer.from_array(rgba))
        assert gray.shape == (2, 2)
        assert 0 < gray[0, 0] < 255


class TestPyzbarDecoder:
    """Tests for PyzbarDecoder with a stand-in engine."""

    def test_translates_first_symbol(self, gray_frame):
        modules = _fake_pyzbar([_symbol(b"4006381333931", "EAN13")])
        with patch.dict(sys.modules, modules):
            result = PyzbarDecoder().decode(gray_frame)

        assert result == DecodeResult("4006381333931", BarcodeFormat.EAN_13, "pyzbar")
        assert result.polygon == [[0, 0], [4, 0], [4, 4], [0, 4]]
        passed = modules["pyzbar.pyzbar"].decode.call_args[0][0]
        assert passed.shape == (10, 12)

    def test_nothing_found(self, gray_frame):
        with patch.dict(sys.modules, _fake_pyzbar([])):
            assert PyzbarDecoder().decode(gray_frame) is None

    def test_format_filter_skips_other_symbols(self, gray_frame):
        symbols = [_symbol(b"abc", "CODE39"), _symbol(b"hello", "QRCODE")]
        with patch.dict(sys.modules, _fake_pyzbar(symbols)):
            result = PyzbarDecoder(formats=(BarcodeFormat.QR_CODE,)).decode(gray_frame)
        assert result.text == "hello"
        assert result.format is BarcodeFormat.QR_CODE

    def test_unmapped_type_is_unknown(self, gray_frame):
        with patch.dict(sys.modules, _fake_pyzbar([_symbol(b"x", "ISBN10")])):
            assert PyzbarDecoder().decode(gray_frame).format is BarcodeFormat.UNKNOWN

    def test_empty_buffer_short_circuits(self):
        modules = _fake_pyzbar([_symbol(b"x", "QRCODE")])
        with patch.dict(sys.modules, modules):
            assert PyzbarDecoder().decode(PixelBuffer.zeros(0, 0)) is None
        modules["pyzbar.pyzbar"].decode.assert_not_called()


class TestOpenCVDecoder:
    """Tests for OpenCVDecoder with patched detectors."""

    def test_qr_result(self, gray_frame):
        detector = MagicMock()
        points = np.array([[[1.2, 2.0], [8.0, 2.0], [8.0, 9.0], [1.0, 9.0]]], dtype=np.float32)
        detector.detectAndDecode.return_value = ("https://example.org", points, None)
        with patch.object(cv2, "QRCodeDetector", return_value=detector):
            result = OpenCVDecoder().decode(gray_frame)
        assert result.text == "https://example.org"
        assert result.format is BarcodeFormat.QR_CODE
        assert result.engine == "opencv"
        assert result.polygon == [[1, 2], [8, 2], [8, 9], [1, 9]]

    def test_falls_back_to_linear_detector(self, gray_frame):
        qr = MagicMock()
        qr.detectAndDecode.return_value = ("", None, None)
        linear = MagicMock()
        linear.detectAndDecodeWithType.return_value = (
            True,
            ("", "0123456789"),
            ("", "CODE_128"),
            np.zeros((2, 4, 2), dtype=np.float32),
        )
        barcode = SimpleNamespace(BarcodeDetector=MagicMock(return_value=linear))
        with patch.object(cv2, "QRCodeDetector", return_value=qr), \
                patch.object(cv2, "barcode", barcode, create=True):
            result = OpenCVDecoder().decode(gray_frame)
        assert result.text == "0123456789"
        assert result.format is BarcodeFormat.CODE_128
        assert result.polygon == [[0, 0]] * 4

    def test_nothing_found(self, gray_frame):
        qr = MagicMock()
        qr.detectAndDecode.return_value = ("", None, None)
        linear = MagicMock()
        linear.detectAndDecodeWithType.return_value = (False, (), (), None)
        barcode = SimpleNamespace(BarcodeDetector=MagicMock(return_value=linear))
        with patch.object(cv2, "QRCodeDetector", return_value=qr), \
                patch.object(cv2, "barcode", barcode, create=True):
            assert OpenCVDecoder().decode(gray_frame) is None

    def test_qr_skipped_when_filtered_out(self, gray_frame):
        qr_cls = MagicMock()
        decoder = OpenCVDecoder(formats=(BarcodeFormat.EAN_13,))
        linear = MagicMock()
        linear.detectAndDecodeWithType.return_value = (True, ("5901234123457",), ("EAN_13",), None)
        barcode = SimpleNamespace(BarcodeDetector=MagicMock(return_value=linear))
        with patch.object(cv2, "QRCodeDetector", qr_cls), \
                patch.object(cv2, "barcode", barcode, create=True):
            result = decoder.decode(gray_frame)
        qr_cls.assert_not_called()
        assert result.format is BarcodeFormat.EAN_13
        assert result.polygon is None


class TestHybridDecoder:
    """Tests for HybridDecoder fallback order."""

    def test_first_hit_wins(self, gray_frame):
        hit = DecodeResult("A", BarcodeFormat.QR_CODE, "first")
        first = FakeDecoder("first", hit)
        second = FakeDecoder("second", DecodeResult("B", BarcodeFormat.QR_CODE, "second"))
        assert HybridDecoder([first, second]).decode(gray_frame) is hit
        assert second.calls == 0

    def test_falls_back_in_order(self, gray_frame):
        hit = DecodeResult("B", BarcodeFormat.CODE_39, "second")
        first = FakeDecoder("first")
        second = FakeDecoder("second", hit)
        assert HybridDecoder([first, second]).decode(gray_frame) is hit
        assert first.calls == 1

    def test_all_miss(self, gray_frame):
        assert HybridDecoder([FakeDecoder("a"), FakeDecoder("b")]).decode(gray_frame) is None


class TestGetDecoder:
    """Tests for the get_decoder factory."""

    def test_default_is_hybrid_over_configured_engines(self):
        decoder = get_decoder()
        assert isinstance(decoder, HybridDecoder)
        assert [d.name for d in decoder.decoders] == ["pyzbar", "opencv"]

    def test_named_engine_with_overrides(self):
        decoder = get_decoder("opencv", formats=(BarcodeFormat.QR_CODE,))
        assert isinstance(decoder, OpenCVDecoder)
        assert decoder.formats == (BarcodeFormat.QR_CODE,)

    def test_hybrid_passes_overrides_to_every_engine(self):
        decoder = get_decoder("hybrid", formats=(BarcodeFormat.EAN_8,))
        assert all(d.formats == (BarcodeFormat.EAN_8,) for d in decoder.decoders)

    def test_unknown_engine(self):
        with pytest.raises(ValueError, match="Unknown decoder"):
            get_decoder("zxing")

    def test_unknown_kwarg(self):
        with pytest.raises(ValueError, match="Unknown kwargs"):
            get_decoder("pyzbar", name="other")


@pytest.mark.slow
def test_opencv_reads_generated_qr_code():
    encoder = cv2.QRCodeEncoder.create()
    modules = encoder.encode("scanprep")
    image = cv2.resize(modules, None, fx=8, fy=8, interpolation=cv2.INTER_NEAREST)
    image = np.pad(image, 32, constant_values=255)

    result = OpenCVDecoder().decode(PixelBuffer.from_array(image))

    assert result is not None
    assert result.text == "scanprep"
    assert result.format is BarcodeFormat.QR_CODE
