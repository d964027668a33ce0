"""Tests for PixelBuffer construction and helpers."""

import numpy as np
import pytest

from preprocessing import InvalidDimensionError, PixelBuffer


class TestConstruction:
    """Tests for PixelBuffer validation."""

    def test_zeros_is_fully_transparent_black(self):
        buf = PixelBuffer.zeros(3, 2)
        assert buf.data.shape == (2, 3, 4)
        assert not buf.data.any()

    def test_negative_dimensions_rejected(self):
        with pytest.raises(InvalidDimensionError):
            PixelBuffer.zeros(-1, 4)

    def test_shape_mismatch_rejected(self):
        with pytest.raises(InvalidDimensionError, match="does not match"):
            PixelBuffer(4, 4, np.zeros((4, 3, 4), dtype=np.uint8))

    def test_wrong_dtype_rejected(self):
        with pytest.raises(TypeError, match="uint8"):
            PixelBuffer(1, 1, np.zeros((1, 1, 4), dtype=np.float32))

    def test_non_array_rejected(self):
        with pytest.raises(TypeError):
            PixelBuffer(1, 1, [[[0, 0, 0, 0]]])

    def test_zero_area_allowed(self):
        assert PixelBuffer.zeros(0, 5).is_empty
        assert PixelBuffer.zeros(5, 0).is_empty
        assert not PixelBuffer.zeros(1, 1).is_empty


class TestFromBytes:
    """Tests for PixelBuffer.from_bytes."""

    def test_row_major_layout(self):
        samples = list(range(16))
        buf = PixelBuffer.from_bytes(2, 2, samples)
        # Pixel (x=1, y=0) starts at index 4
        assert buf.data[0, 1].tolist() == [4, 5, 6, 7]
        assert buf.data[1, 0].tolist() == [8, 9, 10, 11]

    def test_accepts_bytes(self):
        buf = PixelBuffer.from_bytes(1, 1, bytes([1, 2, 3, 4]))
        assert buf.to_bytes() == bytes([1, 2, 3, 4])

    def test_to_bytes_round_trip(self, noisy_rgba):
        raw = noisy_rgba.to_bytes()
        assert len(raw) == 32 * 24 * 4
        assert raw[:4] == bytes(noisy_rgba.data[0, 0])
        assert PixelBuffer.from_bytes(32, 24, raw) == noisy_rgba

    def test_length_mismatch(self):
        with pytest.raises(InvalidDimensionError, match="Expected 8 samples"):
            PixelBuffer.from_bytes(2, 1, [0] * 7)

    def test_out_of_range_samples(self):
        with pytest.raises(ValueError, match="within"):
            PixelBuffer.from_bytes(1, 1, [0, 0, 256, 0])

    def test_source_not_shared(self):
        samples = bytearray(4)
        buf = PixelBuffer.from_bytes(1, 1, samples)
        samples[0] = 99
        assert buf.data[0, 0, 0] == 0


class TestFromArray:
    """Tests for PixelBuffer.from_array."""

    def test_grayscale_replicated_with_opaque_alpha(self):
        buf = PixelBuffer.from_array(np.array([[7, 9]], dtype=np.uint8))
        assert buf.shape == (2, 1)
        assert buf.data[0, 1].tolist() == [9, 9, 9, 255]

    def test_rgb_gets_opaque_alpha(self):
        rgb = np.array([[[10, 20, 30]]], dtype=np.uint8)
        assert PixelBuffer.from_array(rgb).data[0, 0].tolist() == [10, 20, 30, 255]

    def test_rgba_kept(self):
        rgba = np.array([[[10, 20, 30, 40]]], dtype=np.uint8)
        assert PixelBuffer.from_array(rgba).data[0, 0].tolist() == [10, 20, 30, 40]

    def test_input_is_copied(self):
        img = np.zeros((2, 2, 4), dtype=np.uint8)
        buf = PixelBuffer.from_array(img)
        img[0, 0, 0] = 200
        assert buf.data[0, 0, 0] == 0

    @pytest.mark.parametrize("shape", [(4,), (2, 2, 2), (2, 2, 5), (1, 1, 1, 4)])
    def test_unsupported_shapes(self, shape):
        with pytest.raises(InvalidDimensionError):
            PixelBuffer.from_array(np.zeros(shape, dtype=np.uint8))

    def test_rejects_float_images(self):
        with pytest.raises(TypeError):
            PixelBuffer.from_array(np.zeros((2, 2), dtype=np.float64))


class TestHelpers:
    """Tests for copy, crop, grayscale check and equality."""

    def test_copy_is_independent(self, noisy_rgba):
        clone = noisy_rgba.copy()
        assert clone == noisy_rgba
        clone.data[0, 0, 0] ^= 0xFF
        assert clone != noisy_rgba

    def test_is_grayscale(self, noisy_rgba):
        assert not noisy_rgba.is_grayscale()
        assert PixelBuffer.from_array(np.full((2, 2), 40, dtype=np.uint8)).is_grayscale()

    def test_red_is_contiguous_copy(self, noisy_rgba):
        before = noisy_rgba.data[..., 0].copy()
        red = noisy_rgba.red()
        assert red.flags["C_CONTIGUOUS"]
        red[:] = 0
        assert np.array_equal(noisy_rgba.data[..., 0], before)

    def test_red_of_single_pixel_is_not_a_view(self):
        buf = PixelBuffer.from_array(np.array([[7]], dtype=np.uint8))
        red = buf.red()
        assert not np.shares_memory(red, buf.data)
        red[0, 0] = 0
        assert buf.data[0, 0, 0] == 7

    def test_crop(self, noisy_rgba):
        region = noisy_rgba.crop(4, 2, 10, 5)
        assert region.shape == (10, 5)
        assert np.array_equal(region.data, noisy_rgba.data[2:7, 4:14])

    @pytest.mark.parametrize("rect", [(-1, 0, 2, 2), (0, 0, 33, 1), (30, 20, 3, 5)])
    def test_crop_outside_raises(self, noisy_rgba, rect):
        with pytest.raises(InvalidDimensionError, match="outside"):
            noisy_rgba.crop(*rect)

    def test_hash_follows_contents(self):
        a = PixelBuffer.from_bytes(1, 1, [1, 2, 3, 4])
        b = PixelBuffer.from_bytes(1, 1, [1, 2, 3, 4])
        assert a == b
        assert hash(a) == hash(b)
