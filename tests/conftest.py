"""Pytest configuration: fast-by-default setup.

Slow tests (real decoding engines) are skipped unless --slow is passed.
Run the full suite:   pytest --slow
Run fast tests only:  pytest          (default)
"""
import numpy as np
import pytest

from preprocessing import PixelBuffer


def pytest_addoption(parser):
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests that need a real decoding engine (ZBar, OpenCV QR)",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--slow"):
        return  # run everything
    skip_slow = pytest.mark.skip(reason="slow test skipped, pass --slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def gray_buffer(values) -> PixelBuffer:
    """Grayscale buffer (R = G = B, alpha 255) from a 2D list of levels."""
    return PixelBuffer.from_array(np.array(values, dtype=np.uint8))


def levels(buffer: PixelBuffer) -> list[list[int]]:
    """R channel of a buffer as nested lists, for readable assertions."""
    return buffer.data[..., 0].tolist()


@pytest.fixture
def noisy_rgba() -> PixelBuffer:
    """Deterministic random RGBA capture."""
    rng = np.random.default_rng(1234)
    return PixelBuffer.from_array(rng.integers(0, 256, (24, 32, 4), dtype=np.uint8))
