"""Scanning service package."""

from .roi import Rect, center_roi, crop_to_roi, roi_to_frame
from .service import ScanOutcome, ScanStats, run_scan, scan_buffer, scan_file

__all__ = [
    "Rect",
    "center_roi",
    "crop_to_roi",
    "roi_to_frame",
    "ScanOutcome",
    "ScanStats",
    "run_scan",
    "scan_buffer",
    "scan_file",
]
