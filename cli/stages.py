"""Shared command-line flags for selecting preprocessing stages."""

from __future__ import annotations

import argparse

from config import (
    MEDIAN_RADIUS,
    ADAPTIVE_WINDOW_SIZE,
    ADAPTIVE_C,
    CLAHE_TILE_SIZE,
    CLAHE_CLIP_LIMIT,
    UNSHARP_RADIUS,
    UNSHARP_AMOUNT,
)
from preprocessing import StageConfig


def add_stage_args(parser: argparse.ArgumentParser) -> None:
    """Add stage selection and parameter flags to a parser."""
    chain = parser.add_argument_group("preprocessing chain")
    chain.add_argument(
        "--median",
        action="store_true",
        help="Apply median blur after grayscale conversion",
    )
    chain.add_argument(
        "--median-radius",
        type=int,
        default=MEDIAN_RADIUS,
        metavar="R",
        help=f"Median neighborhood radius (default: {MEDIAN_RADIUS})",
    )
    chain.add_argument(
        "--sobel",
        action="store_true",
        help="Replace the image with its Sobel edge magnitude",
    )
    binarize = chain.add_mutually_exclusive_group()
    binarize.add_argument(
        "--adaptive",
        action="store_true",
        help="Binarize against the local mean",
    )
    binarize.add_argument(
        "--threshold",
        type=float,
        default=None,
        metavar="T",
        help="Binarize with a single global cut (1-255; 0 disables the cut)",
    )
    chain.add_argument(
        "--window-size",
        type=int,
        default=ADAPTIVE_WINDOW_SIZE,
        metavar="N",
        help=f"Adaptive threshold window size (default: {ADAPTIVE_WINDOW_SIZE})",
    )
    chain.add_argument(
        "-c", "--offset",
        dest="c",
        type=float,
        default=ADAPTIVE_C,
        help=f"Adaptive threshold offset below the local mean (default: {ADAPTIVE_C})",
    )

    prepass = parser.add_argument_group("enhancement pre-pass")
    prepass.add_argument(
        "--clahe",
        action="store_true",
        help="Apply tile-wise CLAHE before the chain",
    )
    prepass.add_argument(
        "--clahe-tile-size",
        type=int,
        default=CLAHE_TILE_SIZE,
        metavar="PX",
        help=f"CLAHE tile size (default: {CLAHE_TILE_SIZE})",
    )
    prepass.add_argument(
        "--clahe-clip-limit",
        type=float,
        default=CLAHE_CLIP_LIMIT,
        metavar="COUNT",
        help=f"CLAHE histogram clip limit (default: {CLAHE_CLIP_LIMIT})",
    )
    prepass.add_argument(
        "--unsharp",
        action="store_true",
        help="Sharpen with an unsharp mask before the chain",
    )
    prepass.add_argument(
        "--unsharp-radius",
        type=int,
        default=UNSHARP_RADIUS,
        metavar="R",
        help=f"Unsharp mask blur radius (default: {UNSHARP_RADIUS})",
    )
    prepass.add_argument(
        "--unsharp-amount",
        type=float,
        default=UNSHARP_AMOUNT,
        metavar="GAIN",
        help=f"Unsharp mask amount (default: {UNSHARP_AMOUNT})",
    )


def stage_config_from_args(args: argparse.Namespace) -> StageConfig:
    """Build a validated StageConfig from parsed stage flags.

    Raises:
        ValueError: If any parameter is out of range.
    """
    config = StageConfig(
        median=args.median,
        median_radius=args.median_radius,
        sobel=args.sobel,
        adaptive=args.adaptive,
        window_size=args.window_size,
        c=args.c,
        threshold=args.threshold,
        clahe=args.clahe,
        clahe_tile_size=args.clahe_tile_size,
        clahe_clip_limit=args.clahe_clip_limit,
        unsharp=args.unsharp,
        unsharp_radius=args.unsharp_radius,
        unsharp_amount=args.unsharp_amount,
    )
    config.validate()
    return config
