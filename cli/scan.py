"""Scan command CLI parsing and control flow."""

from __future__ import annotations

import argparse
import logging

import config
from decoding import BarcodeFormat, DECODER_CHOICES, get_decoder
from scan import run_scan

from .stages import add_stage_args, stage_config_from_args

logger = logging.getLogger(__name__)


def add_scan_subparser(subparsers: argparse._SubParsersAction) -> None:
    scan_parser = subparsers.add_parser(
        "scan",
        help="Preprocess and decode barcodes in an image file or directory",
    )
    scan_parser.add_argument(
        "source",
        help="Local directory or image file path",
    )
    scan_parser.add_argument(
        "--engine",
        choices=DECODER_CHOICES,
        default=config.DECODER_ENGINE,
        help=f"Decoding engine (default: {config.DECODER_ENGINE})",
    )
    scan_parser.add_argument(
        "--formats",
        nargs="+",
        metavar="FORMAT",
        help="Only accept these symbologies (e.g. code128 qr_code)",
    )
    scan_parser.add_argument(
        "--no-roi",
        dest="use_roi",
        action="store_false",
        help="Scan the full frame instead of the centre band",
    )
    scan_parser.add_argument(
        "--debug-dir",
        metavar="DIR",
        help="Save intermediate images for each scanned file under DIR",
    )
    scan_parser.add_argument(
        "--limit", "-n",
        type=int,
        default=None,
        help="Maximum number of images to process (default: all)",
    )
    add_stage_args(scan_parser)
    scan_parser.set_defaults(_cmd=cmd_scan)


def cmd_scan(args: argparse.Namespace) -> int:
    try:
        stage_config = stage_config_from_args(args)
        formats = tuple(BarcodeFormat.parse(name) for name in args.formats or ())
        decoder = get_decoder(args.engine, formats=formats)
        stats = run_scan(
            args.source,
            config=stage_config,
            decoder=decoder,
            use_roi=args.use_roi,
            artifact_dir=args.debug_dir,
            limit=args.limit,
        )
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    for outcome in stats.outcomes:
        if outcome.found:
            print(f"{outcome.source_path}\t{outcome.result.format.value}\t{outcome.result.text}")

    logger.info("%s", "=" * 50)
    logger.info("Scan Complete!")
    logger.info("%s", "=" * 50)
    logger.info("Images found:     %s", stats.images_found)
    logger.info("Images decoded:   %s", stats.images_decoded)
    logger.info("Nothing found:    %s", stats.images_not_found)
    logger.info("Unreadable:       %s", stats.images_failed)
    if args.debug_dir:
        logger.info("Intermediate images saved to %s", args.debug_dir)
    return 0 if stats.images_decoded else 1
