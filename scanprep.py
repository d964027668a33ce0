#!/usr/bin/env python3
"""
Unified CLI for barcode frame preprocessing.

Usage:
    scanprep scan <path>                      # Decode barcodes in a file or directory
    scanprep scan <path> --median --adaptive  # Select preprocessing stages
    scanprep scan <path> --clahe --unsharp    # Add the enhancement pre-pass
    scanprep scan <path> --debug-dir out/     # Save intermediate images
    scanprep preprocess <in> <out>            # Write the processed image only
"""

import argparse
import logging
import sys

from logging_utils import configure_logging, add_logging_args
from cli.scan import add_scan_subparser
from cli.preprocess import add_preprocess_subparser

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scanprep",
        description="Scanprep - preprocess camera frames and decode barcodes/QR codes",
    )
    add_logging_args(parser)
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_scan_subparser(subparsers)
    add_preprocess_subparser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.verbose, args.quiet)

    cmd = getattr(args, "_cmd", None)
    if cmd is None:
        parser.print_help()
        return 1
    return cmd(args)


if __name__ == "__main__":
    sys.exit(main())
