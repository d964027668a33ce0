"""Preprocess command: write the processed frame for inspection."""

from __future__ import annotations

import argparse
import logging

from preprocessing import run_pipeline
from sources import load_image, save_image

from .stages import add_stage_args, stage_config_from_args

logger = logging.getLogger(__name__)


def add_preprocess_subparser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "preprocess",
        help="Run the preprocessing stages on one image and save the result",
    )
    parser.add_argument("input", help="Input image file")
    parser.add_argument("output", help="Output image file (format from extension)")
    parser.add_argument(
        "--debug-dir",
        metavar="DIR",
        help="Also save every intermediate image under DIR",
    )
    add_stage_args(parser)
    parser.set_defaults(_cmd=cmd_preprocess)


def cmd_preprocess(args: argparse.Namespace) -> int:
    try:
        stage_config = stage_config_from_args(args)
        buffer = load_image(args.input)
        result = run_pipeline(buffer, stage_config, artifact_dir=args.debug_dir)
        save_image(result.processed, args.output)
    except (ValueError, OSError) as exc:
        logger.error("%s", exc)
        return 1

    applied = ", ".join(result.metadata) or "none"
    logger.info("Applied stages: %s", applied)
    logger.info("Saved %dx%d result to %s", *result.dimensions, args.output)
    for name, path in result.artifact_paths.items():
        logger.debug("Artifact %s: %s", name, path)
    return 0
