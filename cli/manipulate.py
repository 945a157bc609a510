"""
Command line driver: load an image (or a folder of images), apply transforms
in order, save the result.

    image-manipulator photo.jpg out.png -s sepia -s rotate
    image-manipulator photo.jpg out.png -s filter --halo halo.png --grain grain.png
    image-manipulator photos/ edited/ -s hue=200 -s lightness=0.6
"""
import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from models.errors import InvalidAdjustmentError, ResourceUnavailableError, UnknownTransformError
from pipeline.apply_transforms import (
    OUTPUT_EXT,
    TRANSFORM_NAMES,
    apply_transforms,
    process_directory,
    validate_steps,
)
from services.overlay_service import OverlayService
from services.raster_service import RasterService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-manipulator",
        description="Apply pixel transforms (grayscale, sepia, bw, filter, hue, ...) to images.",
    )
    parser.add_argument("input", type=Path, help="Image file, or a folder of images")
    parser.add_argument("output", type=Path, help="Output file, or output folder when input is a folder")
    parser.add_argument(
        "-s", "--step", dest="steps", action="append", required=True, metavar="STEP",
        help=f"Transform to apply, repeatable, in order. One of: {', '.join(TRANSFORM_NAMES)}; "
             "hue/saturation/lightness take a value, e.g. hue=120",
    )
    parser.add_argument("--halo", help="Halo overlay image (default: $HALO_IMAGE_PATH)")
    parser.add_argument("--grain", help="Grain overlay image (default: $GRAIN_IMAGE_PATH)")
    parser.add_argument("--format", dest="fmt", help="Output format; inferred from the output extension if omitted")
    parser.add_argument("--ext", help=f"Output extension for folder runs (default: the --format extension, else {OUTPUT_EXT})")
    parser.add_argument("-r", "--recursive", action="store_true", help="Recurse into sub-folders")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def folder_ext(args: argparse.Namespace) -> str:
    if args.ext:
        return args.ext
    if args.fmt:
        return f".{args.fmt.lower().lstrip('.')}"
    return OUTPUT_EXT


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    level = "DEBUG" if args.verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    raster_service = RasterService()
    overlay_service = OverlayService(halo_source=args.halo, grain_source=args.grain)

    try:
        steps = validate_steps(args.steps)
        if args.input.is_dir():
            saved = process_directory(
                args.input, steps, args.output,
                recursive=args.recursive,
                ext=folder_ext(args),
                fmt=args.fmt,
                raster_service=raster_service,
                overlay_service=overlay_service,
            )
            logger.info(f"Wrote {len(saved)} images to {args.output}")
        else:
            raster = raster_service.load(args.input)
            apply_transforms(raster, steps,
                             raster_service=raster_service,
                             overlay_service=overlay_service)
            raster_service.save(raster, args.output, args.fmt)
    except (UnknownTransformError, InvalidAdjustmentError, ResourceUnavailableError) as err:
        logger.error(str(err))
        return 1
    except (OSError, ValueError) as err:
        logger.error(f"I/O error: {err}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
