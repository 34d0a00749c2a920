"""Command line front end."""
import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .config import DEFAULT_MAX_SIZE, DEFAULT_OUTPUT_DIR, DEFAULT_PADDING, PackerOptions, TextureFormat
from .errors import SpritePackerError
from .pipeline import sprites_packer

logger = logging.getLogger("spritepacker")


def setup_logging(verbose: bool = False) -> None:
    """Send the packer's log records to stdout."""
    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sprites-packer",
        description="Pack sprite images into power-of-two texture atlases",
    )
    parser.add_argument("-i", "--input-dir", required=True, help="Directory containing sprite images")
    parser.add_argument("-o", "--output-dir", default=DEFAULT_OUTPUT_DIR,
                        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR})")
    parser.add_argument("-w", "--max-width", type=int, default=DEFAULT_MAX_SIZE,
                        help=f"Maximum texture width (default: {DEFAULT_MAX_SIZE})")
    parser.add_argument("-H", "--max-height", type=int, default=DEFAULT_MAX_SIZE,
                        help=f"Maximum texture height (default: {DEFAULT_MAX_SIZE})")
    parser.add_argument("-f", "--texture-format", default=TextureFormat.PNG.value,
                        help="Output texture format: " + ", ".join(fmt.value for fmt in TextureFormat)
                        + f" (default: {TextureFormat.PNG.value})")
    parser.add_argument("-t", "--trim", action=argparse.BooleanOptionalAction, default=True,
                        help="Trim transparent pixels (default: on)")
    parser.add_argument("-p", "--padding", type=int, default=DEFAULT_PADDING,
                        help=f"Padding between sprites (default: {DEFAULT_PADDING})")
    parser.add_argument("-j", "--workers", type=int, default=1,
                        help="Threads used to decode and trim sprites (default: 1)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every step")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    options = PackerOptions(
        input_path=os.path.abspath(args.input_dir),
        output_path=os.path.abspath(args.output_dir),
        max_width=args.max_width,
        max_height=args.max_height,
        padding=args.padding,
        trim=args.trim,
        texture_format=args.texture_format,
        workers=args.workers,
    )

    logger.info("Processing sprites...")
    try:
        run = sprites_packer(options)
    except SpritePackerError as e:
        logger.debug("Packing failed", exc_info=True)
        logger.error("%s", e)
        return 1

    for exported in run.exported:
        image = exported.atlas.image
        print(f"{exported.texture_path} ({image.width}×{image.height}) "
              f"with {len(exported.atlas.manifest.frames)} sprites")
    print(f"\nFinal packing efficiency: {run.efficiency:.2f}%")
    print("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
