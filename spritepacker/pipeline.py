"""End-to-end run: scan, load, pack, compose and export."""
import logging
import os
from typing import List

from .atlas import assemble
from .config import PackerOptions
from .errors import EmptyInputError
from .export import ExportedAtlas, Exporter
from .images import check_unique_names, find_images, load_images
from .packer import PackingResult, PlaceableRect, RectanglePacker

logger = logging.getLogger(__name__)


class PackerRun:
    """Outcome of `sprites_packer`: the packing result and the files written per bin."""
    def __init__(self, result: PackingResult, exported: List[ExportedAtlas]):
        self.result = result
        self.exported = exported

    @property
    def efficiency(self) -> float:
        return self.result.efficiency


def sprites_packer(options: PackerOptions) -> PackerRun:
    """
    Pack every sprite of `options.input_path` into atlases under `options.output_path`.

    Configuration problems (bad options, empty input, a sprite too large for
    an atlas) are raised before anything is written. After that each atlas is
    written as soon as it is composed; if a later one fails the earlier ones
    stay on disk.
    """
    options = options.validated()

    sprite_files = find_images(options.input_path)
    if not sprite_files:
        raise EmptyInputError(f"No images found in the input directory: {options.input_path}")
    logger.info("Found %d sprite files in %s", len(sprite_files), options.input_path)

    sources = load_images(sprite_files, workers=options.workers, trim=options.trim)
    check_unique_names(sources)

    packer = RectanglePacker(options.max_width, options.max_height, options.padding)
    result = packer.pack(PlaceableRect.from_source(source) for source in sources)

    os.makedirs(options.output_path, exist_ok=True)
    exporter = Exporter(options.output_path, options.texture_format)
    exported = []
    for atlas in assemble(result, options.atlas_name, options.texture_format):
        exported.append(exporter.export(atlas))

    logger.info("Wrote %d atlases, packing efficiency %.2f%%", len(exported), result.efficiency)
    return PackerRun(result, exported)
