"""Turns packed bins into atlas images and their frame manifests."""
import logging
from typing import Dict, Iterator

from PIL import Image

from .config import APP_NAME, MANIFEST_FORMAT, MANIFEST_SCALE, TextureFormat
from .errors import DuplicateSpriteError
from .images import rotate_image, sprite_source_offset
from .packer import Bin, PackingResult, PlaceableRect

logger = logging.getLogger(__name__)


class AtlasManifest:
    """Frame data for one atlas, in the common "frames + meta" JSON layout."""

    def __init__(self, image: str, width: int, height: int):
        self.image = image
        self.width = width
        self.height = height
        self.frames: Dict[str, dict] = {}

    def add_frame(self, name: str, entry: dict) -> None:
        if name in self.frames:
            raise DuplicateSpriteError(f"Sprite {name!r} is already in atlas {self.image}")
        self.frames[name] = entry

    def add_rect(self, rect: PlaceableRect) -> None:
        """Add the manifest entry for a placed sprite."""
        source = rect.source
        offset_x, offset_y = sprite_source_offset(source)
        self.add_frame(source.name, {
            "frame": {"x": rect.x, "y": rect.y, "w": rect.width, "h": rect.height},
            "rotated": rect.rotated,
            "trimmed": source.trimmed,
            "spriteSourceSize": {"x": offset_x, "y": offset_y, "w": rect.width, "h": rect.height},
            "sourceSize": {"w": source.original_width, "h": source.original_height},
        })

    def to_dict(self) -> dict:
        return {
            "frames": dict(self.frames),
            "meta": {
                "app": APP_NAME,
                "image": self.image,
                "scale": MANIFEST_SCALE,
                "format": MANIFEST_FORMAT,
                "size": {"w": self.width, "h": self.height},
            },
        }


class Atlas:
    """A composited bin ready to be written out."""
    def __init__(self, index: int, name: str, image: Image.Image, manifest: AtlasManifest):
        self.index = index
        self.name = name
        self.image = image
        self.manifest = manifest

    def __repr__(self):
        return f"Atlas({self.name} {self.image.width}×{self.image.height}, {len(self.manifest.frames)} sprites)"


def atlas_basename(atlas_name: str, index: int) -> str:
    return f"{atlas_name}_atlas-{index}"


def assemble_bin(packed_bin: Bin, index: int, atlas_name: str, texture_format: TextureFormat) -> Atlas:
    """Composite every sprite of a bin onto a transparent canvas and build its manifest."""
    name = atlas_basename(atlas_name, index)
    texture_name = f"{name}.{texture_format.extension}"

    sheet_img = Image.new("RGBA", (packed_bin.width, packed_bin.height), (0, 0, 0, 0))
    manifest = AtlasManifest(texture_name, packed_bin.width, packed_bin.height)

    for rect in packed_bin.rects:
        img = rect.source.image
        if rect.rotated:
            img = rotate_image(img)
        sheet_img.paste(img, (rect.x, rect.y))
        manifest.add_rect(rect)

    logger.debug("Composed %s with %d sprites", name, len(packed_bin.rects))
    return Atlas(index, name, sheet_img, manifest)


def assemble(result: PackingResult, atlas_name: str, texture_format: TextureFormat) -> Iterator[Atlas]:
    """Yield one atlas per bin, composing each only when it is asked for."""
    for index, packed_bin in enumerate(result):
        yield assemble_bin(packed_bin, index, atlas_name, texture_format)
