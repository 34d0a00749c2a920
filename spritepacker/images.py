"""Loading, trimming and rotating the source sprites."""
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Tuple

from PIL import Image

from .config import IMAGE_EXTENSIONS
from .errors import (
    DuplicateSpriteError,
    ImageDecodeError,
    ImageRotateError,
    InputDirectoryError,
)

logger = logging.getLogger(__name__)


class SourceImage:
    """One decoded sprite plus its original and (optionally) trimmed size."""
    def __init__(self, name: str, image: Image.Image, path: str = ""):
        self.name = name
        self.path = path
        self.image = image
        self.original_width = image.width
        self.original_height = image.height
        self.trimmed_width: Optional[int] = None
        self.trimmed_height: Optional[int] = None

    def __repr__(self):
        size = f"{self.original_width}×{self.original_height}"
        if self.trimmed_width is not None:
            size += f" -> {self.trimmed_width}×{self.trimmed_height}"
        return f"SourceImage({self.name} {size})"

    @property
    def width(self) -> int:
        """Width of the pixel buffer as it will be packed."""
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def trimmed(self) -> bool:
        """True only if trimming ran and actually shrank the sprite."""
        if self.trimmed_width is None or self.trimmed_height is None:
            return False
        return self.original_width > self.trimmed_width or self.original_height > self.trimmed_height


def sprite_name(path: str) -> str:
    """Sprite name is the file name up to its first dot."""
    return os.path.basename(path).split(".")[0]


def find_images(directory: str) -> List[str]:
    """Return the sprite files directly inside `directory`, sorted by file name."""
    try:
        entries = sorted(os.listdir(directory))
    except OSError as e:
        raise InputDirectoryError(f"Error scanning directory {directory}: {e}") from e

    sprite_files = []
    for entry in entries:
        full_path = os.path.join(directory, entry)
        if os.path.isfile(full_path) and entry.lower().endswith(IMAGE_EXTENSIONS):
            sprite_files.append(full_path)
    return sprite_files


def load_image(path: str) -> SourceImage:
    """Decode a sprite file into an RGBA SourceImage."""
    try:
        with Image.open(path) as img:
            rgba = img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Error loading {path}: {e}") from e
    return SourceImage(sprite_name(path), rgba, path)


def load_images(paths: Iterable[str], workers: int = 1, trim: bool = False) -> List[SourceImage]:
    """
    Decode (and optionally trim) every sprite.
    Images are independent so they may be processed on a thread pool; the
    returned list is always in the same order as `paths`.
    """
    def process(path: str) -> SourceImage:
        source = load_image(path)
        if trim:
            trim_source(source)
        return source

    paths = list(paths)
    if workers <= 1:
        return [process(path) for path in paths]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(process, paths))


def check_unique_names(sources: Iterable[SourceImage]) -> None:
    """Two sprites with the same name would overwrite each other's manifest entry."""
    seen: Dict[str, str] = {}
    for source in sources:
        if source.name in seen:
            raise DuplicateSpriteError(
                f"Duplicate sprite name {source.name!r}: {seen[source.name]} and {source.path}"
            )
        seen[source.name] = source.path


def trim_whitespace(img: Image.Image) -> Tuple[Image.Image, int, int, int, int]:
    """
    Trim transparent whitespace from an image.
    Returns the trimmed image and the offsets (left, top, width, height).
    """
    if img.mode != "RGBA":
        img = img.convert("RGBA")

    bbox = img.getchannel("A").getbbox()

    # Entirely transparent: nothing sensible to crop to
    if bbox is None:
        return img, 0, 0, img.width, img.height

    left, top, right, bottom = bbox
    return img.crop(bbox), left, top, right - left, bottom - top


def trim_source(source: SourceImage) -> SourceImage:
    """Replace the pixel buffer with its trimmed version and record the new size."""
    trimmed_img, _, _, width, height = trim_whitespace(source.image)
    source.image = trimmed_img
    source.trimmed_width = width
    source.trimmed_height = height
    if source.trimmed:
        logger.debug("Trimmed %s from %d×%d to %d×%d", source.name,
                     source.original_width, source.original_height, width, height)
    return source


def sprite_source_offset(source: SourceImage) -> Tuple[int, int]:
    """
    Offset of the trimmed frame inside the original sprite.
    Assumes the transparent border was removed evenly on both sides, so an
    asymmetric trim is reported at the centred position.
    """
    if not source.trimmed:
        return 0, 0
    return ((source.original_width - source.trimmed_width) // 2,
            (source.original_height - source.trimmed_height) // 2)


def rotate_image(img: Image.Image) -> Image.Image:
    """Rotate 90 degrees counter-clockwise."""
    try:
        return img.transpose(Image.Transpose.ROTATE_90)
    except (OSError, ValueError) as e:
        raise ImageRotateError(f"Error rotating image: {e}") from e
