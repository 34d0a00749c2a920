"""Writing atlases to disk: one texture and one JSON manifest per bin."""
import json
import logging
import os
import shutil
import tempfile
from typing import Callable, Optional

from PIL import Image

from .atlas import Atlas
from .basis import BasisOptions, basis_compress
from .config import WEBP_QUALITY, TextureFormat
from .errors import ImageEncodeError, ManifestWriteError

logger = logging.getLogger(__name__)

TEMP_DIR_PREFIX = "sprite-packer-"
TEMP_TEXTURE_NAME = "sprite-packer-tmp.png"


class ExportedAtlas:
    """Paths written for one atlas."""
    def __init__(self, atlas: Atlas, texture_path: str, manifest_path: str):
        self.atlas = atlas
        self.texture_path = texture_path
        self.manifest_path = manifest_path

    def __repr__(self):
        return f"ExportedAtlas({self.texture_path}, {self.manifest_path})"


def _save_image(img: Image.Image, path: str, **params) -> None:
    try:
        img.save(path, **params)
    except (OSError, ValueError) as e:
        raise ImageEncodeError(f"Error saving {path}: {e}") from e


class Exporter:
    """
    Writes each atlas as soon as it is handed over. Atlases are independent:
    a failure on one leaves the ones already written in place.
    """

    def __init__(self, output_dir: str, texture_format: TextureFormat,
                 compress: Optional[Callable[[BasisOptions], None]] = None):
        self.output_dir = output_dir
        self.texture_format = texture_format
        self.compress = compress or basis_compress

    def texture_path(self, atlas: Atlas) -> str:
        return os.path.join(self.output_dir, f"{atlas.name}.{self.texture_format.extension}")

    def manifest_path(self, atlas: Atlas) -> str:
        return os.path.join(self.output_dir, f"{atlas.name}.json")

    def export(self, atlas: Atlas) -> ExportedAtlas:
        texture_path, manifest_path = self.texture_path(atlas), self.manifest_path(atlas)

        self.save_texture(atlas.image, texture_path)
        logger.info("New atlas: %s - width: %d height: %d",
                    os.path.basename(texture_path), atlas.image.width, atlas.image.height)

        self.save_manifest(atlas, manifest_path)
        return ExportedAtlas(atlas, texture_path, manifest_path)

    def save_manifest(self, atlas: Atlas, path: str) -> None:
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(atlas.manifest.to_dict(), f, separators=(",", ":"), ensure_ascii=False)
        except OSError as e:
            raise ManifestWriteError(f"Error writing {path}: {e}") from e

    def save_texture(self, img: Image.Image, path: str) -> None:
        if self.texture_format is TextureFormat.PNG:
            _save_image(img, path, format="PNG")
        elif self.texture_format is TextureFormat.WEBP:
            _save_image(img, path, format="WEBP", quality=WEBP_QUALITY)
        elif self.texture_format is TextureFormat.BASIS:
            self._save_basis(img, path)
        else:
            raise ValueError(f"Unhandled texture format {self.texture_format}")

    def _save_basis(self, img: Image.Image, path: str) -> None:
        """Write a temporary PNG next to the output and hand it to basisu."""
        tmp_dir = tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=self.output_dir)
        try:
            tmp_png = os.path.join(tmp_dir, TEMP_TEXTURE_NAME)
            _save_image(img, tmp_png, format="PNG")
            self.compress(BasisOptions(input_path=tmp_png, output_path=path))
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)
