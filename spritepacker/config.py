"""Defaults and run options."""
import enum
import logging
import os
from dataclasses import dataclass, replace
from typing import Union

from .errors import (
    InputDirectoryError,
    InvalidDimensionsError,
    TextureFormatNotSupportedError,
)

logger = logging.getLogger(__name__)

APP_NAME = "sprites-packer"

# Atlas size limits (pixels)
MIN_ATLAS_SIZE = 128
MAX_ATLAS_SIZE = 4096
DEFAULT_MAX_SIZE = 1024
DEFAULT_PADDING = 4

DEFAULT_OUTPUT_DIR = "./sprites-packer-output"
IMAGE_EXTENSIONS = (".png",)

# Manifest "meta" block
MANIFEST_FORMAT = "RGBA8888"
MANIFEST_SCALE = 1

WEBP_QUALITY = 80


class TextureFormat(enum.Enum):
    """Supported atlas texture formats."""
    PNG = "png"
    WEBP = "webp"
    BASIS = "basis"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union[str, "TextureFormat"]) -> "TextureFormat":
        """Map a user supplied format name to a member, or raise a configuration error."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            supported = ", ".join(fmt.value for fmt in cls)
            raise TextureFormatNotSupportedError(
                f"Texture format {value!r} not supported. currently we support only {supported}"
            ) from None


@dataclass(frozen=True)
class PackerOptions:
    """Everything one packing run needs to know."""
    input_path: str
    output_path: str = DEFAULT_OUTPUT_DIR
    max_width: int = DEFAULT_MAX_SIZE
    max_height: int = DEFAULT_MAX_SIZE
    padding: int = DEFAULT_PADDING
    trim: bool = True
    texture_format: Union[str, TextureFormat] = TextureFormat.PNG
    workers: int = 1

    @property
    def atlas_name(self) -> str:
        """Base name of every output file: the input directory's own name."""
        return os.path.basename(os.path.normpath(self.input_path))

    def validated(self) -> "PackerOptions":
        """
        Return a normalized copy of the options.
        The texture format is checked first so a bad format is reported
        before the input directory is looked at.
        """
        texture_format = TextureFormat.parse(self.texture_format)

        if self.max_width < MIN_ATLAS_SIZE:
            raise InvalidDimensionsError(
                f"Maximum width must be at least {MIN_ATLAS_SIZE} pixels, got {self.max_width}"
            )
        if self.max_height < MIN_ATLAS_SIZE:
            raise InvalidDimensionsError(
                f"Maximum height must be at least {MIN_ATLAS_SIZE} pixels, got {self.max_height}"
            )
        max_width = min(self.max_width, MAX_ATLAS_SIZE)
        max_height = min(self.max_height, MAX_ATLAS_SIZE)
        if (max_width, max_height) != (self.max_width, self.max_height):
            logger.warning("Atlas size clamped to %d×%d", max_width, max_height)

        if not os.path.isdir(self.input_path):
            raise InputDirectoryError(
                f'The input directory "{self.input_path}" does not exist. '
                "Please provide a valid directory path."
            )

        return replace(
            self,
            max_width=max_width,
            max_height=max_height,
            padding=max(self.padding, 0),
            texture_format=texture_format,
            workers=max(self.workers, 1),
        )
