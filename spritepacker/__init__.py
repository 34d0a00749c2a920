"""Pack individual sprite images into power-of-two texture atlases."""

__version__ = "0.1.0"

from .config import PackerOptions, TextureFormat
from .errors import CollaboratorError, ConfigurationError, SpritePackerError
from .packer import Bin, Orientation, PackingResult, PlaceableRect, RectanglePacker, pack
from .pipeline import PackerRun, sprites_packer

__all__ = [
    "Bin",
    "CollaboratorError",
    "ConfigurationError",
    "Orientation",
    "PackerOptions",
    "PackerRun",
    "PackingResult",
    "PlaceableRect",
    "RectanglePacker",
    "SpritePackerError",
    "TextureFormat",
    "pack",
    "sprites_packer",
]
