"""Exceptions raised by the sprite packer."""
from typing import Optional


class SpritePackerError(Exception):
    """Base class for every error the packer raises."""


class ConfigurationError(SpritePackerError):
    """The run cannot start (or cannot continue) with the given settings."""


class TextureFormatNotSupportedError(ConfigurationError):
    pass


class InvalidDimensionsError(ConfigurationError):
    pass


class InputDirectoryError(ConfigurationError):
    pass


class EmptyInputError(ConfigurationError):
    pass


class DuplicateSpriteError(ConfigurationError):
    pass


class RectTooLargeError(ConfigurationError):
    """A single sprite is bigger than an empty bin."""

    def __init__(self, width: int, height: int, max_width: int, max_height: int,
                 capacity_width: Optional[int] = None, capacity_height: Optional[int] = None):
        if capacity_width is None:
            capacity_width = max_width
        if capacity_height is None:
            capacity_height = max_height
        message = f"Rectangle too large maxWidth: {max_width} maxHeight: {max_height}"
        if (capacity_width, capacity_height) != (max_width, max_height):
            message += f" (usable atlas size {capacity_width}×{capacity_height})"
        super().__init__(f"{message} Rect width: {width}, Rect height: {height}")
        self.width = width
        self.height = height
        self.max_width = max_width
        self.max_height = max_height
        self.capacity_width = capacity_width
        self.capacity_height = capacity_height


class PackingError(SpritePackerError):
    """Internal packer invariant broken (never expected in a correct build)."""


class CollaboratorError(SpritePackerError):
    """An image operation or the external compression tool failed."""


class ImageDecodeError(CollaboratorError):
    pass


class ImageEncodeError(CollaboratorError):
    pass


class ManifestWriteError(CollaboratorError):
    pass


class ImageRotateError(CollaboratorError):
    pass


class CompressionError(CollaboratorError):
    pass


class UnsupportedPlatformError(CompressionError):
    """No basisu build is mapped for this (operating system, architecture)."""


class CompressionSpawnError(CompressionError):
    """The compression tool could not be started."""


class CompressionTimeoutError(CompressionError):
    pass


class CompressionFailedError(CompressionError):
    """The compression tool ran and exited with a non-zero status."""

    def __init__(self, returncode: int, stderr: Optional[str] = None):
        message = f"Error while compressing texture in basis (exit code {returncode})"
        if stderr:
            message += f": {stderr.strip()[:200]}"
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
