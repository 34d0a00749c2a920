"""
Basis Universal compression through the external `basisu` tool.

The tool is a separate executable per (operating system, architecture),
looked up in a fixed table under a binary root directory.
"""
import enum
import logging
import os
import platform
import subprocess
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import (
    CompressionFailedError,
    CompressionSpawnError,
    CompressionTimeoutError,
    ConfigurationError,
    UnsupportedPlatformError,
)

logger = logging.getLogger(__name__)

BASISU_ROOT_ENV = "SPRITES_PACKER_BASISU_ROOT"
DEFAULT_BASISU_ROOT = os.path.join(os.path.dirname(os.path.abspath(__file__)), "bin")

DEFAULT_QUALITY = 255
DEFAULT_COMPRESSION_LEVEL = 1
DEFAULT_TIMEOUT = 600  # seconds


class OperatingSystem(enum.Enum):
    LINUX = "linux"
    DARWIN = "darwin"
    WINDOWS = "win"


class Architecture(enum.Enum):
    X64 = "x64"
    ARM64 = "arm64"


BASISU_BINARIES: Dict[Tuple[OperatingSystem, Architecture], str] = {
    (OperatingSystem.DARWIN, Architecture.ARM64): "darwin/arm64/basisu",
    (OperatingSystem.DARWIN, Architecture.X64): "darwin/x64/basisu",
    (OperatingSystem.LINUX, Architecture.ARM64): "linux/arm64/basisu",
    (OperatingSystem.LINUX, Architecture.X64): "linux/x64/basisu",
    (OperatingSystem.WINDOWS, Architecture.X64): "win/x64/basisu.exe",
}

_MACHINE_ALIASES = {
    "x86_64": Architecture.X64,
    "amd64": Architecture.X64,
    "x64": Architecture.X64,
    "arm64": Architecture.ARM64,
    "aarch64": Architecture.ARM64,
}


def current_platform() -> Tuple[OperatingSystem, Architecture]:
    """Map the running interpreter's platform onto the lookup table keys."""
    if sys.platform.startswith("linux"):
        system = OperatingSystem.LINUX
    elif sys.platform == "darwin":
        system = OperatingSystem.DARWIN
    elif sys.platform in ("win32", "cygwin"):
        system = OperatingSystem.WINDOWS
    else:
        raise UnsupportedPlatformError(f"Unsupported platform: {sys.platform}")

    machine = platform.machine().lower()
    if machine not in _MACHINE_ALIASES:
        raise UnsupportedPlatformError(f"Unsupported architecture: {machine}")
    return system, _MACHINE_ALIASES[machine]


def basisu_executable(system: OperatingSystem, arch: Architecture, root: Optional[str] = None) -> str:
    """Full path of the basisu build for a platform."""
    relative = BASISU_BINARIES.get((system, arch))
    if relative is None:
        raise UnsupportedPlatformError(f"No basisu executable for {system.value}-{arch.value}")
    root = root or os.environ.get(BASISU_ROOT_ENV) or DEFAULT_BASISU_ROOT
    return os.path.join(root, *relative.split("/"))


@dataclass
class BasisOptions:
    """Settings for one basisu run."""
    input_path: str
    output_path: str
    quality: int = DEFAULT_QUALITY
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    linear: bool = False  # sRGB unless set
    timeout: float = DEFAULT_TIMEOUT

    def arguments(self) -> List[str]:
        if not 1 <= self.quality <= 255:
            raise ConfigurationError(f"Basis quality must be in 1-255, got {self.quality}")
        if not 0 <= self.compression_level <= 6:
            raise ConfigurationError(f"Basis compression level must be in 0-6, got {self.compression_level}")

        args = [
            "-file", self.input_path,
            "-output_file", self.output_path,
            "-q", str(self.quality),
            "-comp_level", str(self.compression_level),
        ]
        if self.linear:
            args.append("-linear")
        return args


def basis_compress(options: BasisOptions, executable: Optional[str] = None) -> None:
    """
    Run basisu on a lossless intermediate.
    The caller owns the input file and removes it whatever happens here.
    """
    args = options.arguments()
    if executable is None:
        system, arch = current_platform()
        executable = basisu_executable(system, arch)

    if os.name == "posix":
        try:
            os.chmod(executable, 0o755)
        except OSError as e:
            raise CompressionSpawnError(f"Cannot use basisu executable {executable}: {e}") from e

    logger.debug("Running %s %s", executable, " ".join(args))
    try:
        result = subprocess.run(
            [executable] + args,
            capture_output=True,
            text=True,
            timeout=options.timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise CompressionTimeoutError(
            f"basisu did not finish within {options.timeout} seconds"
        ) from e
    except OSError as e:
        raise CompressionSpawnError(f"Error while compressing texture in basis: {e}") from e

    if result.returncode != 0:
        raise CompressionFailedError(result.returncode, result.stderr)

    logger.info("Compression completed: %s", os.path.basename(options.input_path))
