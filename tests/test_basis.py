import os
import subprocess
import sys
from unittest.mock import patch

import pytest

from spritepacker import basis
from spritepacker.basis import (
    BASISU_BINARIES,
    Architecture,
    BasisOptions,
    OperatingSystem,
    basis_compress,
    basisu_executable,
    current_platform,
)
from spritepacker.errors import (
    CompressionError,
    CompressionFailedError,
    CompressionSpawnError,
    CompressionTimeoutError,
    ConfigurationError,
    UnsupportedPlatformError,
)

posix_only = pytest.mark.skipif(os.name != "posix", reason="stub tool is a shebang script")


def write_stub(path, body):
    path.write_text(f"#!{sys.executable}\nimport sys\n{body}\n")
    return str(path)


def test_every_mapped_platform_has_an_executable(tmp_path):
    for (system, arch), relative in BASISU_BINARIES.items():
        path = basisu_executable(system, arch, root=str(tmp_path))
        assert path == os.path.join(str(tmp_path), *relative.split("/"))
    assert basisu_executable(OperatingSystem.WINDOWS, Architecture.X64, root="r").endswith("basisu.exe")


def test_unmapped_platform_is_a_distinct_error():
    with pytest.raises(UnsupportedPlatformError):
        basisu_executable(OperatingSystem.WINDOWS, Architecture.ARM64)


def test_root_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(basis.BASISU_ROOT_ENV, str(tmp_path))
    path = basisu_executable(OperatingSystem.LINUX, Architecture.X64)
    assert path == os.path.join(str(tmp_path), "linux", "x64", "basisu")


@pytest.mark.parametrize("sys_platform, machine, expected", [
    ("linux", "x86_64", (OperatingSystem.LINUX, Architecture.X64)),
    ("linux", "aarch64", (OperatingSystem.LINUX, Architecture.ARM64)),
    ("darwin", "arm64", (OperatingSystem.DARWIN, Architecture.ARM64)),
    ("win32", "AMD64", (OperatingSystem.WINDOWS, Architecture.X64)),
])
def test_current_platform(monkeypatch, sys_platform, machine, expected):
    monkeypatch.setattr(basis.sys, "platform", sys_platform)
    monkeypatch.setattr(basis.platform, "machine", lambda: machine)
    assert current_platform() == expected


@pytest.mark.parametrize("sys_platform, machine", [("sunos5", "x86_64"), ("linux", "mips")])
def test_current_platform_unsupported(monkeypatch, sys_platform, machine):
    monkeypatch.setattr(basis.sys, "platform", sys_platform)
    monkeypatch.setattr(basis.platform, "machine", lambda: machine)
    with pytest.raises(UnsupportedPlatformError):
        current_platform()


def test_arguments():
    assert BasisOptions("in.png", "out.basis").arguments() == [
        "-file", "in.png", "-output_file", "out.basis", "-q", "255", "-comp_level", "1",
    ]
    args = BasisOptions("in.png", "out.basis", quality=128, compression_level=6, linear=True).arguments()
    assert args[-5:] == ["-q", "128", "-comp_level", "6", "-linear"]


@pytest.mark.parametrize("quality, level", [(0, 1), (256, 1), (255, -1), (255, 7)])
def test_arguments_out_of_range(quality, level):
    with pytest.raises(ConfigurationError):
        BasisOptions("in.png", "out.basis", quality=quality, compression_level=level).arguments()


@posix_only
def test_compress_runs_tool(tmp_path):
    tool = write_stub(tmp_path / "basisu", (
        "args = sys.argv[1:]\n"
        "out = args[args.index('-output_file') + 1]\n"
        "open(out, 'w').write(' '.join(args))"
    ))
    out = tmp_path / "atlas.basis"
    basis_compress(BasisOptions(str(tmp_path / "atlas.png"), str(out), linear=True), executable=tool)
    assert out.read_text().endswith("-comp_level 1 -linear")
    assert os.access(tool, os.X_OK)


@posix_only
def test_compress_non_zero_exit(tmp_path):
    tool = write_stub(tmp_path / "basisu", "sys.stderr.write('cannot read input')\nsys.exit(3)")
    with pytest.raises(CompressionFailedError) as excinfo:
        basis_compress(BasisOptions("in.png", "out.basis"), executable=tool)
    assert excinfo.value.returncode == 3
    assert "cannot read input" in excinfo.value.stderr


@posix_only
def test_compress_missing_executable(tmp_path):
    with pytest.raises(CompressionSpawnError):
        basis_compress(BasisOptions("in.png", "out.basis"), executable=str(tmp_path / "missing"))


def test_compress_spawn_failure(tmp_path):
    tool = tmp_path / "basisu"
    tool.write_bytes(b"")
    with patch("spritepacker.basis.subprocess.run", side_effect=PermissionError("denied")):
        with pytest.raises(CompressionSpawnError):
            basis_compress(BasisOptions("in.png", "out.basis"), executable=str(tool))


def test_compress_timeout(tmp_path):
    tool = tmp_path / "basisu"
    tool.write_bytes(b"")
    timeout = subprocess.TimeoutExpired(str(tool), 0.5)
    with patch("spritepacker.basis.subprocess.run", side_effect=timeout) as run:
        with pytest.raises(CompressionTimeoutError):
            basis_compress(BasisOptions("in.png", "out.basis", timeout=0.5), executable=str(tool))
    assert run.call_args.kwargs["timeout"] == 0.5


def test_compress_errors_share_a_base():
    for error in (UnsupportedPlatformError, CompressionSpawnError, CompressionTimeoutError, CompressionFailedError):
        assert issubclass(error, CompressionError)


def test_compress_unsupported_platform_before_spawning(monkeypatch):
    monkeypatch.setattr(basis.sys, "platform", "sunos5")
    with patch("spritepacker.basis.subprocess.run") as run:
        with pytest.raises(UnsupportedPlatformError):
            basis_compress(BasisOptions("in.png", "out.basis"))
    run.assert_not_called()
