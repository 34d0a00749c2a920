import os

import pytest
from PIL import Image

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = (0, 0, 0, 0)


def make_png(path, size, color=RED, box=None):
    """
    Write an RGBA PNG. With `box` = (left, top, width, height) only that
    area is painted and the rest is fully transparent.
    """
    if box is None:
        img = Image.new("RGBA", size, color)
    else:
        img = Image.new("RGBA", size, CLEAR)
        left, top, width, height = box
        img.paste(Image.new("RGBA", (width, height), color), (left, top))
    img.save(path)
    return str(path)


@pytest.fixture
def sprite_dir(tmp_path):
    directory = tmp_path / "sprites"
    directory.mkdir()
    return directory


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "out"


@pytest.fixture
def three_squares(sprite_dir):
    for name in ("a", "b", "c"):
        make_png(sprite_dir / f"{name}.png", (300, 300))
    return sprite_dir


def listdir(path):
    return sorted(os.listdir(path)) if os.path.isdir(path) else []
