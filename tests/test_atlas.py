import pytest
from PIL import Image

from spritepacker.atlas import AtlasManifest, assemble, assemble_bin, atlas_basename
from spritepacker.config import TextureFormat
from spritepacker.errors import DuplicateSpriteError
from spritepacker.images import SourceImage, trim_source
from spritepacker.packer import Bin, Orientation, Placement, PlaceableRect, pack

from .conftest import BLUE, CLEAR, RED


def placed(name, size, color=RED):
    return PlaceableRect.from_source(SourceImage(name, Image.new("RGBA", size, color)))


def test_atlas_basename():
    assert atlas_basename("symbols", 0) == "symbols_atlas-0"
    assert atlas_basename("symbols", 12) == "symbols_atlas-12"


def test_untrimmed_frame_matches_original_size():
    rect = placed("coin", (30, 20))
    packed_bin = Bin(128, 128)
    packed_bin.try_add(placed("big", (60, 60)))
    packed_bin.try_add(rect)

    atlas = assemble_bin(packed_bin, 0, "items", TextureFormat.PNG)
    entry = atlas.manifest.frames["coin"]
    assert entry == {
        "frame": {"x": rect.x, "y": rect.y, "w": 30, "h": 20},
        "rotated": False,
        "trimmed": False,
        "spriteSourceSize": {"x": 0, "y": 0, "w": 30, "h": 20},
        "sourceSize": {"w": 30, "h": 20},
    }


def test_trimmed_frame_records_source_size():
    img = Image.new("RGBA", (40, 30), CLEAR)
    img.paste(Image.new("RGBA", (10, 10), RED), (15, 10))
    rect = PlaceableRect.from_source(trim_source(SourceImage("gem", img)))
    (packed_bin,) = pack([rect], 128, 128)

    entry = assemble_bin(packed_bin, 0, "items", TextureFormat.PNG).manifest.frames["gem"]
    assert entry["frame"] == {"x": 0, "y": 0, "w": 10, "h": 10}
    assert entry["trimmed"] is True
    assert entry["spriteSourceSize"] == {"x": 15, "y": 10, "w": 10, "h": 10}
    assert entry["sourceSize"] == {"w": 40, "h": 30}


def test_manifest_meta_block():
    manifest = AtlasManifest("items_atlas-0.webp", 256, 128)
    assert manifest.to_dict() == {
        "frames": {},
        "meta": {
            "app": "sprites-packer",
            "image": "items_atlas-0.webp",
            "scale": 1,
            "format": "RGBA8888",
            "size": {"w": 256, "h": 128},
        },
    }


def test_manifest_rejects_duplicate_names():
    manifest = AtlasManifest("a.png", 128, 128)
    manifest.add_frame("hero", {})
    with pytest.raises(DuplicateSpriteError):
        manifest.add_frame("hero", {})


def test_assemble_bin_composites_on_transparent_canvas():
    red, blue = placed("red", (100, 60), RED), placed("blue", (20, 20), BLUE)
    (packed_bin,) = pack([red, blue], 256, 256)

    atlas = assemble_bin(packed_bin, 3, "tiles", TextureFormat.PNG)
    assert atlas.name == "tiles_atlas-3"
    assert atlas.manifest.image == "tiles_atlas-3.png"
    assert atlas.image.size == (packed_bin.width, packed_bin.height)
    assert atlas.image.getpixel((red.x, red.y)) == RED
    assert atlas.image.getpixel((blue.x + 19, blue.y + 19)) == BLUE
    assert atlas.image.getpixel((atlas.image.width - 1, atlas.image.height - 1)) == CLEAR
    assert list(atlas.manifest.frames) == ["red", "blue"]


def test_rotated_sprite_is_rotated_before_compositing():
    img = Image.new("RGBA", (20, 10), RED)
    img.paste(Image.new("RGBA", (10, 10), BLUE), (10, 0))
    rect = PlaceableRect.from_source(SourceImage("arrow", img))
    packed_bin = Bin(128, 128)
    packed_bin.try_add(placed("block", (40, 40), CLEAR))
    packed_bin.try_add(rect)
    x, y = rect.x, rect.y
    rect.placement = Placement(x, y, Orientation.ROTATED)

    atlas = assemble_bin(packed_bin, 0, "fx", TextureFormat.PNG)
    assert atlas.image.size == (64, 64)
    assert atlas.image.getpixel((x, y)) == BLUE
    assert atlas.image.getpixel((x, y + 19)) == RED
    entry = atlas.manifest.frames["arrow"]
    assert entry["rotated"] is True
    # placement geometry is reported as packed, not swapped
    assert entry["frame"] == {"x": x, "y": y, "w": 20, "h": 10}


def test_assemble_yields_one_atlas_per_bin():
    rects = [placed(name, (300, 300)) for name in "abc"]
    result = pack(rects, 512, 512)
    atlases = list(assemble(result, "cards", TextureFormat.WEBP))
    assert [a.name for a in atlases] == ["cards_atlas-0", "cards_atlas-1", "cards_atlas-2"]
    assert [list(a.manifest.frames) for a in atlases] == [["a"], ["b"], ["c"]]
    assert all(a.manifest.image.endswith(".webp") for a in atlases)
