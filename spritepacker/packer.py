"""Multi-bin rectangle packing: best short side fit with guillotine splits."""
import enum
import logging
from typing import Iterable, Iterator, List, Optional, Tuple

from .errors import PackingError, RectTooLargeError

logger = logging.getLogger(__name__)


class Orientation(enum.Enum):
    """How a sprite sits in the atlas."""
    UPRIGHT = 0
    ROTATED = 1  # turned 90 degrees; never chosen by the packer itself


class Rectangle:
    """Axis-aligned rectangle; the packer uses it for free regions."""
    def __init__(self, x: int, y: int, width: int, height: int):
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    def __repr__(self):
        return f"Rectangle({self.width}×{self.height} at ({self.x},{self.y}))"

    def __eq__(self, other):
        if not isinstance(other, Rectangle):
            return NotImplemented
        return (self.x, self.y, self.width, self.height) == (other.x, other.y, other.width, other.height)

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def intersects(self, other: "Rectangle") -> bool:
        """Check if this rectangle intersects with another."""
        return not (
            self.right <= other.x or
            self.bottom <= other.y or
            self.x >= other.right or
            self.y >= other.bottom
        )

    def contains(self, other: "Rectangle") -> bool:
        """Check if `other` lies entirely inside this rectangle."""
        return (
            other.x >= self.x and
            other.y >= self.y and
            other.right <= self.right and
            other.bottom <= self.bottom
        )


class Placement:
    """Where the packer put a rectangle."""
    def __init__(self, x: int = 0, y: int = 0, orientation: Orientation = Orientation.UPRIGHT):
        self.x = x
        self.y = y
        self.orientation = orientation

    def __repr__(self):
        return f"Placement(({self.x},{self.y}) {self.orientation.name.lower()})"

    @property
    def rotated(self) -> bool:
        return self.orientation is Orientation.ROTATED


class PlaceableRect:
    """
    A sprite-sized rectangle waiting to be packed.
    `source` is an opaque back-reference (a SourceImage in the pipeline) the
    packer carries along untouched.
    """
    def __init__(self, width: int, height: int, source=None):
        self.width = width
        self.height = height
        self.source = source
        self.placement = Placement()

    def __repr__(self):
        name = getattr(self.source, "name", "")
        return f"PlaceableRect({self.width}×{self.height} {self.placement!r} - {name})"

    @classmethod
    def from_source(cls, source) -> "PlaceableRect":
        """Size is whatever the source's pixel buffer is (trimmed or not)."""
        return cls(source.width, source.height, source)

    @property
    def x(self) -> int:
        return self.placement.x

    @property
    def y(self) -> int:
        return self.placement.y

    @property
    def rotated(self) -> bool:
        return self.placement.rotated

    def bounds(self) -> Rectangle:
        """The area this rect occupies in its bin."""
        return Rectangle(self.x, self.y, self.width, self.height)


def next_power_of_two(n: int) -> int:
    """Return the next power of two greater than or equal to n."""
    if n <= 0:
        return 1
    return 1 << (n - 1).bit_length()


def previous_power_of_two(n: int) -> int:
    """Return the largest power of two less than or equal to n (n >= 1)."""
    return 1 << (n.bit_length() - 1)


class Bin:
    """
    Packing state of one atlas.

    `free_rects` is owned by the bin and rebuilt on every placement, never
    edited in place. The split is a plain guillotine cut with no MaxRects
    merging or pruning, so free space fragments as the bin fills.
    """

    def __init__(self, capacity_width: int, capacity_height: int, padding: int = 0):
        self.capacity_width = capacity_width
        self.capacity_height = capacity_height
        self.padding = padding
        self.free_rects: List[Rectangle] = [Rectangle(0, 0, capacity_width, capacity_height)]
        self.rects: List[PlaceableRect] = []
        # Used size, always a power of two once something is placed
        self.width = 0
        self.height = 0

    def __repr__(self):
        return f"Bin({self.width}×{self.height}, {len(self.rects)} rects)"

    def _footprint(self, free_rect: Rectangle, width: int, height: int) -> Tuple[int, int]:
        """Space reserved for a rect: its size plus padding, cut off only at the bin edge."""
        return (min(width + self.padding, self.capacity_width - free_rect.x),
                min(height + self.padding, self.capacity_height - free_rect.y))

    def _score(self, free_rect: Rectangle, width: int, height: int) -> Optional[int]:
        """Best short side fit score, or None if the padded rect does not fit."""
        if free_rect.width < width or free_rect.height < height:
            return None
        used_width, used_height = self._footprint(free_rect, width, height)
        if free_rect.width < used_width or free_rect.height < used_height:
            return None
        return min(free_rect.width - used_width, free_rect.height - used_height)

    def find_best_free_rect(self, width: int, height: int) -> Optional[int]:
        """Index of the free rectangle with the lowest score; the first one wins ties."""
        best_score = None
        best_index = None
        for index, free_rect in enumerate(self.free_rects):
            score = self._score(free_rect, width, height)
            if score is not None and (best_score is None or score < best_score):
                best_score = score
                best_index = index
        return best_index

    def _split(self, free_rect: Rectangle, used_width: int, used_height: int) -> List[Rectangle]:
        """Guillotine split: right remainder first, then bottom remainder."""
        remainders = []
        if free_rect.width > used_width:
            remainders.append(Rectangle(free_rect.x + used_width, free_rect.y,
                                        free_rect.width - used_width, used_height))
        if free_rect.height > used_height:
            remainders.append(Rectangle(free_rect.x, free_rect.y + used_height,
                                        free_rect.width, free_rect.height - used_height))
        return remainders

    def try_add(self, rect: PlaceableRect) -> bool:
        """
        Place `rect` if it fits. Either everything (free list, size, rect
        placement) is updated or nothing is.
        """
        index = self.find_best_free_rect(rect.width, rect.height)
        if index is None:
            return False
        free_rect = self.free_rects[index]

        new_width = next_power_of_two(max(self.width, free_rect.x + rect.width))
        new_height = next_power_of_two(max(self.height, free_rect.y + rect.height))
        if new_width > self.capacity_width or new_height > self.capacity_height:
            return False

        used_width, used_height = self._footprint(free_rect, rect.width, rect.height)
        self.free_rects = (self.free_rects[:index] + self.free_rects[index + 1:] +
                           self._split(free_rect, used_width, used_height))

        # Geometry is never swapped: the packer only produces upright placements
        rect.placement = Placement(free_rect.x, free_rect.y, Orientation.UPRIGHT)
        self.rects.append(rect)
        self.width = new_width
        self.height = new_height
        return True

    def used_area(self) -> int:
        return sum(rect.width * rect.height for rect in self.rects)


class PackingResult:
    """The ordered bins of one packing run."""
    def __init__(self, bins: List[Bin]):
        self.bins = bins

    def __iter__(self) -> Iterator[Bin]:
        return iter(self.bins)

    def __len__(self) -> int:
        return len(self.bins)

    def __getitem__(self, index: int) -> Bin:
        return self.bins[index]

    @property
    def efficiency(self) -> float:
        """Percentage of atlas pixels covered by sprites."""
        total_pixels = sum(b.width * b.height for b in self.bins)
        sprite_pixels = sum(b.used_area() for b in self.bins)
        return (sprite_pixels / total_pixels) * 100 if total_pixels > 0 else 0


def sort_rects(rects: Iterable[PlaceableRect]) -> List[PlaceableRect]:
    """Longest side first; equal sides keep their input order."""
    return sorted(rects, key=lambda r: max(r.width, r.height), reverse=True)


class RectanglePacker:
    """Packs rectangles into as many power-of-two bins as needed."""

    def __init__(self, max_width: int, max_height: int, padding: int = 0):
        if max_width < 1 or max_height < 1:
            raise ValueError("Bin size must be positive")
        self.max_width = max_width
        self.max_height = max_height
        self.padding = max(padding, 0)
        # Bins only ever report power-of-two sizes, so that is all the room they have
        self.capacity_width = previous_power_of_two(max_width)
        self.capacity_height = previous_power_of_two(max_height)
        if (self.capacity_width, self.capacity_height) != (max_width, max_height):
            logger.warning("Maximum atlas size %d×%d is not a power of two; atlases are limited to %d×%d",
                           max_width, max_height, self.capacity_width, self.capacity_height)

    def _new_bin(self) -> Bin:
        return Bin(self.capacity_width, self.capacity_height, self.padding)

    def check_fits(self, rects: Iterable[PlaceableRect]) -> None:
        """Raise if any single rectangle can never fit an empty bin."""
        for rect in rects:
            if rect.width > self.capacity_width or rect.height > self.capacity_height:
                raise RectTooLargeError(rect.width, rect.height, self.max_width, self.max_height,
                                        self.capacity_width, self.capacity_height)

    def pack(self, rects: Iterable[PlaceableRect]) -> PackingResult:
        """Assign every rect a position in some bin; returns the bins in creation order."""
        ordered = sort_rects(rects)
        self.check_fits(ordered)

        logger.info("Packing %d sprites", len(ordered))
        logger.debug("Total sprite area: %d pixels", sum(r.width * r.height for r in ordered))

        bins: List[Bin] = []
        for rect in ordered:
            if any(b.try_add(rect) for b in bins):
                continue

            # No space available in current bins, create a new one
            new_bin = self._new_bin()
            if not new_bin.try_add(rect):
                raise PackingError(f"{rect!r} does not fit an empty bin")
            bins.append(new_bin)
            logger.debug("Opened bin %d for %r", len(bins) - 1, rect)

        return PackingResult(bins)


def pack(rects: Iterable[PlaceableRect], max_width: int, max_height: int, padding: int = 0) -> PackingResult:
    return RectanglePacker(max_width, max_height, padding).pack(rects)
