"""
Quadkey encoding of map tiles.

A quadkey addresses a tile at zoom level z with a string of z digits from
{0, 1, 2, 3}. Each digit interleaves one bit of the tile x index (worth 1)
and one bit of the tile y index (worth 2), most significant bit first:

    zoom 1:  0 1      zoom 2:  00 01 10 11
             2 3               02 03 12 13
                               20 21 30 31
                               22 23 32 33

A key is therefore a prefix of every key of the tiles it contains. The
empty key (zoom 0) denotes the whole map.

see also: https://learn.microsoft.com/en-us/bingmaps/articles/bing-maps-tile-system
"""

from __future__ import annotations
from dataclasses import dataclass
import re
from typing import List, Tuple, Union

from . import neighbors
from .projection import MIN_ZOOM, MAX_ZOOM
from .tiles import TileXY, lat_lon_to_tile, tile_to_quadkey


# 0..23 digits out of 0,1,2,3 nothing else
_QUADKEY_RE = re.compile(r"[0123]{0,%d}" % MAX_ZOOM)


def check_quadkey(raw: str) -> bool:
    """
    Check a raw quadkey string for validity.

    The empty string counts as valid (it is the whole map).
    """
    return isinstance(raw, str) and _QUADKEY_RE.fullmatch(raw) is not None


def zoom_of(quadkey: str) -> int:
    """Zoom level of a quadkey, i.e. its number of digits."""
    return len(quadkey)


def truncate(quadkey: str, zoom: int) -> str:
    """
    Reduce a quadkey to a coarser zoom level.

    Args:
        quadkey: A quadkey
        zoom: Target zoom level

    Returns:
        The first zoom digits; the key unchanged if it is not finer than
        zoom (a key cannot be refined by truncation); "" for zoom < 1
    """
    if len(quadkey) <= zoom:
        return quadkey
    if zoom < 1:
        return ""
    return quadkey[:zoom]


def quadkey_to_tile(quadkey: str) -> TileXY:
    """
    Decode a quadkey into its tile index.

    Args:
        quadkey: A quadkey string; its length is the zoom level

    Returns:
        TileXY at zoom len(quadkey)

    Raises:
        ValueError: If the key contains anything but the digits 0..3
    """
    tile_x = 0
    tile_y = 0
    zoom = len(quadkey)

    for i in range(zoom, 0, -1):
        mask = 1 << (i - 1)
        digit = quadkey[zoom - i]
        if digit == "0":
            pass
        elif digit == "1":
            tile_x |= mask
        elif digit == "2":
            tile_y |= mask
        elif digit == "3":
            tile_x |= mask
            tile_y |= mask
        else:
            raise ValueError(f"Invalid quadkey digit {digit!r} in {quadkey!r}")

    return TileXY(tile_x, tile_y)


def lat_lon_to_quadkey(lat: float, lon: float, zoom: int) -> str:
    """
    Quadkey of the tile containing a coordinate.

    Returns:
        The quadkey string, or "" for a zoom outside MIN_ZOOM..MAX_ZOOM
    """
    if zoom < MIN_ZOOM or zoom > MAX_ZOOM:
        return ""
    tile = lat_lon_to_tile(lat, lon, zoom)
    return tile_to_quadkey(tile.x, tile.y, zoom)


@dataclass(frozen=True)
class Quadkey:
    """
    Immutable quadkey value.

    Constructing from a raw string validates it; keys derived from other
    keys (neighbors, parents, truncation) are valid by construction and skip
    the check. Two keys are equal if their digit strings are equal.
    """
    digits: str = ""

    def __post_init__(self):
        if not check_quadkey(self.digits):
            raise ValueError(f"Invalid quadkey: {self.digits!r}")

    @classmethod
    def _derived(cls, digits: str) -> Quadkey:
        key = object.__new__(cls)
        object.__setattr__(key, "digits", digits)
        return key

    @classmethod
    def empty(cls) -> Quadkey:
        """The empty key (zoom 0, the whole map)."""
        return cls._derived("")

    @classmethod
    def from_lat_lon(cls, lat: float, lon: float, zoom: int) -> Quadkey:
        """Key of the tile containing a coordinate (empty for invalid zoom)."""
        return cls._derived(lat_lon_to_quadkey(lat, lon, zoom))

    @classmethod
    def from_tile(cls, tile: TileXY, zoom: int) -> Quadkey:
        """Key of a tile (empty if zoom or tile are out of range)."""
        return cls._derived(tile_to_quadkey(tile.x, tile.y, zoom))

    def __str__(self) -> str:
        return self.digits

    def __len__(self) -> int:
        return len(self.digits)

    @property
    def zoom(self) -> int:
        return len(self.digits)

    @property
    def is_empty(self) -> bool:
        return not self.digits

    def at_zoom(self, zoom: int) -> Quadkey:
        """This key reduced to a coarser zoom (unchanged if not finer)."""
        return Quadkey._derived(truncate(self.digits, zoom))

    def parent(self) -> Quadkey:
        return Quadkey._derived(neighbors.parent(self.digits))

    def last_digit(self) -> str:
        return neighbors.last_digit(self.digits)

    def children(self) -> List[Quadkey]:
        return [Quadkey._derived(q) for q in neighbors.children(self.digits)]

    def includes(self, other: Quadkey) -> bool:
        """True if other lies within this key (same or finer zoom)."""
        return neighbors.includes(self.digits, other.digits)

    def is_part_of(self, other: Quadkey) -> bool:
        """True if this key lies within other (same or coarser zoom)."""
        return neighbors.is_part_of(self.digits, other.digits)

    def to_tile(self) -> TileXY:
        return quadkey_to_tile(self.digits)

    def center(self) -> Tuple[float, float]:
        """Coordinate (lat, lon) of the center of this key's tile."""
        return self.to_tile().center_lat_lon(self.zoom)

    def left(self) -> Quadkey:
        return Quadkey._derived(neighbors.left(self.digits))

    def right(self) -> Quadkey:
        return Quadkey._derived(neighbors.right(self.digits))

    def above(self) -> Quadkey:
        return Quadkey._derived(neighbors.above(self.digits))

    def below(self) -> Quadkey:
        return Quadkey._derived(neighbors.below(self.digits))

    def around(self) -> List[Quadkey]:
        return [Quadkey._derived(q) for q in neighbors.around(self.digits)]

    def around9(self) -> List[Quadkey]:
        return [Quadkey._derived(q) for q in neighbors.around9(self.digits)]

    def around49ex(self) -> List[Quadkey]:
        return [Quadkey._derived(q) for q in neighbors.around49ex(self.digits)]


QuadkeyLike = Union[Quadkey, str]


def as_quadkey(value: QuadkeyLike) -> Quadkey:
    """Coerce a raw string into a validated Quadkey; keys pass through."""
    if isinstance(value, Quadkey):
        return value
    return Quadkey(value)
