"""
Tile grid on top of the Mercator raster.

The raster is cut into square tiles of 256x256 pixels. A tile is addressed
by integer (x, y) indices at a zoom level, with (0, 0) in the north west
corner of the map.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .projection import (
    MAX_ZOOM,
    MIN_ZOOM,
    TILE_SIZE,
    lat_lon_to_pixel,
    map_size_tiles,
    pixel_to_lat_lon,
    resolution_m_per_tile,
)


class TileQuadrant(Enum):
    """Quadrant of a tile a pixel falls into."""

    LEFT_TOP = 0
    RIGHT_TOP = 1
    RIGHT_BOTTOM = 2
    LEFT_BOTTOM = 3


@dataclass(frozen=True)
class TileXY:
    """
    Integer tile index on the map grid.

    Attributes are not checked against a zoom level; use wrap() to bring
    an offset tile back onto the grid.
    """
    x: int
    y: int

    def wrap(self, zoom: int) -> TileXY:
        """Return this tile wrapped onto the grid of the given zoom level."""
        dim = map_size_tiles(zoom)
        return TileXY(self.x % dim, self.y % dim)

    def offset(self, dx: int, dy: int, zoom: int) -> TileXY:
        """Return the tile shifted by (dx, dy), wrapping at the map border."""
        return TileXY(self.x + dx, self.y + dy).wrap(zoom)

    @property
    def left_top_pixel(self) -> Tuple[int, int]:
        return self.x * TILE_SIZE, self.y * TILE_SIZE

    @property
    def right_top_pixel(self) -> Tuple[int, int]:
        x, y = self.left_top_pixel
        return x + TILE_SIZE, y

    @property
    def right_bottom_pixel(self) -> Tuple[int, int]:
        x, y = self.left_top_pixel
        return x + TILE_SIZE, y + TILE_SIZE

    @property
    def left_bottom_pixel(self) -> Tuple[int, int]:
        x, y = self.left_top_pixel
        return x, y + TILE_SIZE

    @property
    def center_pixel(self) -> Tuple[int, int]:
        x, y = self.left_top_pixel
        return x + TILE_SIZE // 2, y + TILE_SIZE // 2

    def left_top_lat_lon(self, zoom: int) -> Tuple[float, float]:
        """Coordinate of the north west corner of this tile."""
        return pixel_to_lat_lon(*self.left_top_pixel, zoom)

    def center_lat_lon(self, zoom: int) -> Tuple[float, float]:
        """Coordinate of the center of this tile."""
        return pixel_to_lat_lon(*self.center_pixel, zoom)

    def resolution_m(self, zoom: int) -> float:
        """Tile size in meters, measured at the tile center."""
        lat, _ = self.center_lat_lon(zoom)
        return resolution_m_per_tile(zoom, lat)

    def size_m(self, zoom: int) -> Tuple[float, float]:
        """Tile (width, height) in meters, measured at the tile center."""
        res = self.resolution_m(zoom)
        return res, res

    def quadkey(self, zoom: int) -> str:
        """Quadkey string of this tile at a zoom level ("" if invalid)."""
        return tile_to_quadkey(self.x, self.y, zoom)


_CORNERS = {
    "left_top": "left_top_pixel",
    "right_top": "right_top_pixel",
    "right_bottom": "right_bottom_pixel",
    "left_bottom": "left_bottom_pixel",
    "center": "center_pixel",
}


def pixel_to_tile(x: int, y: int) -> TileXY:
    """
    Find the tile enclosing a pixel.

    Uses floor division, not rounding: a pixel belongs to the tile whose
    north west corner is at or before it on both axes.
    """
    return TileXY(x // TILE_SIZE, y // TILE_SIZE)


def tile_to_pixel(tile: TileXY, corner: str = "left_top") -> Tuple[int, int]:
    """
    Pixel coordinates of a tile corner.

    Args:
        tile: The tile
        corner: One of left_top, right_top, right_bottom, left_bottom, center

    Returns:
        Tuple of (x, y) pixel coordinates
    """
    try:
        attr = _CORNERS[corner]
    except KeyError:
        raise ValueError(
            f"Unknown tile corner {corner!r}, expected one of {sorted(_CORNERS)}"
        ) from None
    return getattr(tile, attr)


def quadrant_of_pixel(x: int, y: int) -> TileQuadrant:
    """
    Determine which quadrant of its tile a pixel lies in.

    Pixels on the tile center lines count as left and top respectively.
    """
    cx, cy = pixel_to_tile(x, y).center_pixel

    if x <= cx:  # Left half
        if y <= cy:
            return TileQuadrant.LEFT_TOP
        else:
            return TileQuadrant.LEFT_BOTTOM
    else:  # Right half
        if y <= cy:
            return TileQuadrant.RIGHT_TOP
        else:
            return TileQuadrant.RIGHT_BOTTOM


def lat_lon_to_tile(lat: float, lon: float, zoom: int) -> TileXY:
    """Tile containing a coordinate at a zoom level."""
    return pixel_to_tile(*lat_lon_to_pixel(lat, lon, zoom))


def quadrant_of_lat_lon(lat: float, lon: float, zoom: int) -> TileQuadrant:
    """Quadrant of its tile a coordinate falls into at a zoom level."""
    return quadrant_of_pixel(*lat_lon_to_pixel(lat, lon, zoom))


def tile_to_quadkey(tile_x: int, tile_y: int, zoom: int) -> str:
    """
    Encode a tile index as a quadkey.

    Each digit interleaves one bit of tile_x (worth 1) and one bit of
    tile_y (worth 2), most significant bit first.

    Args:
        tile_x: Tile column
        tile_y: Tile row
        zoom: Zoom level (MIN_ZOOM..MAX_ZOOM)

    Returns:
        The quadkey string, or "" if zoom or tile index are out of range
    """
    if zoom < MIN_ZOOM or zoom > MAX_ZOOM:
        return ""
    dim = map_size_tiles(zoom)
    if not (0 <= tile_x < dim and 0 <= tile_y < dim):
        return ""

    digits = []
    for i in range(zoom, 0, -1):
        mask = 1 << (i - 1)
        digit = 0
        if tile_x & mask:
            digit += 1
        if tile_y & mask:
            digit += 2
        digits.append("0123"[digit])
    return "".join(digits)
