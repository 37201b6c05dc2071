"""
Quadkey algebra on digit strings.

Every function here works on the quadkey digits alone and never goes back
to tile or pixel coordinates. Moving to a neighbor changes the last digit
and, when the move leaves the parent cell, carries or borrows into the
parent recursively:

    last | left          | right          | above          | below
    -----+---------------+----------------+----------------+---------------
     0   | left(p) + 1   | p + 1          | above(p) + 2   | p + 2
     1   | p + 0         | right(p) + 0   | above(p) + 3   | p + 3
     2   | left(p) + 3   | p + 3          | p + 0          | below(p) + 0
     3   | p + 2         | right(p) + 2   | p + 1          | below(p) + 1

where p is the parent (the key without its last digit). The recursion ends
at the empty key (the whole map), so moving off one edge of the map wraps
around to the opposite edge.

Inputs are assumed to be valid; validation happens in quadkey.Quadkey.
"""

from typing import List

from .projection import MIN_ZOOM, MAX_ZOOM, lat_lon_to_pixel
from .tiles import TileQuadrant, pixel_to_tile, quadrant_of_pixel


def parent(quadkey: str) -> str:
    """
    Quadkey one zoom level coarser.

    Returns the empty key (whole map) for keys at zoom 1 or 0.
    """
    if len(quadkey) < 2:
        return ""
    return quadkey[:-1]


def last_digit(quadkey: str) -> str:
    """The last digit of a quadkey, or "" for the empty key."""
    return quadkey[-1:]


def children(quadkey: str) -> List[str]:
    """The four quadkeys one zoom level finer, in digit order."""
    return [quadkey + d for d in "0123"]


def left(quadkey: str) -> str:
    """Quadkey of the cell to the left (west), wrapping at the map border."""
    if not quadkey:
        return ""

    last = quadkey[-1]
    high = parent(quadkey)
    if last == "0":
        return left(high) + "1"
    elif last == "1":
        return high + "0"
    elif last == "2":
        return left(high) + "3"
    else:
        return high + "2"


def right(quadkey: str) -> str:
    """Quadkey of the cell to the right (east), wrapping at the map border."""
    if not quadkey:
        return ""

    last = quadkey[-1]
    high = parent(quadkey)
    if last == "0":
        return high + "1"
    elif last == "1":
        return right(high) + "0"
    elif last == "2":
        return high + "3"
    else:
        return right(high) + "2"


def above(quadkey: str) -> str:
    """Quadkey of the cell above (north), wrapping at the map border."""
    if not quadkey:
        return ""

    last = quadkey[-1]
    high = parent(quadkey)
    if last == "0":
        return above(high) + "2"
    elif last == "1":
        return above(high) + "3"
    elif last == "2":
        return high + "0"
    else:
        return high + "1"


def below(quadkey: str) -> str:
    """Quadkey of the cell below (south), wrapping at the map border."""
    if not quadkey:
        return ""

    last = quadkey[-1]
    high = parent(quadkey)
    if last == "0":
        return high + "2"
    elif last == "1":
        return high + "3"
    elif last == "2":
        return below(high) + "0"
    else:
        return below(high) + "1"


def includes(this: str, other: str) -> bool:
    """
    True if other lies within this.

    Implies that other is at the same or a finer zoom level.
    """
    if len(other) < len(this):
        return False
    return other.startswith(this)


def is_part_of(this: str, other: str) -> bool:
    """
    True if this lies within other.

    Implies that other is at the same or a coarser zoom level.
    """
    return includes(other, this)


def around(quadkey: str) -> List[str]:
    """
    The key and its three closest neighbors, assuming the key is the
    bottom right cell of a 2x2 block.

    Returns:
        [self, left, left-above, above]
    """
    me = quadkey
    lft = left(me)
    return [me, lft, above(lft), above(me)]


def around4(lat: float, lon: float, zoom: int) -> List[str]:
    """
    The cell containing a coordinate and the three neighbors closest to it.

    Which neighbors are returned depends on the quadrant of its tile the
    coordinate falls into, so the four cells always surround the point.

    Returns:
        [self, side, diagonal, vertical] or [] for an invalid zoom
    """
    if zoom < MIN_ZOOM or zoom > MAX_ZOOM:
        return []

    x, y = lat_lon_to_pixel(lat, lon, zoom)
    me = pixel_to_tile(x, y).quadkey(zoom)
    quadrant = quadrant_of_pixel(x, y)

    if quadrant == TileQuadrant.LEFT_TOP:
        side = left(me)
        return [me, side, above(side), above(me)]
    elif quadrant == TileQuadrant.RIGHT_TOP:
        side = right(me)
        return [me, side, above(side), above(me)]
    elif quadrant == TileQuadrant.RIGHT_BOTTOM:
        side = right(me)
        return [me, side, below(side), below(me)]
    else:
        side = left(me)
        return [me, side, below(side), below(me)]


def around9(quadkey: str) -> List[str]:
    """
    The key and its 8 surrounding cells.

    The key itself comes first, followed by its neighbors clockwise,
    starting with the left one:
        [self, left, left-up, up, right-up, right, right-down, down, left-down]
    """
    ret = [quadkey]
    ret.append(left(ret[0]))
    ret.append(above(ret[1]))
    ret.append(right(ret[2]))
    ret.append(right(ret[3]))
    ret.append(below(ret[4]))
    ret.append(below(ret[5]))
    ret.append(left(ret[6]))
    ret.append(left(ret[7]))
    return ret


def around9_at(lat: float, lon: float, zoom: int) -> List[str]:
    """around9() of the cell containing a coordinate, [] for an invalid zoom."""
    if zoom < MIN_ZOOM or zoom > MAX_ZOOM:
        return []
    x, y = lat_lon_to_pixel(lat, lon, zoom)
    return around9(pixel_to_tile(x, y).quadkey(zoom))


def around49ex(quadkey: str) -> List[str]:
    """
    Coarse cover of a 7x7 block of cells centered on the key.

    Looking up items for a 7x7 tile map would need 49 queries. Instead this
    goes one zoom level out, takes the 3x3 block around the parent and
    extends it on the two sides the key is closest to, giving 16 cells at
    zoom - 1. The result covers an 8x8 block at the key's own zoom, i.e.
    15 cells more than needed, in exchange for 33 fewer lookups.

    Returns:
        16 quadkeys at zoom - 1; the parent comes first
    """
    ret = around9(parent(quadkey))

    last = last_digit(quadkey)
    if last == "0":
        # extend left and above
        ret.append(left(ret[8]))
        ret.append(above(ret[9]))
        ret.append(above(ret[10]))
        ret.append(above(ret[11]))
        ret.append(right(ret[12]))
        ret.append(right(ret[13]))
        ret.append(right(ret[14]))
    elif last == "1":
        # extend right and above
        ret.append(right(ret[6]))
        ret.append(above(ret[9]))
        ret.append(above(ret[10]))
        ret.append(above(ret[11]))
        ret.append(left(ret[12]))
        ret.append(left(ret[13]))
        ret.append(left(ret[14]))
    elif last == "2":
        # extend left and below
        ret.append(left(ret[2]))
        ret.append(below(ret[9]))
        ret.append(below(ret[10]))
        ret.append(below(ret[11]))
        ret.append(right(ret[12]))
        ret.append(right(ret[13]))
        ret.append(right(ret[14]))
    elif last == "3":
        # extend right and below
        ret.append(right(ret[4]))
        ret.append(below(ret[9]))
        ret.append(below(ret[10]))
        ret.append(below(ret[11]))
        ret.append(left(ret[12]))
        ret.append(left(ret[13]))
        ret.append(left(ret[14]))

    return ret
