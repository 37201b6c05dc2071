"""Tests for quadkey neighbor algebra."""

import itertools

import pytest
from quadlookup.neighbors import (
    above,
    around,
    around4,
    around9,
    around9_at,
    around49ex,
    below,
    children,
    includes,
    is_part_of,
    last_digit,
    left,
    parent,
    right,
)
from quadlookup.projection import TILE_SIZE, pixel_to_lat_lon
from quadlookup.quadkey import quadkey_to_tile, tile_to_quadkey
from quadlookup.tiles import TileXY, lat_lon_to_tile


def shifted(quadkey, dx, dy):
    """Reference neighbor computed through tile indices."""
    zoom = len(quadkey)
    tile = quadkey_to_tile(quadkey).offset(dx, dy, zoom)
    return tile_to_quadkey(tile.x, tile.y, zoom)


def all_keys(zoom):
    return ["".join(digits) for digits in itertools.product("0123", repeat=zoom)]


class TestParent:
    """Tests for parent, last digit and children."""

    def test_parent(self):
        """Test dropping the last digit."""
        assert parent("012") == "01"
        assert parent("0") == ""
        assert parent("") == ""

    def test_last_digit(self):
        """Test the last digit."""
        assert last_digit("012") == "2"
        assert last_digit("") == ""

    def test_children(self):
        """Test the four children in digit order."""
        assert children("2") == ["20", "21", "22", "23"]


class TestSingleNeighbors:
    """Tests for left, right, above and below."""

    def test_zoom_one(self):
        """Test neighbors at zoom 1, including wrap around."""
        assert left("1") == "0"
        assert left("0") == "1"
        assert right("0") == "1"
        assert right("1") == "0"
        assert above("2") == "0"
        assert above("0") == "2"
        assert below("0") == "2"
        assert below("2") == "0"

    def test_carry_into_parent(self):
        """Test moves crossing a parent cell border."""
        assert left("10") == "01"
        assert right("01") == "10"
        assert below("02") == "20"
        assert above("20") == "02"

    def test_empty_key(self):
        """Test the whole map is its own neighbor."""
        assert left("") == ""
        assert right("") == ""
        assert above("") == ""
        assert below("") == ""

    @pytest.mark.parametrize("func,dx,dy", [
        (left, -1, 0),
        (right, 1, 0),
        (above, 0, -1),
        (below, 0, 1),
    ])
    def test_matches_tile_offsets(self, func, dx, dy):
        """Test digit arithmetic against tile index arithmetic."""
        for key in all_keys(3):
            assert func(key) == shifted(key, dx, dy)

    def test_inverses(self):
        """Test opposite moves cancel out."""
        for key in all_keys(3):
            assert left(right(key)) == key
            assert right(left(key)) == key
            assert above(below(key)) == key
            assert below(above(key)) == key

    def test_wrap_at_map_border(self):
        """Test leaving the map re-enters on the opposite side."""
        west = tile_to_quadkey(0, 5, 3)
        assert left(west) == tile_to_quadkey(7, 5, 3)
        north = tile_to_quadkey(4, 0, 3)
        assert above(north) == tile_to_quadkey(4, 7, 3)

    def test_zoom_preserved(self):
        """Test neighbors stay at the same zoom level."""
        key = tile_to_quadkey(1000, 2000, 15)
        for func in (left, right, above, below):
            assert len(func(key)) == 15


class TestContainment:
    """Tests for includes and is_part_of on strings."""

    def test_includes(self):
        """Test prefix containment."""
        assert includes("01", "0123")
        assert includes("01", "01")
        assert includes("", "3")
        assert not includes("0123", "01")
        assert not includes("02", "0123")

    def test_is_part_of(self):
        """Test the reverse relation."""
        assert is_part_of("0123", "01")
        assert not is_part_of("01", "0123")


class TestAround:
    """Tests for the 2x2 neighborhood."""

    def test_around(self):
        """Test the key is treated as bottom right of a 2x2 block."""
        assert around("33") == ["33", "32", "30", "31"]

    def test_around_matches_offsets(self):
        """Test around against tile offsets."""
        key = tile_to_quadkey(5, 6, 4)
        expected = [shifted(key, dx, dy) for dx, dy in [(0, 0), (-1, 0), (-1, -1), (0, -1)]]
        assert around(key) == expected


class TestAround4:
    """Tests for the 2x2 neighborhood of a coordinate."""

    @pytest.mark.parametrize("px,py,offsets", [
        (40, 40, [(0, 0), (-1, 0), (-1, -1), (0, -1)]),
        (200, 40, [(0, 0), (1, 0), (1, -1), (0, -1)]),
        (200, 200, [(0, 0), (1, 0), (1, 1), (0, 1)]),
        (40, 200, [(0, 0), (-1, 0), (-1, 1), (0, 1)]),
    ])
    def test_quadrants(self, px, py, offsets):
        """Test the neighbors follow the quadrant of the point."""
        zoom = 3
        tile = TileXY(3, 3)
        lat, lon = pixel_to_lat_lon(tile.x * TILE_SIZE + px, tile.y * TILE_SIZE + py, zoom)
        key = tile_to_quadkey(tile.x, tile.y, zoom)
        assert around4(lat, lon, zoom) == [shifted(key, dx, dy) for dx, dy in offsets]

    def test_invalid_zoom(self):
        """Test an invalid zoom gives an empty list."""
        assert around4(0.0, 0.0, 0) == []
        assert around4(0.0, 0.0, 24) == []


class TestAround9:
    """Tests for the 3x3 neighborhood."""

    CLOCKWISE = [(0, 0), (-1, 0), (-1, -1), (0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1)]

    def test_order(self):
        """Test self first, then clockwise starting on the left."""
        key = tile_to_quadkey(3, 5, 3)
        assert around9(key) == [shifted(key, dx, dy) for dx, dy in self.CLOCKWISE]

    def test_corner_wraps(self):
        """Test the neighborhood of the north west corner."""
        key = tile_to_quadkey(0, 0, 3)
        result = around9(key)
        assert result == [shifted(key, dx, dy) for dx, dy in self.CLOCKWISE]
        assert tile_to_quadkey(7, 7, 3) in result

    def test_distinct(self):
        """Test all nine keys differ away from tiny zooms."""
        assert len(set(around9(tile_to_quadkey(10, 20, 6)))) == 9

    def test_at_coordinate(self):
        """Test around9 of the cell containing a coordinate."""
        result = around9_at(47.3769, 8.5417, 10)
        assert result[0] == lat_lon_to_tile(47.3769, 8.5417, 10).quadkey(10)
        assert len(result) == 9
        assert around9_at(0.0, 0.0, 30) == []


class TestAround49ex:
    """Tests for the coarse 7x7 cover."""

    # Parent offsets covered for each last digit
    EXTENTS = {
        "0": (range(-2, 2), range(-2, 2)),
        "1": (range(-1, 3), range(-2, 2)),
        "2": (range(-2, 2), range(-1, 3)),
        "3": (range(-1, 3), range(-1, 3)),
    }

    @pytest.mark.parametrize("x,y", [(12, 18), (13, 18), (12, 19), (13, 19)])
    def test_covers_parent_block(self, x, y):
        """Test the 16 keys form the 4x4 parent block on the closer sides."""
        zoom = 5
        key = tile_to_quadkey(x, y, zoom)
        result = around49ex(key)

        assert len(result) == 16
        assert result[0] == parent(key)
        assert all(len(k) == zoom - 1 for k in result)

        xs, ys = self.EXTENTS[key[-1]]
        expected = {shifted(parent(key), dx, dy) for dx in xs for dy in ys}
        assert set(result) == expected

    @pytest.mark.parametrize("x,y", [(12, 18), (13, 18), (12, 19), (13, 19)])
    def test_covers_7x7_block(self, x, y):
        """Test every cell within three steps has its parent in the result."""
        zoom = 5
        key = tile_to_quadkey(x, y, zoom)
        result = set(around49ex(key))
        for dx in range(-3, 4):
            for dy in range(-3, 4):
                assert parent(shifted(key, dx, dy)) in result
