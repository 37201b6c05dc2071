"""Tests for the quadkey lookup tree."""

from dataclasses import FrozenInstanceError
import random
import threading

import pytest
from quadlookup.lookup import (
    BranchLevel,
    LeafLevel,
    LockedQuadLookup,
    LookupConfig,
    QuadLookup,
)
from quadlookup.quadkey import Quadkey, tile_to_quadkey


class TestLookupConfig:
    """Tests for configuration clamping."""

    def test_valid_unchanged(self):
        """Test a sane configuration is kept as is."""
        config = LookupConfig(3, 10, 32)
        assert (config.min_zoom, config.max_zoom, config.branch_limit) == (3, 10, 32)

    def test_zoom_clamping(self):
        """Test zooms are clamped to the valid range."""
        config = LookupConfig(0, 30, 100)
        assert config.min_zoom == 1
        assert config.max_zoom == 23

    def test_max_zoom_at_least_min_zoom(self):
        """Test max zoom is raised to the min zoom."""
        config = LookupConfig(5, 3, 10)
        assert config.max_zoom == 5

    def test_branch_limit_clamping(self):
        """Test the branch limit is clamped to max_zoom..4^max_zoom."""
        assert LookupConfig(3, 5, 4).branch_limit == 5
        assert LookupConfig(2, 2, 10 ** 6).branch_limit == 16
        assert LookupConfig(1, 23, 1).branch_limit == 23

    def test_frozen(self):
        """Test the configuration of a built tree cannot be changed."""
        lookup = QuadLookup(3, 5, 8)
        with pytest.raises(FrozenInstanceError):
            lookup.config.max_zoom = 3
        assert lookup.config.max_zoom == 5


class TestAdd:
    """Tests for adding items."""

    def test_rejects_coarse_key(self):
        """Test keys coarser than max zoom are rejected."""
        lookup = QuadLookup(1, 5, 8)
        with pytest.raises(ValueError):
            lookup.add("0123", "x")
        assert lookup.count == 0

    def test_rejects_invalid_key(self):
        """Test malformed keys are rejected."""
        lookup = QuadLookup(1, 2, 8)
        with pytest.raises(ValueError):
            lookup.add("0149", "x")

    def test_rejects_trailing_newline(self):
        """Test a key with a trailing newline is not taken as a digit string."""
        lookup = QuadLookup(1, 5, 8)
        with pytest.raises(ValueError):
            lookup.add("0123\n", "x")
        with pytest.raises(ValueError):
            lookup.get_items_which_are_part_of("0" * 23 + "\n")
        assert lookup.count == 0

    def test_accepts_quadkey_objects(self):
        """Test Quadkey values work like strings."""
        lookup = QuadLookup(1, 3, 8)
        lookup.add(Quadkey("0123"), "a")
        assert lookup.get_item_which_includes("0123") == "a"

    def test_counts(self):
        """Test count, len and max level of a small tree."""
        lookup = QuadLookup(2, 4, 8)
        assert lookup.count == 0
        assert lookup.max_level_reached == 0
        assert lookup.add("0123", 1) == 2
        assert lookup.add("01230", 2) == 2
        assert lookup.count == 2
        assert len(lookup) == 2
        assert lookup.max_level_reached == 2

    def test_leaf_at_max_zoom_never_splits(self):
        """Test a level at max zoom takes any number of items."""
        lookup = QuadLookup(2, 2, 2)
        for i in range(10):
            lookup.add("0123", i)
        assert lookup.root.is_leaf()
        assert lookup.count == 10
        assert lookup.max_level_reached == 2


class TestSplit:
    """Tests for level splitting."""

    KEYS = ["01100", "01101", "01102", "01103", "01110", "01111"]

    def fill(self, keys):
        lookup = QuadLookup(3, 5, 4)
        for key in keys:
            lookup.add(key, key)
        return lookup

    def test_clamped_limit_holds_five(self):
        """Test five items fit the clamped branch limit without a split."""
        lookup = self.fill(self.KEYS[:5])
        assert lookup.config.branch_limit == 5
        assert lookup.root.is_leaf()
        assert lookup.max_level_reached == 3
        assert sorted(lookup.get_items_which_are_part_of("011")) == sorted(self.KEYS[:5])
        assert lookup.get_item_which_includes("01100") == "01100"

    def test_split(self):
        """Test the sixth item splits the root into children at zoom 4."""
        lookup = self.fill(self.KEYS)

        assert isinstance(lookup.root, BranchLevel)
        assert lookup.root.zoom == 3
        assert set(lookup.root.children) == {Quadkey("0110"), Quadkey("0111")}
        for child in lookup.root.children.values():
            assert isinstance(child, LeafLevel)
            assert child.zoom == 4

        assert lookup.max_level_reached == 4
        assert lookup.node_count == 3
        assert lookup.leaf_count == 2
        assert lookup.depth == 1

    def test_queries_after_split(self):
        """Test queries at several zooms after a split."""
        lookup = self.fill(self.KEYS)

        assert sorted(lookup.get_items_which_are_part_of("011")) == sorted(self.KEYS)
        assert sorted(lookup.get_items_which_are_part_of("0")) == sorted(self.KEYS)
        assert sorted(lookup.get_items_which_are_part_of("")) == sorted(self.KEYS)
        assert sorted(lookup.get_items_which_are_part_of("0110")) == sorted(self.KEYS[:4])
        assert lookup.get_items_which_are_part_of("01100") == ["01100"]
        assert lookup.get_items_which_are_part_of("0112") == []
        assert lookup.get_items_which_are_part_of("1") == []

        assert lookup.get_item_which_includes("01100") == "01100"
        assert lookup.get_item_which_includes("0111133") == "01111"
        assert lookup.get_item_which_includes("01120") is None

    def test_split_cascades(self):
        """Test items crowded into one cell split several levels at once."""
        lookup = QuadLookup(1, 4, 4)
        keys = ["00000", "00001", "00002", "00003", "00010"]
        zooms = [lookup.add(key, key) for key in keys]

        assert zooms == [1, 1, 1, 1, 4]
        assert lookup.max_level_reached == 4
        assert lookup.depth == 3
        assert sorted(lookup.get_items_which_are_part_of("0")) == keys
        for key in keys:
            assert lookup.get_item_which_includes(key) == key

    def test_deep_leaf_keeps_growing(self):
        """Test a leaf at max zoom accepts items beyond the branch limit."""
        lookup = QuadLookup(1, 4, 4)
        for i in range(20):
            lookup.add("00000", i)
        assert lookup.count == 20
        assert lookup.max_level_reached == 4
        assert lookup.get_items_which_are_part_of("0000") == list(range(20))


class TestQueries:
    """Tests for the two query operations."""

    def test_empty_tree(self):
        """Test queries on an empty tree."""
        lookup = QuadLookup(3, 5, 8)
        assert lookup.get_items_which_are_part_of("0") == []
        assert lookup.get_item_which_includes("01230") is None

    def test_includes_rejects_coarse_key(self):
        """Test includes queries coarser than max zoom are rejected."""
        lookup = QuadLookup(3, 5, 8)
        with pytest.raises(ValueError):
            lookup.get_item_which_includes("0123")

    def test_part_of_rejects_too_deep_key(self):
        """Test part-of queries beyond the maximum zoom are rejected."""
        lookup = QuadLookup(3, 5, 8)
        with pytest.raises(ValueError):
            lookup.get_items_which_are_part_of("0" * 24)

    def test_falsy_items(self):
        """Test falsy payloads are found like any other item."""
        lookup = QuadLookup(1, 4, 4)
        lookup.add("0000", 0)
        lookup.add("0001", "")
        assert lookup.get_item_which_includes("00000") == 0
        assert lookup.get_item_which_includes("0001") == ""

    def test_overlapping_keys_first_match_wins(self):
        """Test the first added of two overlapping keys is returned."""
        # Which of several containing keys is returned is only defined by
        # insertion order within a level.
        lookup = QuadLookup(1, 2, 4)
        lookup.add("01", "coarse")
        lookup.add("0123", "fine")
        assert lookup.get_item_which_includes("012301") == "coarse"
        assert sorted(lookup.get_items_which_are_part_of("01")) == ["coarse", "fine"]

    def test_random_items_found(self):
        """Test every added item is found at its own key and below."""
        rng = random.Random(7)
        keys = {}
        while len(keys) < 300:
            key = "".join(rng.choice("0123") for _ in range(6))
            keys.setdefault(key, len(keys))

        lookup = QuadLookup(2, 6, 8)
        for key, item in keys.items():
            lookup.add(key, item)

        assert lookup.count == 300
        assert not lookup.root.is_leaf()
        for key, item in keys.items():
            assert lookup.get_item_which_includes(key) == item
            assert lookup.get_item_which_includes(key + "21") == item
            assert item in lookup.get_items_which_are_part_of(key[:3])

    def test_part_of_matches_brute_force(self):
        """Test part-of queries against a linear scan."""
        rng = random.Random(11)
        keys = ["".join(rng.choice("0123") for _ in range(8)) for _ in range(500)]

        lookup = QuadLookup(2, 7, 16)
        for i, key in enumerate(keys):
            lookup.add(key, i)

        for query in ["", "0", "12", "301", "2013", "01230", "3210"]:
            expected = [i for i, key in enumerate(keys) if key.startswith(query)]
            assert sorted(lookup.get_items_which_are_part_of(query)) == expected


class TestLockedQuadLookup:
    """Tests for the locked lookup tree."""

    def test_concurrent_adds(self):
        """Test adds from several threads are all stored."""
        lookup = LockedQuadLookup(2, 8, 16)

        def worker(row):
            for col in range(100):
                lookup.add(tile_to_quadkey(col, row, 8), (col, row))

        threads = [threading.Thread(target=worker, args=(row,)) for row in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert lookup.count == 400
        for row in range(4):
            for col in range(100):
                assert lookup.get_item_which_includes(tile_to_quadkey(col, row, 8)) == (col, row)

    def test_lock_is_reentrant(self):
        """Test compound operations can hold the lock."""
        lookup = LockedQuadLookup(1, 2, 4)
        with lookup.lock:
            if lookup.get_item_which_includes("01") is None:
                lookup.add("01", "a")
        assert lookup.get_item_which_includes("01") == "a"
