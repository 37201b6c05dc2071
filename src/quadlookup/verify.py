"""
Cross-checking QuadLookup against a brute-force oracle.

This module fills a lookup tree and an oracle with the same deterministic
random points, runs containment queries against both and counts every
disagreement. It doubles as a benchmark of tree shape for a given
configuration.
"""

from dataclasses import dataclass
import logging
import random
import time
from typing import List, Tuple

from .lookup import QuadLookup
from .oracle import Oracle
from .projection import MAX_LATITUDE, MAX_ZOOM, MIN_LATITUDE
from .quadkey import lat_lon_to_quadkey, truncate


logger = logging.getLogger(__name__)


@dataclass
class VerifyConfig:
    """Configuration for a verification run."""

    count: int = 1000
    """Number of random items to add."""

    min_zoom: int = 3
    """Root zoom of the lookup tree."""

    max_zoom: int = 10
    """Max zoom of the lookup tree."""

    branch_limit: int = 32
    """Branch limit of the lookup tree."""

    item_zoom: int = 12
    """Zoom of the item keys (at least max_zoom)."""

    query_zoom: int = 6
    """Zoom of the part-of query keys."""

    queries: int = 200
    """Number of queries of each kind."""

    seed: int = 42
    """Random seed for deterministic points."""

    def __post_init__(self):
        if self.count < 1:
            raise ValueError("count must be at least 1")
        if not 1 <= self.min_zoom <= self.max_zoom <= MAX_ZOOM:
            raise ValueError(f"zooms must satisfy 1 <= min_zoom <= max_zoom <= {MAX_ZOOM}")
        if self.branch_limit < 1:
            raise ValueError("branch_limit must be at least 1")
        if not self.max_zoom <= self.item_zoom <= MAX_ZOOM:
            raise ValueError(f"item_zoom must be within max_zoom..{MAX_ZOOM}")
        if not 1 <= self.query_zoom <= MAX_ZOOM:
            raise ValueError(f"query_zoom must be within 1..{MAX_ZOOM}")
        if self.queries < 1:
            raise ValueError("queries must be at least 1")


@dataclass
class VerifyStats:
    """Statistics collected during a verification run."""

    items_added: int = 0
    part_of_queries: int = 0
    include_queries: int = 0
    items_returned: int = 0
    include_hits: int = 0
    mismatches: int = 0
    max_level_reached: int = 0
    node_count: int = 0
    leaf_count: int = 0
    elapsed_s: float = 0.0


def _random_key(rng: random.Random, zoom: int) -> str:
    lat = rng.uniform(MIN_LATITUDE, MAX_LATITUDE)
    lon = rng.uniform(-180.0, 180.0)
    return lat_lon_to_quadkey(lat, lon, zoom)


def run_verification(
    config: VerifyConfig, oracle: Oracle
) -> Tuple[QuadLookup[int], VerifyStats]:
    """
    Fill a lookup tree and an oracle and compare their answers.

    Args:
        config: Run configuration
        oracle: An empty oracle to compare against

    Returns:
        Tuple of (filled QuadLookup, VerifyStats)
    """
    rng = random.Random(config.seed)
    stats = VerifyStats()
    start = time.perf_counter()

    lookup: QuadLookup[int] = QuadLookup(config.min_zoom, config.max_zoom, config.branch_limit)
    rows: List[Tuple[str, int]] = []
    for item_id in range(config.count):
        key = _random_key(rng, config.item_zoom)
        lookup.add(key, item_id)
        rows.append((key, item_id))
    oracle.add_batch(rows)
    stats.items_added = len(rows)

    # Part-of queries around stored items, so most of them are non-empty
    for _ in range(config.queries):
        key, _ = rng.choice(rows)
        query = truncate(key, config.query_zoom)
        expected = sorted(oracle.items_part_of(query))
        actual = sorted(lookup.get_items_which_are_part_of(query))
        stats.part_of_queries += 1
        stats.items_returned += len(actual)
        if actual != expected:
            stats.mismatches += 1
            logger.debug("part-of mismatch for %s: %s != %s", query, actual, expected)

    # Includes queries, half on stored items and half on random points
    for i in range(config.queries):
        if i % 2 == 0:
            key, _ = rng.choice(rows)
            query = key + "".join(rng.choice("0123") for _ in range(MAX_ZOOM - len(key)))
        else:
            query = _random_key(rng, MAX_ZOOM)
        expected_item = oracle.item_including(query)
        actual_item = lookup.get_item_which_includes(query)
        stats.include_queries += 1
        if actual_item is not None:
            stats.include_hits += 1
        if actual_item != expected_item:
            stats.mismatches += 1
            logger.debug("includes mismatch for %s: %s != %s", query, actual_item, expected_item)

    stats.max_level_reached = lookup.max_level_reached
    stats.node_count = lookup.node_count
    stats.leaf_count = lookup.leaf_count
    stats.elapsed_s = time.perf_counter() - start

    return lookup, stats
