"""
Adaptive lookup tree for quadkey tagged items.

The tree is defined by a minimum and maximum zoom level and a branch limit.

The root sits at the minimum zoom, which skips traversing the first levels
at the cost of a wider first dictionary lookup. A level stores its items in
a flat list until the branch limit would be exceeded; it then splits once
and for all into children keyed by the items' quadkeys one level deeper.
At the maximum zoom a level never splits and stores any number of items.

Geo features are seldom distributed evenly across the globe, so the tree is
never balanced; a dense region simply grows deeper than a sparse one.

Quads are base 4, so level n holds at most 4^n cells:

    L1          4
    L4        256
    L8     65'536
    L12 16'777'216
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
import threading
from typing import Dict, Generic, List, Optional, Tuple, TypeVar

from .projection import MAX_ZOOM
from .quadkey import Quadkey, QuadkeyLike, as_quadkey


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class LookupConfig:
    """
    Configuration of a QuadLookup tree.

    Out of range values are clamped silently rather than rejected. The
    configuration is fixed once the tree is built.
    """

    min_zoom: int
    """Zoom level of the root (entry point) of the tree."""

    max_zoom: int
    """Deepest zoom level at which items are stored."""

    branch_limit: int
    """Maximum items in a level before it splits (below max_zoom)."""

    def __post_init__(self):
        min_zoom = max(1, min(MAX_ZOOM, self.min_zoom))
        max_zoom = max(min_zoom, min(MAX_ZOOM, self.max_zoom))
        branch_limit = max(max_zoom, min(4 ** max_zoom, self.branch_limit))
        object.__setattr__(self, "min_zoom", min_zoom)
        object.__setattr__(self, "max_zoom", max_zoom)
        object.__setattr__(self, "branch_limit", branch_limit)


class LookupNode(ABC, Generic[T]):
    """Abstract base class for lookup tree levels."""

    zoom: int

    @abstractmethod
    def is_leaf(self) -> bool:
        """Return True if this level stores items directly."""
        pass

    @abstractmethod
    def add(
        self, quadkey: Quadkey, item: T, config: LookupConfig
    ) -> Tuple[LookupNode[T], int]:
        """
        Add an item to this subtree.

        Args:
            quadkey: Key of the item, at least as fine as config.max_zoom
            item: The payload
            config: Tree configuration

        Returns:
            Tuple of (node replacing this one in its parent, zoom where the
            item was stored)
        """
        pass

    @abstractmethod
    def items(self) -> List[T]:
        """All items stored in this subtree."""
        pass

    @abstractmethod
    def items_part_of(self, query: Quadkey) -> List[T]:
        """Items whose key lies within query (query at most max_zoom deep)."""
        pass

    @abstractmethod
    def item_including(self, query: Quadkey) -> Optional[T]:
        """First item whose key contains query (query at least max_zoom deep)."""
        pass

    @abstractmethod
    def node_count(self) -> int:
        """Return total number of levels in this subtree."""
        pass

    @abstractmethod
    def leaf_count(self) -> int:
        """Return number of item holding levels in this subtree."""
        pass

    @abstractmethod
    def max_depth(self) -> int:
        """Return maximum depth of this subtree."""
        pass


@dataclass
class LeafLevel(LookupNode[T]):
    """
    An end of tree level holding (quadkey, item) entries.
    """
    zoom: int
    entries: List[Tuple[Quadkey, T]] = field(default_factory=list)

    def is_leaf(self) -> bool:
        return True

    def add(
        self, quadkey: Quadkey, item: T, config: LookupConfig
    ) -> Tuple[LookupNode[T], int]:
        if self.zoom == config.max_zoom or len(self.entries) < config.branch_limit:
            self.entries.append((quadkey, item))
            return self, self.zoom

        # Full below max zoom: turn into a branch and redistribute
        logger.debug(
            "Splitting level at zoom %d holding %d items", self.zoom, len(self.entries)
        )
        branch: BranchLevel[T] = BranchLevel(self.zoom)
        for key, stored in self.entries:
            branch.add(key, stored, config)
        return branch.add(quadkey, item, config)

    def items(self) -> List[T]:
        return [item for _, item in self.entries]

    def items_part_of(self, query: Quadkey) -> List[T]:
        return [item for key, item in self.entries if key.is_part_of(query)]

    def item_including(self, query: Quadkey) -> Optional[T]:
        for key, item in self.entries:
            if key.includes(query):
                return item
        return None

    def node_count(self) -> int:
        return 1

    def leaf_count(self) -> int:
        return 1

    def max_depth(self) -> int:
        return 0


@dataclass
class BranchLevel(LookupNode[T]):
    """
    An intermediate level with children keyed by quadkeys at zoom + 1.

    A branch never holds items itself.
    """
    zoom: int
    children: Dict[Quadkey, LookupNode[T]] = field(default_factory=dict)

    def is_leaf(self) -> bool:
        return False

    def child_key(self, quadkey: Quadkey) -> Quadkey:
        return quadkey.at_zoom(self.zoom + 1)

    def add(
        self, quadkey: Quadkey, item: T, config: LookupConfig
    ) -> Tuple[LookupNode[T], int]:
        key = self.child_key(quadkey)
        child = self.children.get(key)
        if child is None:
            child = LeafLevel(self.zoom + 1)
        self.children[key], stored_zoom = child.add(quadkey, item, config)
        return self, stored_zoom

    def items(self) -> List[T]:
        ret: List[T] = []
        for child in self.children.values():
            ret.extend(child.items())
        return ret

    def items_part_of(self, query: Quadkey) -> List[T]:
        if query.zoom > self.zoom:
            # More detailed than this level, only one child can answer
            child = self.children.get(self.child_key(query))
            if child is None:
                return []
            return child.items_part_of(query)

        ret: List[T] = []
        for key, child in self.children.items():
            if key.is_part_of(query):
                ret.extend(child.items())
        return ret

    def item_including(self, query: Quadkey) -> Optional[T]:
        child = self.children.get(self.child_key(query))
        if child is None:
            return None
        return child.item_including(query)

    def node_count(self) -> int:
        count = 1  # This level
        for child in self.children.values():
            count += child.node_count()
        return count

    def leaf_count(self) -> int:
        return sum(child.leaf_count() for child in self.children.values())

    def max_depth(self) -> int:
        max_child_depth = 0
        for child in self.children.values():
            max_child_depth = max(max_child_depth, child.max_depth())
        return 1 + max_child_depth


class QuadLookup(Generic[T]):
    """
    Index of items tagged with quadkeys.

    Answers two questions without touching coordinates:
    - which stored items lie within a coarse key (get_items_which_are_part_of)
    - which stored item contains a fine key (get_item_which_includes)

    Items can only be added, never removed.

    Not thread safe: add() may replace whole levels of the tree, so it must
    not run concurrently with itself or with queries. Use LockedQuadLookup or
    an external lock when sharing a tree between threads.
    """

    def __init__(self, min_zoom: int, max_zoom: int, branch_limit: int):
        """
        Initialize an empty lookup tree.

        Args:
            min_zoom: Zoom of the root level (clamped to 1..MAX_ZOOM)
            max_zoom: Zoom where items are stored (clamped to min_zoom..MAX_ZOOM)
            branch_limit: Max items per level before splitting
                (clamped to max_zoom..4^max_zoom)
        """
        self.config = LookupConfig(min_zoom, max_zoom, branch_limit)
        self.root: LookupNode[T] = LeafLevel(self.config.min_zoom)
        self._count = 0
        self._max_level = 0

    @property
    def count(self) -> int:
        """Number of items stored."""
        return self._count

    @property
    def max_level_reached(self) -> int:
        """Deepest zoom level where an item was stored (0 when empty)."""
        return self._max_level

    def __len__(self) -> int:
        return self._count

    def add(self, quadkey: QuadkeyLike, item: T) -> int:
        """
        Add an item tagged with a quadkey.

        Args:
            quadkey: Key of the item; must be at least as fine as max_zoom
            item: The payload

        Returns:
            The zoom level of the tree level where the item was stored

        Raises:
            ValueError: If the key is coarser than max_zoom
        """
        key = as_quadkey(quadkey)
        if key.zoom < self.config.max_zoom:
            raise ValueError(
                f"The zoom level of the quadkey ({key.zoom}) is less than "
                f"the max zoom ({self.config.max_zoom}) of this lookup"
            )

        self.root, stored_zoom = self.root.add(key, item, self.config)
        self._max_level = max(self._max_level, stored_zoom)
        self._count += 1
        return stored_zoom

    def get_items_which_are_part_of(self, quadkey: QuadkeyLike) -> List[T]:
        """
        Retrieve all items lying within a key.

        Args:
            quadkey: Query key, at most MAX_ZOOM deep

        Returns:
            List of items (possibly empty)

        Raises:
            ValueError: If the key is deeper than MAX_ZOOM
        """
        key = as_quadkey(quadkey)
        if key.zoom > MAX_ZOOM:
            raise ValueError(
                f"The zoom level of the quadkey ({key.zoom}) is more than "
                f"the max zoom ({MAX_ZOOM}) of this lookup"
            )
        return self.root.items_part_of(key)

    def get_item_which_includes(self, quadkey: QuadkeyLike) -> Optional[T]:
        """
        Retrieve the item whose key contains a fine key.

        When several stored keys contain the query, the first one found
        wins; which one that is depends on insertion order.

        Args:
            quadkey: Query key, at least as fine as max_zoom

        Returns:
            The item or None if nothing contains the key

        Raises:
            ValueError: If the key is coarser than max_zoom
        """
        key = as_quadkey(quadkey)
        if key.zoom < self.config.max_zoom:
            raise ValueError(
                f"The zoom level of the quadkey ({key.zoom}) is less than "
                f"the max zoom ({self.config.max_zoom}) of this lookup"
            )
        return self.root.item_including(key)

    @property
    def node_count(self) -> int:
        """Total number of levels in the tree."""
        return self.root.node_count()

    @property
    def leaf_count(self) -> int:
        """Number of item holding levels in the tree."""
        return self.root.leaf_count()

    @property
    def depth(self) -> int:
        """Maximum depth of the tree below the root."""
        return self.root.max_depth()


class LockedQuadLookup(QuadLookup[T]):
    """
    QuadLookup serializing every operation on one reentrant lock.

    Hold `lock` for compound sequences such as query-then-add.
    """

    def __init__(self, min_zoom: int, max_zoom: int, branch_limit: int):
        super().__init__(min_zoom, max_zoom, branch_limit)
        self.lock = threading.RLock()

    def add(self, quadkey: QuadkeyLike, item: T) -> int:
        with self.lock:
            return super().add(quadkey, item)

    def get_items_which_are_part_of(self, quadkey: QuadkeyLike) -> List[T]:
        with self.lock:
            return super().get_items_which_are_part_of(quadkey)

    def get_item_which_includes(self, quadkey: QuadkeyLike) -> Optional[T]:
        with self.lock:
            return super().get_item_which_includes(quadkey)
