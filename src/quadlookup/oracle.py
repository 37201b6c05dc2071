"""
Oracle interface for quadkey containment queries.

An oracle answers the same questions as QuadLookup by brute force over a
flat collection of (quadkey, item_id) rows. It is the ground truth the
lookup tree is verified against.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from .neighbors import includes, is_part_of


class Oracle(ABC):
    """
    Abstract base class for containment oracles.

    Items are integer ids; rows keep their insertion order, so the first
    matching row is the one added first.
    """

    @abstractmethod
    def add(self, quadkey: str, item_id: int) -> None:
        """
        Store an item id under a quadkey.

        Args:
            quadkey: Key of the item (a valid quadkey string)
            item_id: Integer id of the item
        """
        pass

    def add_batch(self, rows: Iterable[Tuple[str, int]]) -> None:
        """
        Store many (quadkey, item_id) rows.

        Default implementation calls add() for each row.
        Subclasses may override for better performance (e.g., bulk inserts).
        """
        for quadkey, item_id in rows:
            self.add(quadkey, item_id)

    @abstractmethod
    def items_part_of(self, quadkey: str) -> List[int]:
        """
        Ids of all items whose key lies within quadkey.

        Returns:
            List of item ids in insertion order
        """
        pass

    @abstractmethod
    def item_including(self, quadkey: str) -> Optional[int]:
        """
        Id of the first item whose key contains quadkey.

        Returns:
            Item id or None if no stored key contains quadkey
        """
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of stored rows."""
        pass


class ListOracle(Oracle):
    """
    Oracle scanning a python list.

    Linear in the number of rows for every query; only meant for tests and
    small verification runs.
    """

    def __init__(self):
        self._rows: List[Tuple[str, int]] = []

    def add(self, quadkey: str, item_id: int) -> None:
        self._rows.append((quadkey, item_id))

    def items_part_of(self, quadkey: str) -> List[int]:
        return [item_id for key, item_id in self._rows if is_part_of(key, quadkey)]

    def item_including(self, quadkey: str) -> Optional[int]:
        for key, item_id in self._rows:
            if includes(key, quadkey):
                return item_id
        return None

    def count(self) -> int:
        return len(self._rows)
