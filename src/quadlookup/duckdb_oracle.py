"""
DuckDB-based oracle for quadkey containment queries.

This module implements an oracle that keeps (quadkey, item_id) rows in an
in-memory DuckDB table and answers containment queries with string prefix
predicates, independent of the tree structure of QuadLookup.
"""

import logging
from typing import Iterable, List, Optional, Tuple

import duckdb

from .oracle import Oracle


logger = logging.getLogger(__name__)


class DuckDBOracle(Oracle):
    """
    Oracle implementation using an in-memory DuckDB table.

    Nothing is written to disk; the table lives as long as the connection.
    """

    def __init__(self):
        """Open the in-memory database and create the items table."""
        self._con = duckdb.connect(":memory:")
        self._next_seq = 0
        self._con.execute("""
            CREATE TABLE items (
                seq BIGINT,
                quadkey VARCHAR,
                item_id BIGINT
            )
        """)
        logger.debug("Opened in-memory DuckDB oracle")

    def add(self, quadkey: str, item_id: int) -> None:
        self._con.execute(
            "INSERT INTO items VALUES (?, ?, ?)", [self._next_seq, quadkey, item_id]
        )
        self._next_seq += 1

    def add_batch(self, rows: Iterable[Tuple[str, int]]) -> None:
        """
        Store many rows with a single executemany call.

        Much faster than calling add() repeatedly due to reduced
        Python<->DuckDB round-trip overhead.
        """
        params = []
        for quadkey, item_id in rows:
            params.append([self._next_seq, quadkey, item_id])
            self._next_seq += 1

        if not params:
            return

        self._con.executemany("INSERT INTO items VALUES (?, ?, ?)", params)
        logger.debug("Inserted %d rows into DuckDB oracle", len(params))

    def items_part_of(self, quadkey: str) -> List[int]:
        result = self._con.execute("""
            SELECT item_id
            FROM items
            WHERE starts_with(quadkey, ?)
            ORDER BY seq
        """, [quadkey]).fetchall()
        return [row[0] for row in result]

    def item_including(self, quadkey: str) -> Optional[int]:
        result = self._con.execute("""
            SELECT item_id
            FROM items
            WHERE starts_with(?, quadkey)
            ORDER BY seq
            LIMIT 1
        """, [quadkey]).fetchone()

        if result:
            return result[0]
        return None

    def count(self) -> int:
        return self._con.execute("SELECT count(*) FROM items").fetchone()[0]

    def close(self) -> None:
        """Close the database connection."""
        if self._con:
            self._con.close()
            self._con = None

    def __del__(self):
        """Cleanup on garbage collection."""
        if getattr(self, "_con", None) is not None:
            self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
