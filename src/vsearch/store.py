"""Ordered key-value storage for cases and the ingestion checkpoint.

A :class:`KeySpace` is one SQLite file; each :class:`Partition` is a table of
``(key BLOB, value BLOB)`` rows.  SQLite compares BLOB keys bytewise, so
big-endian integer keys iterate in numeric order.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

CASES_PARTITION = "cases"
PROGRESS_PARTITION = "progress"
PROGRESS_SLOT = b"progress"

_ID_BYTES = 4
_PARTITION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def encode_id(case_id: int) -> bytes:
    """Encode *case_id* as a 4-byte big-endian key."""
    return case_id.to_bytes(_ID_BYTES, "big")


def decode_id(key: bytes) -> int:
    """Decode a 4-byte big-endian key back into an integer id."""
    if len(key) != _ID_BYTES:
        raise ValueError(f"expected a {_ID_BYTES}-byte key, got {len(key)} bytes")
    return int.from_bytes(key, "big")


class Partition:
    """A named, key-ordered byte-string table inside a :class:`KeySpace`."""

    def __init__(self, conn: sqlite3.Connection, name: str) -> None:
        self._conn = conn
        self.name = name

    def get(self, key: bytes) -> bytes | None:
        row = self._conn.execute(
            f"SELECT value FROM {self.name} WHERE key = ?", (key,)
        ).fetchone()
        return bytes(row[0]) if row else None

    def insert(self, key: bytes, value: bytes) -> None:
        """Write *value* under *key* and commit immediately."""
        with self._conn:
            self._conn.execute(
                f"INSERT OR REPLACE INTO {self.name} (key, value) VALUES (?, ?)",
                (key, value),
            )

    def iter(self, page_size: int = 256) -> Iterator[tuple[bytes, bytes]]:
        """Yield ``(key, value)`` pairs in ascending key order.

        Rows are fetched a page at a time so no cursor stays open while the
        caller writes to the same key space.
        """
        rows = self._conn.execute(
            f"SELECT key, value FROM {self.name} ORDER BY key LIMIT ?", (page_size,)
        ).fetchall()
        while rows:
            for key, value in rows:
                yield bytes(key), bytes(value)
            rows = self._conn.execute(
                f"SELECT key, value FROM {self.name} WHERE key > ? ORDER BY key LIMIT ?",
                (rows[-1][0], page_size),
            ).fetchall()

    def last_key(self) -> bytes | None:
        row = self._conn.execute(f"SELECT MAX(key) FROM {self.name}").fetchone()
        return bytes(row[0]) if row and row[0] is not None else None

    def __len__(self) -> int:
        return self._conn.execute(f"SELECT COUNT(*) FROM {self.name}").fetchone()[0]


class KeySpace:
    """SQLite-backed container of partitions.

    Parameters
    ----------
    path:
        Database file; parent directories are created on demand.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.path))
        logger.debug("Opened key space %s", self.path)

    def open_partition(self, name: str) -> Partition:
        if not _PARTITION_NAME.match(name):
            raise ValueError(f"invalid partition name: {name!r}")
        with self._conn:
            self._conn.execute(
                f"CREATE TABLE IF NOT EXISTS {name} (key BLOB PRIMARY KEY, value BLOB NOT NULL)"
            )
        return Partition(self._conn, name)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> KeySpace:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ProgressTracker:
    """Durable checkpoint: the id of the last fully uploaded case."""

    def __init__(self, partition: Partition, slot: bytes = PROGRESS_SLOT) -> None:
        self._partition = partition
        self._slot = slot

    def load(self) -> int | None:
        raw = self._partition.get(self._slot)
        return decode_id(raw) if raw is not None else None

    def save(self, case_id: int) -> None:
        self._partition.insert(self._slot, encode_id(case_id))
        logger.debug("Checkpoint saved: %d", case_id)
