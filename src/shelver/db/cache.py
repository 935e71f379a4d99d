# ABOUTME: Expiring key/value cache stored in the lookup_cache table.
# ABOUTME: Bounds repeated external year lookups for the same title/author.

import json
import sqlite3
import time
from collections.abc import Callable
from typing import Any


class LookupCache:
    """JSON values with a per-entry expiry, backed by SQLite.

    Writes commit immediately; the cache is never part of a larger
    transaction.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._conn = conn
        self._clock = clock

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        cursor = self._conn.execute(
            "SELECT value, expires_at FROM lookup_cache WHERE cache_key = ?", (key,)
        )
        row = cursor.fetchone()
        if row is None:
            return None
        if row["expires_at"] <= self._clock():
            with self._conn:
                self._conn.execute("DELETE FROM lookup_cache WHERE cache_key = ?", (key,))
            return None
        return json.loads(row["value"])

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store a JSON-serializable value for ttl seconds."""
        with self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO lookup_cache (cache_key, value, expires_at) "
                "VALUES (?, ?, ?)",
                (key, json.dumps(value), self._clock() + ttl),
            )

    def purge_expired(self) -> int:
        """Delete all expired entries. Returns the number removed."""
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM lookup_cache WHERE expires_at <= ?", (self._clock(),)
            )
        return cursor.rowcount
