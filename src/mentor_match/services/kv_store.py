"""Local key-value stores.

Two implementations of ``IKeyValueStore``: a dict-backed store for tests and
ephemeral sessions, and a SQLite-backed store for durable per-device data.
Neither knows anything about users or namespaces; that lives in the
repositories.
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from pathlib import Path

from loguru import logger

# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryKeyValueStore:
    """Process-local store backed by a plain dict."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def remove_many(self, keys: list[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    async def list_keys(self) -> list[str]:
        return list(self._data)


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class SQLiteKeyValueStore:
    """Durable store in a single SQLite table.

    sqlite3 calls are blocking, so each operation runs in a worker thread.
    One connection is shared and guarded by a thread lock.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def connect(self) -> None:
        """Open (or create) the database and ensure the schema exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.executescript(_SCHEMA_SQL)
        self.conn.commit()
        logger.info("Local store ready at {}", self.db_path)

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _get(self, key: str) -> str | None:
        assert self.conn
        with self._lock:
            row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def _set(self, key: str, value: str) -> None:
        assert self.conn
        with self._lock:
            self.conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            self.conn.commit()

    def _remove_many(self, keys: list[str]) -> None:
        assert self.conn
        with self._lock:
            self.conn.executemany("DELETE FROM kv WHERE key = ?", [(k,) for k in keys])
            self.conn.commit()

    def _list_keys(self) -> list[str]:
        assert self.conn
        with self._lock:
            rows = self.conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Async API
    # ------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove_many, [key])

    async def remove_many(self, keys: list[str]) -> None:
        if keys:
            await asyncio.to_thread(self._remove_many, list(keys))

    async def list_keys(self) -> list[str]:
        return await asyncio.to_thread(self._list_keys)
