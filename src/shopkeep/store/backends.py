"""Key-value persistence for the shop collections"""

import logging
import sqlite3
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DB_PATH = Path.cwd() / "shopkeep.db"


class KeyValueBackend:
    """String key -> string value store.

    Subclasses must make ``write_many`` all-or-nothing: either every key in
    the mapping is written or none is.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str):
        self.write_many({key: value})

    def write_many(self, values: dict[str, str]):
        raise NotImplementedError

    def close(self):
        pass


class MemoryKeyValue(KeyValueBackend):
    """In-process backend. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write_many(self, values: dict[str, str]):
        for key, value in values.items():
            if not isinstance(value, str):
                raise TypeError(f"value for {key!r} must be str, got {type(value).__name__}")
        self._data.update(values)


class SQLiteKeyValue(KeyValueBackend):
    """SQLite file backend"""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else DB_PATH
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_db(self):
        """Create the kv table"""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT DEFAULT (datetime('now', 'localtime'))
            );
        """)
        self.conn.commit()

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def get(self, key: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT value FROM kv WHERE key = ?", (key,)
        ).fetchone()
        if row:
            return row["value"]
        return None

    def write_many(self, values: dict[str, str]):
        # the connection context manager commits, or rolls back on error
        with self.conn:
            self.conn.executemany("""
                INSERT INTO kv (key, value, updated_at)
                VALUES (?, ?, datetime('now', 'localtime'))
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, list(values.items()))
        logger.debug("wrote %s to %s", ", ".join(values), self.db_path)
