"""SQLite medium shared by ``LocalStore`` and ``ConfigStore``.

One database file holds both tables. Connections are opened per unit of
work (or shared, for ``:memory:`` databases) and every ``sqlite3.Error``
is surfaced as ``StorageFault``.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from ..errors import StorageFault

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    path TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    sha TEXT NOT NULL DEFAULT '',
    synced_content TEXT,
    last_modified TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS configs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL,
    repo TEXT NOT NULL,
    token TEXT NOT NULL,
    path TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_documents_last_modified
    ON documents(last_modified);
CREATE INDEX IF NOT EXISTS idx_configs_active ON configs(is_active);
"""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Database:
    """SQLite connection factory with schema bootstrap.

    Args:
        path: Database file, or ``":memory:"`` for a private in-memory
            database (one shared connection for the object's lifetime).
    """

    def __init__(self, path: str | Path) -> None:
        self._is_memory = str(path) == ":memory:"
        self.path = Path(path)
        self._shared_conn: sqlite3.Connection | None = None
        # Serialises multi-statement transactions across worker threads.
        self.write_lock = threading.RLock()
        if not self._is_memory:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageFault(
                    f"Cannot create data directory {self.path.parent}: {e}"
                ) from e
        self._ensure_schema()

    def _open(self) -> sqlite3.Connection:
        target = ":memory:" if self._is_memory else str(self.path)
        conn = sqlite3.connect(target, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, roll back on error."""
        with self.write_lock:
            if self._is_memory:
                if self._shared_conn is None:
                    self._shared_conn = self._open()
                conn = self._shared_conn
            else:
                try:
                    conn = self._open()
                except sqlite3.Error as e:
                    raise StorageFault(f"Cannot open {self.path}: {e}") from e
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error("Storage failure on %s: %s", self.path, e)
                raise StorageFault(str(e)) from e
            except BaseException:
                conn.rollback()
                raise
            finally:
                if not self._is_memory:
                    conn.close()

    def _ensure_schema(self) -> None:
        with self.connection() as conn:
            conn.executescript(_SCHEMA)

    def close(self) -> None:
        if self._shared_conn is not None:
            self._shared_conn.close()
            self._shared_conn = None
