"""Offline document cache keyed by repository path.

``LocalStore`` is the only writer of ``Document`` rows. Saves are
insert-or-replace by path: ``created_at`` survives updates while
``last_modified`` moves forward on every save. Timestamps handed out by
one store are strictly increasing so recency order is total even for
saves within the same clock tick.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timedelta

from ..errors import NameCollision
from ..sync.models import Document
from .database import Database, utcnow

logger = logging.getLogger(__name__)

_COLUMNS = (
    "path, name, content, sha, synced_content, last_modified, created_at"
)


def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        path=row["path"],
        name=row["name"],
        content=row["content"],
        version_token=row["sha"],
        synced_content=row["synced_content"],
        last_modified=datetime.fromisoformat(row["last_modified"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class LocalStore:
    """CRUD and search over cached documents.

    Args:
        db: Shared SQLite medium.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._clock_lock = threading.Lock()
        self._last_ts: datetime | None = None

    def _next_timestamp(self) -> datetime:
        with self._clock_lock:
            now = utcnow()
            if self._last_ts is not None and now <= self._last_ts:
                now = self._last_ts + timedelta(microseconds=1)
            self._last_ts = now
            return now

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, doc: Document) -> Document:
        """Insert or replace *doc* by path and return the stored record.

        Raises:
            StorageFault: If the medium fails.
        """
        now = self._next_timestamp().isoformat()
        with self._db.connection() as conn:
            self._upsert(conn, doc, now)
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE path = ?",
                (doc.path,),
            ).fetchone()
        logger.debug("Saved %s (token=%r)", doc.path, doc.version_token)
        return _row_to_document(row)

    @staticmethod
    def _upsert(
        conn: sqlite3.Connection,
        doc: Document,
        now: str,
        created_at: str | None = None,
    ) -> None:
        conn.execute(
            """
            INSERT INTO documents
                (path, name, content, sha, synced_content, last_modified, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET
                name = excluded.name,
                content = excluded.content,
                sha = excluded.sha,
                synced_content = excluded.synced_content,
                last_modified = excluded.last_modified
            """,
            (
                doc.path,
                doc.name,
                doc.content,
                doc.version_token,
                doc.synced_content,
                now,
                created_at or now,
            ),
        )

    def delete(self, path: str) -> bool:
        """Remove the record at *path*.

        Returns:
            True if a record was removed. A missing path is not an error.
        """
        with self._db.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM documents WHERE path = ?", (path,)
            )
        return cursor.rowcount > 0

    def move(self, old_path: str, new_path: str, new_name: str) -> Document:
        """Save the record under *new_path* and drop *old_path* in one transaction.

        Raises:
            KeyError: If *old_path* is not cached.
            NameCollision: If *new_path* is already cached.
        """
        now = self._next_timestamp().isoformat()
        with self._db.connection() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE path = ?",
                (old_path,),
            ).fetchone()
            if row is None:
                raise KeyError(old_path)
            taken = conn.execute(
                "SELECT 1 FROM documents WHERE path = ?", (new_path,)
            ).fetchone()
            if taken is not None:
                raise NameCollision(new_path)
            moved = _row_to_document(row).model_copy(
                update={"path": new_path, "name": new_name}
            )
            self._upsert(conn, moved, now, row["created_at"])
            conn.execute("DELETE FROM documents WHERE path = ?", (old_path,))
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE path = ?",
                (new_path,),
            ).fetchone()
        logger.info("Renamed %s -> %s", old_path, new_path)
        return _row_to_document(row)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, path: str) -> Document | None:
        with self._db.connection() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE path = ?", (path,)
            ).fetchone()
        return _row_to_document(row) if row is not None else None

    def exists(self, path: str) -> bool:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM documents WHERE path = ?", (path,)
            ).fetchone()
        return row is not None

    def get_all(self) -> list[Document]:
        """All documents, most recently modified first."""
        with self._db.connection() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM documents ORDER BY last_modified DESC"
            ).fetchall()
        return [_row_to_document(r) for r in rows]

    def search(self, query: str) -> list[Document]:
        """Case-insensitive substring match on name or content, recency order."""
        needle = query.casefold()
        return [
            doc
            for doc in self.get_all()
            if needle in doc.name.casefold() or needle in doc.content.casefold()
        ]

    def count(self) -> int:
        with self._db.connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
