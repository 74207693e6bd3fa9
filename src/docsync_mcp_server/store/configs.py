"""Repository bindings with a single-active-row invariant.

``ConfigStore.save`` deactivates every row and inserts the new active row
inside one SQLite transaction under the database write lock, so readers
observe either the previous active binding or the new one, never zero or
two.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime

from ..sync.models import SyncConfig
from .database import Database, utcnow

logger = logging.getLogger(__name__)


def _row_to_config(row: sqlite3.Row) -> SyncConfig:
    return SyncConfig(
        id=row["id"],
        owner=row["owner"],
        repo=row["repo"],
        base_path=row["path"],
        credential=row["token"],
        is_active=bool(row["is_active"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class ConfigStore:
    """Persisted sync configurations.

    Args:
        db: Shared SQLite medium.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def save(self, config: SyncConfig) -> SyncConfig:
        """Store *config* as the only active binding.

        Returns:
            The stored record with its id and ``created_at``.
        """
        with self._db.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            conn.execute("UPDATE configs SET is_active = 0 WHERE is_active = 1")
            cursor = conn.execute(
                """
                INSERT INTO configs (owner, repo, token, path, is_active, created_at)
                VALUES (?, ?, ?, ?, 1, ?)
                """,
                (
                    config.owner,
                    config.repo,
                    config.credential,
                    config.base_path,
                    utcnow().isoformat(),
                ),
            )
            row = conn.execute(
                "SELECT * FROM configs WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        saved = _row_to_config(row)
        logger.info(
            "Activated sync config #%s: %s/%s:%s",
            saved.id,
            saved.owner,
            saved.repo,
            saved.base_path or "/",
        )
        return saved

    def get_active(self) -> SyncConfig | None:
        """The active binding; newest wins if several are flagged active."""
        with self._db.connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM configs WHERE is_active = 1
                ORDER BY created_at DESC, id DESC LIMIT 1
                """
            ).fetchone()
        return _row_to_config(row) if row is not None else None

    def get_all(self) -> list[SyncConfig]:
        """All bindings, newest first."""
        with self._db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM configs ORDER BY created_at DESC, id DESC"
            ).fetchall()
        return [_row_to_config(r) for r in rows]

    def delete(self, config_id: int) -> bool:
        with self._db.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM configs WHERE id = ?", (config_id,)
            )
        return cursor.rowcount > 0
