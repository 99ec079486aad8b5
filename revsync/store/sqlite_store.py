"""SQLite-backed change store with a local checkpoint counter."""

import asyncio
import logging
import sqlite3
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from ..change import Change
from ..errors import StoreError
from ..hashing import Hasher, get_default_hasher
from .base import ChangeStore, CheckpointSource

logger = logging.getLogger(__name__)

# Schema for change records and checkpoints
CHANGE_SCHEMA = """
-- One row per tracked model instance, updated in place on every rectify
CREATE TABLE IF NOT EXISTS changes (
    id TEXT PRIMARY KEY,
    rev TEXT,
    prev TEXT,
    checkpoint INTEGER,
    model_name TEXT NOT NULL,
    model_id TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_changes_model ON changes(model_name, model_id);
CREATE INDEX IF NOT EXISTS idx_changes_checkpoint ON changes(model_name, checkpoint);

-- Monotonic checkpoint sequence
CREATE TABLE IF NOT EXISTS checkpoints (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL
);
"""

# SQLite's default limit on bound parameters is 999 on older builds
_MAX_PARAMS = 900


class SQLiteChangeStore(ChangeStore, CheckpointSource):
    """Change records persisted in SQLite.

    Writes go through a single connection guarded by an asyncio lock and use
    an upsert keyed on the derived id, so concurrent creates of the same
    record collapse into one row.
    """

    def __init__(self, db_path: str | Path, hasher: Hasher | None = None):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
            hasher: Hasher used to derive ids of loaded records.
        """
        self.db_path = Path(db_path).expanduser()
        self.hasher = hasher or get_default_hasher()
        self._conn: sqlite3.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def _in_memory(self) -> bool:
        return str(self.db_path) == ":memory:"

    def connect(self) -> None:
        """Initialize database connection and schema."""
        if not self._in_memory:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(CHANGE_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open change store {self.db_path}: {e}") from e

        logger.info(f"SQLiteChangeStore connected to {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _ensure_connected(self) -> sqlite3.Connection:
        """Ensure database connection exists."""
        if self._conn is None:
            self.connect()
        return self._conn

    def _row_to_change(self, row: sqlite3.Row) -> Change:
        return Change(
            model_name=row["model_name"],
            model_id=row["model_id"],
            rev=row["rev"],
            prev=row["prev"],
            checkpoint=row["checkpoint"],
            hasher=self.hasher,
        )

    async def find_by_id(self, change_id: str) -> Change | None:
        conn = self._ensure_connected()
        try:
            row = conn.execute(
                """
                SELECT rev, prev, checkpoint, model_name, model_id
                FROM changes
                WHERE id = ?
                """,
                (change_id,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to look up change {change_id}: {e}") from e

        return self._row_to_change(row) if row else None

    async def find(
        self, model_name: str, model_ids: Iterable[str], since: int
    ) -> list[Change]:
        conn = self._ensure_connected()
        ids = list(dict.fromkeys(str(i) for i in model_ids))
        if not ids:
            return []

        changes = []
        try:
            for start in range(0, len(ids), _MAX_PARAMS):
                chunk = ids[start:start + _MAX_PARAMS]
                placeholders = ",".join("?" * len(chunk))
                cursor = conn.execute(
                    f"""
                    SELECT rev, prev, checkpoint, model_name, model_id
                    FROM changes
                    WHERE model_name = ?
                      AND model_id IN ({placeholders})
                      AND checkpoint > ?
                    """,
                    (model_name, *chunk, since),
                )
                changes.extend(self._row_to_change(row) for row in cursor)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to query changes for {model_name}: {e}") from e

        return changes

    async def find_since(self, model_name: str, since: int) -> list[Change]:
        conn = self._ensure_connected()
        try:
            cursor = conn.execute(
                """
                SELECT rev, prev, checkpoint, model_name, model_id
                FROM changes
                WHERE model_name = ? AND checkpoint > ?
                ORDER BY checkpoint ASC
                """,
                (model_name, since),
            )
            return [self._row_to_change(row) for row in cursor]
        except sqlite3.Error as e:
            raise StoreError(f"Failed to query changes for {model_name}: {e}") from e

    async def save(self, change: Change) -> Change:
        if change.id is None:
            raise StoreError("Cannot save a change without modelName and modelId")

        conn = self._ensure_connected()
        async with self._write_lock:
            try:
                conn.execute(
                    """
                    INSERT INTO changes (
                        id, rev, prev, checkpoint, model_name, model_id, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        rev = excluded.rev,
                        prev = excluded.prev,
                        checkpoint = excluded.checkpoint,
                        updated_at = excluded.updated_at
                    """,
                    (
                        change.id,
                        change.rev,
                        change.prev,
                        change.checkpoint,
                        change.model_name,
                        change.model_id,
                        datetime.now().isoformat(),
                    ),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreError(
                    f"Failed to save change {change.model_name}/{change.model_id}: {e}"
                ) from e

        logger.debug(
            f"Saved change {change.model_name}/{change.model_id} "
            f"rev={change.rev} checkpoint={change.checkpoint}"
        )
        return change

    async def current(self) -> int:
        """Get the current checkpoint, creating the first one if needed."""
        conn = self._ensure_connected()
        try:
            row = conn.execute("SELECT MAX(seq) FROM checkpoints").fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read current checkpoint: {e}") from e

        if row[0] is not None:
            return row[0]
        return await self.create_checkpoint()

    async def create_checkpoint(self) -> int:
        """Advance to a new checkpoint and return its sequence number."""
        conn = self._ensure_connected()
        async with self._write_lock:
            try:
                cursor = conn.execute(
                    "INSERT INTO checkpoints (created_at) VALUES (?)",
                    (datetime.now().isoformat(),),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreError(f"Failed to create checkpoint: {e}") from e

        seq = cursor.lastrowid
        logger.info(f"Created checkpoint {seq}")
        return seq

    def get_stats(self) -> dict[str, Any]:
        """Get store statistics.

        Returns:
            Dictionary with record counts and the current checkpoint.
        """
        conn = self._ensure_connected()

        stats: dict[str, Any] = {}

        try:
            cursor = conn.execute("SELECT COUNT(*) FROM changes")
            stats["total_changes"] = cursor.fetchone()[0]

            cursor = conn.execute(
                "SELECT model_name, COUNT(*) FROM changes GROUP BY model_name"
            )
            stats["changes_by_model"] = {row[0]: row[1] for row in cursor}

            cursor = conn.execute("SELECT MAX(seq) FROM checkpoints")
            stats["checkpoint"] = cursor.fetchone()[0] or 0
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read store statistics: {e}") from e

        if not self._in_memory and self.db_path.exists():
            stats["db_size_mb"] = round(
                self.db_path.stat().st_size / (1024 * 1024), 2
            )

        return stats
