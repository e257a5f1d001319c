"""SQLite storage for interaction logs.

One table, one file. Each operation opens a short-lived connection, so a
single store handle can be shared by request handlers running on different
threads; SQLite itself serializes writers.

Failure contract:
- Writes (save, delete_by_id, delete_all) raise StorageError so callers know
  their data was not persisted or not removed.
- Reads (list, get_by_id, stats) log a warning and degrade to an empty,
  not-found or all-zero result instead of raising.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .models import InteractionLog, InteractionStats

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a write or delete could not be applied."""


class SqliteInteractionLogStore:
    """Durable, queryable persistence for InteractionLog rows."""

    def __init__(self, database_path: str | Path) -> None:
        if not str(database_path).strip():
            raise ValueError("database_path is required")
        self.database_path = Path(database_path).expanduser()
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._closed = False
        self.migrate()

    def migrate(self) -> None:
        """Create the table and indexes if they do not already exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS interaction_logs (
                    id TEXT PRIMARY KEY,
                    task TEXT NOT NULL,
                    response TEXT NOT NULL,
                    status TEXT NOT NULL CHECK (status IN ('success', 'error')),
                    timestamp TEXT NOT NULL,
                    processing_time INTEGER NOT NULL,
                    user_agent TEXT,
                    ip_address TEXT,
                    metadata TEXT
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_interaction_logs_timestamp
                ON interaction_logs(timestamp)
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_interaction_logs_status
                ON interaction_logs(status)
                """)

    def save(self, log: InteractionLog) -> None:
        """Insert one row. Duplicate ids and unknown statuses raise StorageError."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO interaction_logs (
                        id,
                        task,
                        response,
                        status,
                        timestamp,
                        processing_time,
                        user_agent,
                        ip_address,
                        metadata
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        log.id,
                        log.task,
                        log.response,
                        log.status,
                        log.timestamp,
                        log.processing_time,
                        log.user_agent,
                        log.ip_address,
                        json.dumps(log.metadata) if log.metadata is not None else None,
                    ),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to save interaction log {log.id}: {exc}") from exc

    def list(self, limit: int = 50, offset: int = 0) -> list[InteractionLog]:
        """Return up to ``limit`` rows, newest first, skipping ``offset`` rows.

        Values are used as given; clamping is the caller's job.
        """
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    """
                    SELECT * FROM interaction_logs
                    ORDER BY timestamp DESC, rowid DESC
                    LIMIT ? OFFSET ?
                    """,
                    (limit, offset),
                ).fetchall()
        except (sqlite3.Error, StorageError):
            logger.warning(
                "storage event=list_failed limit=%s offset=%s", limit, offset, exc_info=True
            )
            return []

        logs: list[InteractionLog] = []
        for row in rows:
            try:
                logs.append(self._row_to_log(row))
            except ValueError:
                # Covers bad metadata JSON and pydantic ValidationError.
                logger.warning("storage event=row_skipped id=%s", row["id"], exc_info=True)
        return logs

    def get_by_id(self, log_id: str) -> InteractionLog | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM interaction_logs WHERE id = ?",
                    (log_id,),
                ).fetchone()
        except (sqlite3.Error, StorageError):
            logger.warning("storage event=get_failed id=%s", log_id, exc_info=True)
            return None
        if row is None:
            return None
        try:
            return self._row_to_log(row)
        except ValueError:
            logger.warning("storage event=row_unreadable id=%s", log_id, exc_info=True)
            return None

    def delete_by_id(self, log_id: str) -> bool:
        """Remove one row; True only if a row was actually deleted."""
        try:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM interaction_logs WHERE id = ?", (log_id,))
                return cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to delete interaction log {log_id}: {exc}") from exc

    def delete_all(self) -> int:
        """Remove every row and return how many were removed."""
        try:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM interaction_logs")
                return max(cursor.rowcount, 0)
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to delete interaction logs: {exc}") from exc

    def stats(self) -> InteractionStats:
        """Aggregate count, success rate (percent) and mean processing time in one query."""
        try:
            with self._connect() as conn:
                row = conn.execute("""
                    SELECT
                        COUNT(*) AS total,
                        SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END) AS success,
                        AVG(processing_time) AS avg_time
                    FROM interaction_logs
                    """).fetchone()
        except (sqlite3.Error, StorageError):
            logger.warning("storage event=stats_failed", exc_info=True)
            return InteractionStats()

        total = int(row["total"] or 0)
        if total == 0:
            return InteractionStats()
        return InteractionStats(
            total_interactions=total,
            success_rate=(int(row["success"] or 0) / total) * 100,
            average_processing_time=float(row["avg_time"] or 0.0),
        )

    def count(self) -> int:
        return self.stats().total_interactions

    def ping(self) -> bool:
        """Return True when the database file answers a trivial query."""
        try:
            with self._connect() as conn:
                conn.execute("SELECT 1").fetchone()
        except (sqlite3.Error, StorageError):
            logger.warning("storage event=ping_failed path=%s", self.database_path, exc_info=True)
            return False
        return True

    def close(self) -> None:
        self._closed = True

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, roll back on error, always close."""
        if self._closed:
            raise StorageError("Interaction log store is closed")
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def _parse_metadata(raw: Any) -> dict[str, Any] | None:
        if raw is None:
            return None
        parsed = json.loads(raw) if isinstance(raw, str) else raw
        if isinstance(parsed, dict):
            return parsed
        return None

    @classmethod
    def _row_to_log(cls, row: sqlite3.Row) -> InteractionLog:
        """Map one DB row to the InteractionLog model."""
        return InteractionLog(
            id=row["id"],
            task=row["task"],
            response=row["response"],
            status=row["status"],
            timestamp=row["timestamp"],
            processing_time=row["processing_time"],
            user_agent=row["user_agent"],
            ip_address=row["ip_address"],
            metadata=cls._parse_metadata(row["metadata"]),
        )
