"""SQLite-backed execution history store."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from testintel.storage.history import MAX_RECORDS_PER_TEST, HistoryStore, KeyedLock
from testintel.storage.models import ExecutionRecord

logger = logging.getLogger(__name__)


class SQLiteHistoryStore(HistoryStore):
    """Persists bounded execution history in a SQLite database."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | str, max_records: int = MAX_RECORDS_PER_TEST):
        """Initialize database connection."""
        super().__init__(max_records)
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock_for = KeyedLock()
        self._init_schema()

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=30)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)
            cursor.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS executions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    test_case_id INTEGER NOT NULL,
                    test_name TEXT,
                    executed_at TIMESTAMP NOT NULL,
                    result TEXT NOT NULL,
                    duration_ms INTEGER DEFAULT 0,
                    error_type TEXT,
                    code_changes TEXT,
                    branch_name TEXT
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_executions_test_case
                ON executions(test_case_id, id)
            """)

    def record(self, execution: ExecutionRecord) -> None:
        with self._lock_for(execution.test_case_id), self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO executions
                (test_case_id, test_name, executed_at, result, duration_ms,
                 error_type, code_changes, branch_name)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    execution.test_case_id,
                    execution.test_name,
                    execution.executed_at.isoformat(),
                    execution.result.value,
                    execution.duration_ms,
                    execution.error_type,
                    json.dumps(list(execution.code_changes)) if execution.code_changes else None,
                    execution.branch_name,
                ),
            )

            # Evict everything older than the newest max_records rows
            cursor.execute(
                """
                DELETE FROM executions
                WHERE test_case_id = ?
                AND id NOT IN (
                    SELECT id FROM executions
                    WHERE test_case_id = ?
                    ORDER BY id DESC
                    LIMIT ?
                )
                """,
                (execution.test_case_id, execution.test_case_id, self.max_records),
            )
            if cursor.rowcount > 0:
                logger.debug(
                    "Evicted %d execution(s) of test case %s",
                    cursor.rowcount,
                    execution.test_case_id,
                )

    def history(self, test_case_id: int) -> list[ExecutionRecord]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, test_case_id, test_name, executed_at, result, duration_ms,
                       error_type, code_changes, branch_name
                FROM executions
                WHERE test_case_id = ?
                ORDER BY id ASC
                """,
                (test_case_id,),
            )
            return [ExecutionRecord.from_row(tuple(row)) for row in cursor.fetchall()]

    def test_case_ids(self) -> list[int]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT DISTINCT test_case_id FROM executions ORDER BY test_case_id")
            return [row[0] for row in cursor.fetchall()]

    def clear(self) -> None:
        """Clear all execution history."""
        with self._connection() as conn:
            conn.execute("DELETE FROM executions")
