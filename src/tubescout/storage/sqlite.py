"""SQLite implementation of the analysis repository."""

import json
import sqlite3
import threading

from tubescout.config import settings
from tubescout.models import Analysis
from tubescout.storage.repository import AnalysisRepository


class SQLiteAnalysisRepository(AnalysisRepository):
    """SQLite-backed analysis history.

    Implements AnalysisRepository using stdlib sqlite3. The analysis
    payload is kept as a JSON string column.
    """

    _CREATE_TABLE = """
        CREATE TABLE IF NOT EXISTS analyses (
            id         INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id    TEXT NOT NULL,
            type       TEXT NOT NULL,
            title      TEXT NOT NULL,
            thumbnail  TEXT DEFAULT '',
            data       TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
    """

    _CREATE_INDEX = """
        CREATE INDEX IF NOT EXISTS idx_analyses_user
        ON analyses (user_id, created_at)
    """

    def __init__(self, db_path: str | None = None) -> None:
        """Initialize the repository.

        Args:
            db_path: Path to SQLite database file. Defaults to settings.db_path.
                     Use ":memory:" for testing.
        """
        self._db_path = db_path or str(settings.db_path)
        # HTTP handlers run in a thread pool
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self) -> None:
        """Create tables if they don't exist."""
        self._conn.execute(self._CREATE_TABLE)
        self._conn.execute(self._CREATE_INDEX)
        self._conn.commit()

    def save(self, analysis: Analysis) -> Analysis:
        sql = """
            INSERT INTO analyses (user_id, type, title, thumbnail, data, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """
        with self._lock:
            cursor = self._conn.execute(sql, (
                analysis.user_id,
                analysis.type,
                analysis.title,
                analysis.thumbnail,
                json.dumps(analysis.data),
                analysis.created_at.isoformat(),
            ))
            self._conn.commit()
        return analysis.model_copy(update={"id": cursor.lastrowid})

    def get(self, analysis_id: int, user_id: str) -> Analysis | None:
        sql = "SELECT * FROM analyses WHERE id = ? AND user_id = ?"
        with self._lock:
            row = self._conn.execute(sql, (analysis_id, user_id)).fetchone()
        return self._row_to_analysis(row) if row is not None else None

    def list_for_user(self, user_id: str, type: str | None = None) -> list[Analysis]:
        sql = "SELECT * FROM analyses WHERE user_id = ?"
        params: list = [user_id]
        if type:
            sql += " AND type = ?"
            params.append(type)
        sql += " ORDER BY created_at DESC, id DESC"
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [self._row_to_analysis(row) for row in rows]

    def delete(self, analysis_id: int, user_id: str) -> bool:
        sql = "DELETE FROM analyses WHERE id = ? AND user_id = ?"
        with self._lock:
            cursor = self._conn.execute(sql, (analysis_id, user_id))
            self._conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_analysis(row: sqlite3.Row) -> Analysis:
        """Convert a database row to an Analysis model."""
        return Analysis(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            title=row["title"],
            thumbnail=row["thumbnail"],
            data=json.loads(row["data"]),
            created_at=row["created_at"],
        )
