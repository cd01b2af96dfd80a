"""SQLite-backed log of dwell sessions, notifications and window checks."""

import sqlite3
import threading
from datetime import datetime, timedelta
from typing import Optional

from emotional_support.core.models import (
    DwellSession,
    NotificationKind,
    NotificationRecord,
    WindowInfo,
)


class ActivityStore:
    """Append-only log stored in a local SQLite database.

    Timestamps are persisted as ISO 8601 text and durations as whole
    seconds. Rows are never updated; schema changes are additive only.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        # Shared between the tracker thread and the dashboard.
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _write(self, sql: str, params: tuple) -> int:
        with self._lock:
            conn = self._get_conn()
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.lastrowid  # type: ignore[return-value]

    def _read(self, sql: str, params=()) -> list[sqlite3.Row]:
        with self._lock:
            return self._get_conn().execute(sql, params).fetchall()

    # ------------------------------------------------------------------
    # Schema initialisation
    # ------------------------------------------------------------------

    def init_db(self) -> None:
        """Create tables and indexes if they don't already exist."""
        with self._lock:
            self._init_schema(self._get_conn())

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """\
            CREATE TABLE IF NOT EXISTS window_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                window_key TEXT NOT NULL,
                program TEXT,
                window_title TEXT,
                process_name TEXT,
                pid TEXT,
                language TEXT,
                is_programming INTEGER DEFAULT 0,
                started_at TEXT NOT NULL,
                ended_at TEXT,
                duration_seconds INTEGER,
                project_path TEXT
            );

            CREATE TABLE IF NOT EXISTS notifications (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                notification_type TEXT NOT NULL,
                title TEXT NOT NULL,
                message TEXT NOT NULL,
                program TEXT,
                language TEXT,
                duration_seconds INTEGER,
                sent_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS window_checks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                window_key TEXT,
                program TEXT,
                window_title TEXT,
                process_name TEXT,
                pid TEXT,
                checked_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_window_sessions_started
                ON window_sessions(started_at);

            CREATE INDEX IF NOT EXISTS idx_window_sessions_program
                ON window_sessions(program);

            CREATE INDEX IF NOT EXISTS idx_notifications_sent_at
                ON notifications(sent_at);

            CREATE INDEX IF NOT EXISTS idx_notifications_type
                ON notifications(notification_type);

            CREATE INDEX IF NOT EXISTS idx_window_checks_checked_at
                ON window_checks(checked_at);
            """
        )
        conn.commit()

        # Migrate: add columns if missing (existing DBs)
        self._migrate_add_column(conn, "window_sessions", "project_path", "TEXT")

    @staticmethod
    def _migrate_add_column(conn, table: str, column: str, col_type: str) -> None:
        """Add a column to a table if it doesn't exist yet."""
        columns = {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
        if column not in columns:
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}")
            conn.commit()

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def log_window_session(self, session: DwellSession) -> int:
        """Persist a closed dwell session. Returns the row id."""
        ctx = session.context
        return self._write(
            """\
            INSERT INTO window_sessions
                (window_key, program, window_title, process_name, pid,
                 language, is_programming, started_at, ended_at,
                 duration_seconds, project_path)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session.window_key,
                ctx.program,
                ctx.window_title,
                session.window.process,
                session.window.pid,
                ctx.language,
                1 if ctx.is_programming else 0,
                session.started_at.isoformat(),
                session.ended_at.isoformat(),
                int(session.duration.total_seconds()),
                ctx.project_path,
            ),
        )

    def log_notification(self, record: NotificationRecord) -> int:
        """Persist a delivered notification. Returns the row id."""
        duration_seconds = None
        if record.duration is not None and record.duration > timedelta(0):
            duration_seconds = int(record.duration.total_seconds())
        sent_at = record.sent_at or datetime.now().astimezone()

        return self._write(
            """\
            INSERT INTO notifications
                (notification_type, title, message, program, language,
                 duration_seconds, sent_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.kind.value,
                record.title,
                record.message,
                record.program,
                record.language,
                duration_seconds,
                sent_at.isoformat(),
            ),
        )

    def log_window_check(self, window: WindowInfo, checked_at: datetime) -> int:
        """Record a raw poll result for diagnostics. Returns the row id."""
        return self._write(
            """\
            INSERT INTO window_checks
                (window_key, program, window_title, process_name, pid, checked_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                f"{window.process}|{window.title}",
                window.process,
                window.title,
                window.process,
                window.pid,
                checked_at.isoformat(),
            ),
        )

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def get_window_sessions(self, start: datetime, end: datetime) -> list[dict]:
        """Return sessions whose started_at falls in [start, end)."""
        rows = self._read(
            """\
            SELECT * FROM window_sessions
            WHERE started_at >= ? AND started_at < ?
            ORDER BY started_at
            """,
            (start.isoformat(), end.isoformat()),
        )
        return [self._row_to_session(r) for r in rows]

    def get_notifications(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[NotificationRecord]:
        """Return notifications, newest first, optionally bounded by time."""
        clauses: list[str] = []
        params: list[object] = []
        if start is not None:
            clauses.append("sent_at >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("sent_at < ?")
            params.append(end.isoformat())

        query = "SELECT * FROM notifications"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY sent_at DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        rows = self._read(query, tuple(params))
        return [self._row_to_notification(r) for r in rows]

    def count_window_checks(self) -> int:
        return self._read("SELECT COUNT(*) FROM window_checks")[0][0]

    # ------------------------------------------------------------------
    # Row mapping helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> dict:
        d = dict(row)
        d["is_programming"] = bool(d.get("is_programming"))
        d["started_at"] = datetime.fromisoformat(d["started_at"])
        if d.get("ended_at"):
            d["ended_at"] = datetime.fromisoformat(d["ended_at"])
        d["duration"] = timedelta(seconds=d.get("duration_seconds") or 0)
        return d

    @staticmethod
    def _row_to_notification(row: sqlite3.Row) -> NotificationRecord:
        seconds = row["duration_seconds"]
        return NotificationRecord(
            kind=NotificationKind(row["notification_type"]),
            title=row["title"],
            message=row["message"],
            program=row["program"] or "",
            language=row["language"] or "",
            duration=timedelta(seconds=seconds) if seconds is not None else None,
            sent_at=datetime.fromisoformat(row["sent_at"]),
        )
