"""Persisted edit sessions with lazy expiry.

At most one live session exists per project. There is no background sweeper:
every store operation, read or write, first deletes the rows for which
``is_expired`` holds, so callers never observe or renew an abandoned session.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Callable, Optional

from ..models.edit_session import SESSION_TIMEOUT, EditSession
from .database import DatabaseService

logger = logging.getLogger(__name__)

# Returns the current time; naive values are interpreted as UTC
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime) -> str:
    # Fixed-width microsecond format keeps stored values lexically ordered
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


def is_expired(session: EditSession, now: datetime) -> bool:
    """True when the session has been silent for longer than SESSION_TIMEOUT."""
    return now - session.last_heartbeat > SESSION_TIMEOUT


class EditSessionStore:
    """SQLite-backed mapping from project id to its edit session."""

    def __init__(self, db_service: Optional[DatabaseService] = None, clock: Optional[Clock] = None):
        self.db = db_service or DatabaseService()
        self._clock = clock or utcnow

    def now(self) -> datetime:
        """Current time from the injected clock; naive values are taken as UTC."""
        current = self._clock()
        if current.tzinfo is None:
            return current.replace(tzinfo=timezone.utc)
        return current

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> EditSession:
        return EditSession(
            project_id=row["project_id"],
            session_id=row["session_id"],
            editor_name=row["editor_name"],
            started_at=_from_iso(row["started_at"]),
            last_heartbeat=_from_iso(row["last_heartbeat"]),
        )

    def _purge(self, conn: sqlite3.Connection, now: datetime) -> int:
        cursor = conn.execute(
            "SELECT id, project_id, session_id, editor_name, started_at, last_heartbeat FROM edit_sessions"
        )
        stale_ids = [row["id"] for row in cursor.fetchall() if is_expired(self._row_to_session(row), now)]
        if stale_ids:
            conn.executemany("DELETE FROM edit_sessions WHERE id = ?", [(row_id,) for row_id in stale_ids])
            logger.debug(f"Purged {len(stale_ids)} expired edit session(s)")
        return len(stale_ids)

    @staticmethod
    def _select_active(conn: sqlite3.Connection, project_id: int) -> Optional[EditSession]:
        cursor = conn.execute(
            """
            SELECT project_id, session_id, editor_name, started_at, last_heartbeat
            FROM edit_sessions
            WHERE project_id = ?
            ORDER BY last_heartbeat DESC
            LIMIT 1
            """,
            (project_id,),
        )
        row = cursor.fetchone()
        return EditSessionStore._row_to_session(row) if row else None

    def purge_expired(self) -> int:
        """Delete every expired session, across all projects. Returns the count."""
        conn = self.db.connect()
        try:
            with conn:
                return self._purge(conn, self.now())
        finally:
            conn.close()

    def get_active(self, project_id: int) -> Optional[EditSession]:
        """Purge expired sessions, then return the most recently heartbeated one for the project."""
        conn = self.db.connect()
        try:
            with conn:
                self._purge(conn, self.now())
                return self._select_active(conn, project_id)
        finally:
            conn.close()

    def upsert_own(self, project_id: int, session_id: str, editor_name: Optional[str]) -> EditSession:
        """
        Renew the caller's session, or make the caller the sole session of the project.

        An existing ``(project_id, session_id)`` row keeps its ``started_at`` and
        gets a new name and heartbeat. Otherwise every other row of the project
        is removed before inserting.
        """
        now = self.now()
        now_iso = _to_iso(now)
        conn = self.db.connect()
        try:
            with conn:
                self._purge(conn, now)
                cursor = conn.execute(
                    """
                    UPDATE edit_sessions
                    SET editor_name = ?, last_heartbeat = ?
                    WHERE project_id = ? AND session_id = ?
                    """,
                    (editor_name, now_iso, project_id, session_id),
                )
                if cursor.rowcount == 0:
                    conn.execute("DELETE FROM edit_sessions WHERE project_id = ?", (project_id,))
                    conn.execute(
                        """
                        INSERT INTO edit_sessions (project_id, session_id, editor_name, started_at, last_heartbeat)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (project_id, session_id, editor_name, now_iso, now_iso),
                    )
                    logger.info(f"Session {session_id} now owns project {project_id}")
                return self._select_active(conn, project_id)
        finally:
            conn.close()

    def heartbeat(self, project_id: int, session_id: str) -> bool:
        """Refresh ``last_heartbeat``. Returns False when no live row exists."""
        now = self.now()
        conn = self.db.connect()
        try:
            with conn:
                # An expired row is gone before the update can renew it
                self._purge(conn, now)
                cursor = conn.execute(
                    "UPDATE edit_sessions SET last_heartbeat = ? WHERE project_id = ? AND session_id = ?",
                    (_to_iso(now), project_id, session_id),
                )
                return cursor.rowcount > 0
        finally:
            conn.close()

    def release(self, project_id: int, session_id: str) -> bool:
        """Delete the caller's session. Returns False when the caller owned nothing."""
        conn = self.db.connect()
        try:
            with conn:
                self._purge(conn, self.now())
                cursor = conn.execute(
                    "DELETE FROM edit_sessions WHERE project_id = ? AND session_id = ?",
                    (project_id, session_id),
                )
                released = cursor.rowcount > 0
        finally:
            conn.close()
        if released:
            logger.info(f"Session {session_id} released project {project_id}")
        return released

    def force_replace(self, project_id: int, session_id: str, editor_name: Optional[str]) -> EditSession:
        """Drop every session of the project and install the caller as owner."""
        now = self.now()
        now_iso = _to_iso(now)
        conn = self.db.connect()
        try:
            with conn:
                self._purge(conn, now)
                conn.execute("DELETE FROM edit_sessions WHERE project_id = ?", (project_id,))
                conn.execute(
                    """
                    INSERT INTO edit_sessions (project_id, session_id, editor_name, started_at, last_heartbeat)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (project_id, session_id, editor_name, now_iso, now_iso),
                )
                return self._select_active(conn, project_id)
        finally:
            conn.close()


__all__ = ["EditSessionStore", "is_expired", "utcnow", "Clock"]
