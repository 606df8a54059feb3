"""SQLite database helpers for the studio schema."""

from __future__ import annotations

import logging
from pathlib import Path
import sqlite3
from typing import Iterable

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_DB_PATH = DATA_DIR / "studio.db"

DDL_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS projects (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        design_system TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_projects_updated ON projects(updated_at DESC)",
    # One pages.json document per project
    """
    CREATE TABLE IF NOT EXISTS project_pages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id INTEGER NOT NULL,
        pages_json TEXT,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_pages_project ON project_pages(project_id)",
    # Edit sessions: one live row per project, enforced by EditSessionStore.
    # No UNIQUE(project_id) because expired rows linger until the next purge.
    """
    CREATE TABLE IF NOT EXISTS edit_sessions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id INTEGER NOT NULL,
        session_id TEXT NOT NULL,
        editor_name TEXT,
        started_at TEXT NOT NULL,
        last_heartbeat TEXT NOT NULL,
        FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_sessions_project_session ON edit_sessions(project_id, session_id)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_heartbeat ON edit_sessions(last_heartbeat)",
)

# Migration statements for databases created by older builds
MIGRATION_STATEMENTS: tuple[str, ...] = (
    # design_system was added after the first release of the projects table
    "ALTER TABLE projects ADD COLUMN design_system TEXT",
)


class DatabaseService:
    """Manage SQLite connections and schema initialization."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Return a sqlite3 connection with the proper data directory created."""
        self._ensure_directory()
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self, statements: Iterable[str] | None = None) -> Path:
        """Create all schema artifacts required by the studio."""
        conn = self.connect()
        try:
            with conn:  # Transactional apply of DDL
                for statement in statements or DDL_STATEMENTS:
                    conn.execute(statement)

            # Column migrations fail harmlessly once applied
            for migration in MIGRATION_STATEMENTS:
                try:
                    conn.execute(migration)
                    conn.commit()
                except sqlite3.OperationalError:
                    pass  # Column already exists
        finally:
            conn.close()
        logger.debug(f"Database schema ready at {self.db_path}")
        return self.db_path


def init_database(db_path: str | Path | None = None) -> Path:
    """Convenience wrapper used at application startup."""
    return DatabaseService(db_path).initialize()


__all__ = ["DatabaseService", "init_database", "DEFAULT_DB_PATH"]
