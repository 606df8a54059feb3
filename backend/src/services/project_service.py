"""Service for managing studio projects and their page configuration."""

from __future__ import annotations

import json
import logging
import shutil
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, List

from ..models.project import (
    Project,
    ProjectCreate,
    ProjectUpdate,
    default_pages_config,
)
from .database import DatabaseService

logger = logging.getLogger(__name__)


class ProjectNotFoundError(Exception):
    """Raised when an operation targets a project id that does not exist."""

    def __init__(self, project_id: int):
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value


def _load_json(raw: Optional[str]) -> Optional[Any]:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring corrupt JSON column value")
        return None


class ProjectService:
    """Service for CRUD operations on projects and their pages.json documents."""

    def __init__(
        self,
        db_service: Optional[DatabaseService] = None,
        html_caches_dir: Optional[Path] = None,
    ):
        """
        Args:
            db_service: Database service; a default instance when omitted
            html_caches_dir: Root of extracted mockups, cleaned up on delete
        """
        self.db = db_service or DatabaseService()
        self.html_caches_dir = html_caches_dir

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> Project:
        return Project(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            design_system=_load_json(row["design_system"]),
            created_at=_parse_timestamp(row["created_at"]),
            updated_at=_parse_timestamp(row["updated_at"]),
        )

    def list_projects(self) -> List[Project]:
        """List all projects, most recently updated first."""
        conn = self.db.connect()
        try:
            cursor = conn.execute(
                """
                SELECT id, name, description, design_system, created_at, updated_at
                FROM projects
                ORDER BY updated_at DESC, id DESC
                """
            )
            return [self._row_to_project(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_project(self, project_id: int) -> Optional[Project]:
        """
        Get a specific project.

        Args:
            project_id: Project identifier

        Returns:
            Project object or None if not found
        """
        conn = self.db.connect()
        try:
            cursor = conn.execute(
                """
                SELECT id, name, description, design_system, created_at, updated_at
                FROM projects
                WHERE id = ?
                """,
                (project_id,),
            )
            row = cursor.fetchone()
            return self._row_to_project(row) if row else None
        finally:
            conn.close()

    def project_exists(self, project_id: int) -> bool:
        """Cheap existence check used by the edit session coordinator."""
        conn = self.db.connect()
        try:
            cursor = conn.execute("SELECT 1 FROM projects WHERE id = ?", (project_id,))
            return cursor.fetchone() is not None
        finally:
            conn.close()

    def create_project(self, data: ProjectCreate) -> Project:
        """
        Create a new project and its empty pages.json document.

        Args:
            data: Project creation data

        Returns:
            Created Project object
        """
        now_iso = _utcnow_iso()
        design_json = json.dumps(data.design_system) if data.design_system is not None else None
        conn = self.db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    """
                    INSERT INTO projects (name, description, design_system, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (data.name, data.description or "", design_json, now_iso, now_iso),
                )
                project_id = cursor.lastrowid
                conn.execute(
                    """
                    INSERT INTO project_pages (project_id, pages_json, updated_at)
                    VALUES (?, ?, ?)
                    """,
                    (project_id, json.dumps(default_pages_config(data.name)), now_iso),
                )

            logger.info(f"Created project {project_id} ({data.name!r})")

            return Project(
                id=project_id,
                name=data.name,
                description=data.description or "",
                design_system=data.design_system,
                created_at=datetime.fromisoformat(now_iso),
                updated_at=datetime.fromisoformat(now_iso),
            )

        except sqlite3.Error as e:
            logger.error(f"Failed to create project {data.name!r}: {e}")
            raise
        finally:
            conn.close()

    def update_project(self, project_id: int, data: ProjectUpdate) -> Project:
        """
        Update an existing project.

        Args:
            project_id: Project identifier
            data: Fields to change; ``None`` keeps the stored value

        Returns:
            Updated Project object

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        current = self.get_project(project_id)
        if not current:
            raise ProjectNotFoundError(project_id)

        new_name = data.name if data.name is not None else current.name
        new_description = data.description if data.description is not None else current.description
        new_design = data.design_system if data.design_system is not None else current.design_system
        now_iso = _utcnow_iso()

        conn = self.db.connect()
        try:
            with conn:
                conn.execute(
                    """
                    UPDATE projects
                    SET name = ?, description = ?, design_system = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        new_name,
                        new_description,
                        json.dumps(new_design) if new_design is not None else None,
                        now_iso,
                        project_id,
                    ),
                )

            logger.info(f"Updated project {project_id}")

            return Project(
                id=project_id,
                name=new_name,
                description=new_description,
                design_system=new_design,
                created_at=current.created_at,
                updated_at=datetime.fromisoformat(now_iso),
            )

        except sqlite3.Error as e:
            logger.error(f"Failed to update project {project_id}: {e}")
            raise
        finally:
            conn.close()

    def delete_project(self, project_id: int) -> None:
        """
        Delete a project, its pages document, its edit sessions and its HTML cache.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        if not self.project_exists(project_id):
            raise ProjectNotFoundError(project_id)

        conn = self.db.connect()
        try:
            with conn:
                conn.execute("DELETE FROM edit_sessions WHERE project_id = ?", (project_id,))
                conn.execute("DELETE FROM project_pages WHERE project_id = ?", (project_id,))
                conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        except sqlite3.Error as e:
            logger.error(f"Failed to delete project {project_id}: {e}")
            raise
        finally:
            conn.close()

        if self.html_caches_dir is not None:
            project_dir = self.html_caches_dir / str(project_id)
            if project_dir.exists():
                shutil.rmtree(project_dir, ignore_errors=True)

        logger.info(f"Deleted project {project_id}")

    def get_pages(self, project_id: Optional[int]) -> dict[str, Any]:
        """
        Get the pages.json document of a project.

        Unknown or missing projects yield the default document, so a fresh
        client always has something to render.
        """
        if not project_id:
            return default_pages_config()

        project = self.get_project(project_id)
        if not project:
            return default_pages_config()

        conn = self.db.connect()
        try:
            cursor = conn.execute(
                "SELECT pages_json FROM project_pages WHERE project_id = ? ORDER BY id DESC LIMIT 1",
                (project_id,),
            )
            row = cursor.fetchone()
        finally:
            conn.close()

        pages = _load_json(row["pages_json"]) if row else None
        if isinstance(pages, dict):
            return pages
        return default_pages_config(project.name)

    def save_pages(self, project_id: int, pages_config: dict[str, Any]) -> None:
        """
        Replace the pages.json document of a project.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        if not self.project_exists(project_id):
            raise ProjectNotFoundError(project_id)

        now_iso = _utcnow_iso()
        payload = json.dumps(pages_config)
        conn = self.db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE project_pages SET pages_json = ?, updated_at = ? WHERE project_id = ?",
                    (payload, now_iso, project_id),
                )
                if cursor.rowcount == 0:
                    conn.execute(
                        "INSERT INTO project_pages (project_id, pages_json, updated_at) VALUES (?, ?, ?)",
                        (project_id, payload, now_iso),
                    )
        finally:
            conn.close()

        logger.debug(f"Saved pages.json for project {project_id}")


__all__ = ["ProjectService", "ProjectNotFoundError"]
