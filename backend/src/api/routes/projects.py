"""HTTP API routes for project management."""

from __future__ import annotations

import sqlite3

from fastapi import APIRouter, Depends, HTTPException

from ...models.project import (
    Project,
    ProjectCreate,
    ProjectCreated,
    ProjectUpdate,
    ProjectList,
)
from ...services.config import get_config
from ...services.database import DatabaseService
from ...services.project_service import ProjectNotFoundError, ProjectService

router = APIRouter(prefix="/api", tags=["projects"])


def get_project_service() -> ProjectService:
    config = get_config()
    return ProjectService(DatabaseService(config.db_path), html_caches_dir=config.html_caches_dir)


def _not_found(project_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"error": "project_not_found", "message": f"Project not found: {project_id}"},
    )


@router.get("/config", response_model=ProjectList)
async def get_studio_config(project_service: ProjectService = Depends(get_project_service)):
    """Project list used by the frontend on startup."""
    return ProjectList(projects=project_service.list_projects())


@router.get("/projects", response_model=ProjectList)
async def list_projects(project_service: ProjectService = Depends(get_project_service)):
    """List all projects."""
    return ProjectList(projects=project_service.list_projects())


@router.post("/projects", response_model=ProjectCreated, status_code=201)
async def create_project(
    data: ProjectCreate,
    project_service: ProjectService = Depends(get_project_service),
):
    """Create a new project."""
    try:
        project = project_service.create_project(data)
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Failed to create project: {str(e)}")
    return ProjectCreated(project=project)


@router.get("/projects/{project_id}", response_model=Project)
async def get_project(
    project_id: int,
    project_service: ProjectService = Depends(get_project_service),
):
    """Get a specific project."""
    project = project_service.get_project(project_id)
    if not project:
        raise _not_found(project_id)
    return project


@router.put("/projects/{project_id}", response_model=Project)
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    project_service: ProjectService = Depends(get_project_service),
):
    """Update a project's name, description or design system."""
    try:
        return project_service.update_project(project_id, data)
    except ProjectNotFoundError:
        raise _not_found(project_id)
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Failed to update project: {str(e)}")


@router.delete("/projects/{project_id}", status_code=204)
async def delete_project(
    project_id: int,
    project_service: ProjectService = Depends(get_project_service),
):
    """Delete a project and all its data."""
    try:
        project_service.delete_project(project_id)
    except ProjectNotFoundError:
        raise _not_found(project_id)
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete project: {str(e)}")


__all__ = ["router", "get_project_service"]
