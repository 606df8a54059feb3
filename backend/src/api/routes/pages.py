"""HTTP API routes for the per-project pages.json document."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from ...models.edit_session import SuccessResponse
from ...services.project_service import ProjectNotFoundError, ProjectService
from .projects import get_project_service

router = APIRouter(prefix="/api", tags=["pages"])


@router.get("/pages", response_model=dict[str, Any])
async def get_pages(
    project_id: Optional[int] = Query(None, alias="projectId"),
    project_service: ProjectService = Depends(get_project_service),
):
    """Return the project's pages.json, or a default document."""
    return project_service.get_pages(project_id)


@router.post("/pages", response_model=SuccessResponse)
async def save_pages(
    pages_config: dict[str, Any] = Body(...),
    project_id: Optional[int] = Query(None, alias="projectId"),
    project_service: ProjectService = Depends(get_project_service),
):
    """Replace the project's pages.json."""
    if not project_id:
        raise HTTPException(
            status_code=400,
            detail={"error": "project_required", "message": "Select a project before saving"},
        )
    try:
        project_service.save_pages(project_id, pages_config)
    except ProjectNotFoundError:
        raise HTTPException(
            status_code=404,
            detail={"error": "project_not_found", "message": f"Project not found: {project_id}"},
        )
    return SuccessResponse()


__all__ = ["router"]
