"""HTTP API routes for edit session coordination.

Contention is reported in the payload, never as an error status. Only an
unknown project on register/force-acquire produces a 404.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models.edit_session import (
    CheckResponse,
    RegisterResponse,
    SessionClaimRequest,
    SessionRequest,
    SuccessResponse,
)
from ...services.config import get_config
from ...services.edit_session_service import EditSessionService
from ...services.edit_session_store import EditSessionStore
from ...services.project_service import ProjectNotFoundError, ProjectService
from .projects import get_project_service

router = APIRouter(prefix="/api/session", tags=["sessions"])


def get_edit_session_service(
    project_service: ProjectService = Depends(get_project_service),
) -> EditSessionService:
    return EditSessionService(EditSessionStore(project_service.db), project_service)


def _editor_name(request: SessionClaimRequest) -> str:
    name = (request.editor_name or "").strip()
    return name or get_config().default_editor_name


def _project_not_found(e: ProjectNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"error": "project_not_found", "message": str(e)},
    )


@router.post("/register", response_model=RegisterResponse, response_model_exclude_none=True)
async def register_session(
    request: SessionClaimRequest,
    service: EditSessionService = Depends(get_edit_session_service),
):
    """Register or renew the caller's edit session."""
    try:
        return service.register(request.project_id, request.session_id, _editor_name(request))
    except ProjectNotFoundError as e:
        raise _project_not_found(e)


@router.post("/heartbeat", response_model=SuccessResponse)
async def heartbeat_session(
    request: SessionRequest,
    service: EditSessionService = Depends(get_edit_session_service),
):
    """Keep the caller's session alive."""
    return service.heartbeat(request.project_id, request.session_id)


@router.get("/check", response_model=CheckResponse)
async def check_session(
    project_id: int = Query(..., alias="projectId", gt=0),
    session_id: str = Query(..., alias="sessionId", min_length=1, max_length=200),
    service: EditSessionService = Depends(get_edit_session_service),
):
    """Report whether the caller is the current editor."""
    return service.check(project_id, session_id)


@router.post("/release", response_model=SuccessResponse)
async def release_session(
    request: SessionRequest,
    service: EditSessionService = Depends(get_edit_session_service),
):
    """Release the caller's session."""
    return service.release(request.project_id, request.session_id)


@router.post("/force-acquire", response_model=RegisterResponse, response_model_exclude_none=True)
async def force_acquire_session(
    request: SessionClaimRequest,
    service: EditSessionService = Depends(get_edit_session_service),
):
    """Take the project over from any current editor."""
    try:
        return service.force_acquire(request.project_id, request.session_id, _editor_name(request))
    except ProjectNotFoundError as e:
        raise _project_not_found(e)


__all__ = ["router", "get_edit_session_service"]
