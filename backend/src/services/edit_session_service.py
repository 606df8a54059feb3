"""Edit session coordinator: who may edit a project right now.

Ownership is advisory. ``register`` never blocks: it either records the
caller as owner or reports the current owner, and ``force_acquire`` lets a
human override a stale or crashed tab. Every public operation derives its
answer from ``resolve``, which purges expired sessions before reading.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..models.edit_session import (
    CheckResponse,
    Ownership,
    OwnedByOther,
    OwnedBySelf,
    RegisterResponse,
    SuccessResponse,
    Unowned,
)
from .edit_session_store import EditSessionStore
from .project_service import ProjectNotFoundError, ProjectService

logger = logging.getLogger(__name__)


class EditSessionService:
    """Protocol surface used by the session routes."""

    def __init__(self, store: EditSessionStore, projects: ProjectService):
        self.store = store
        self.projects = projects

    def _require_project(self, project_id: int) -> None:
        if not self.projects.project_exists(project_id):
            raise ProjectNotFoundError(project_id)

    def resolve(self, project_id: int, session_id: str) -> Ownership:
        """Classify the project's live session relative to the caller."""
        active = self.store.get_active(project_id)
        if active is None:
            return Unowned()
        if active.session_id == session_id:
            return OwnedBySelf(active)
        return OwnedByOther(active)

    def register(self, project_id: int, session_id: str, editor_name: Optional[str]) -> RegisterResponse:
        """
        Claim the project for the caller unless another live session holds it.

        Raises:
            ProjectNotFoundError: If the project does not exist; no session
                state is read or written in that case.
        """
        self._require_project(project_id)

        ownership = self.resolve(project_id, session_id)
        if isinstance(ownership, OwnedByOther):
            other = ownership.session
            logger.info(
                f"Session {session_id} found project {project_id} held by "
                f"{other.display_name!r} ({other.session_id})"
            )
            return RegisterResponse(
                is_new_editor=False,
                current_editor=other.display_name,
                started_at=other.started_at,
            )

        self.store.upsert_own(project_id, session_id, editor_name)
        return RegisterResponse(is_new_editor=True, current_editor=editor_name)

    def heartbeat(self, project_id: int, session_id: str) -> SuccessResponse:
        """Renew the caller's session. Unknown sessions are ignored."""
        if not self.store.heartbeat(project_id, session_id):
            logger.debug(f"Heartbeat for unknown session {session_id} on project {project_id}")
        return SuccessResponse()

    def check(self, project_id: int, session_id: str) -> CheckResponse:
        """Tell the caller whether saving now would override another editor."""
        ownership = self.resolve(project_id, session_id)
        if isinstance(ownership, Unowned):
            return CheckResponse(is_current_editor=True, current_editor=None)
        return CheckResponse(
            is_current_editor=isinstance(ownership, OwnedBySelf),
            current_editor=ownership.session.display_name,
        )

    def release(self, project_id: int, session_id: str) -> SuccessResponse:
        """Give up the caller's session; harmless when the caller owns nothing."""
        self.store.release(project_id, session_id)
        return SuccessResponse()

    def force_acquire(self, project_id: int, session_id: str, editor_name: Optional[str]) -> RegisterResponse:
        """
        Evict whoever holds the project and install the caller.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        self._require_project(project_id)

        ownership = self.resolve(project_id, session_id)
        if isinstance(ownership, OwnedByOther):
            logger.warning(
                f"Session {session_id} ({editor_name!r}) took over project {project_id} "
                f"from {ownership.session.display_name!r} ({ownership.session.session_id})"
            )

        self.store.force_replace(project_id, session_id, editor_name)
        return RegisterResponse(is_new_editor=True, current_editor=editor_name)


__all__ = ["EditSessionService"]
