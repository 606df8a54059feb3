"""Edit session models: persisted rows, ownership states and wire payloads."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# A session silent for longer than this is treated as abandoned
SESSION_TIMEOUT = timedelta(minutes=5)

# Shown to other editors when the owner registered without a name
UNNAMED_EDITOR_LABEL = "Another user"


class EditSession(BaseModel):
    """Exclusive editing claim of one client tab over one project."""

    project_id: int = Field(..., description="Owned project")
    session_id: str = Field(..., description="Opaque per-tab token")
    editor_name: Optional[str] = Field(None, description="Display label of the editor")
    started_at: datetime = Field(..., description="When ownership was first acquired")
    last_heartbeat: datetime = Field(..., description="Most recent liveness signal")

    @property
    def display_name(self) -> str:
        return self.editor_name or UNNAMED_EDITOR_LABEL


# Ownership of a project as seen by one caller. Exactly one of these is
# returned by EditSessionService.resolve().


@dataclass(frozen=True)
class Unowned:
    """No live session exists for the project."""


@dataclass(frozen=True)
class OwnedBySelf:
    """The live session belongs to the caller."""

    session: EditSession


@dataclass(frozen=True)
class OwnedByOther:
    """A different session holds the project."""

    session: EditSession


Ownership = Union[Unowned, OwnedBySelf, OwnedByOther]


# ---------------------------------------------------------------------------
# Wire payloads (camelCase on the wire, snake_case in Python)
# ---------------------------------------------------------------------------


class SessionRequest(BaseModel):
    """Identifies one client session on one project."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: int = Field(..., alias="projectId", gt=0, description="Target project")
    session_id: str = Field(..., alias="sessionId", min_length=1, max_length=200, description="Client session token")


class SessionClaimRequest(SessionRequest):
    """Register / force-acquire payload."""

    editor_name: Optional[str] = Field(
        None, alias="editorName", max_length=100, description="Display label; server default when omitted"
    )


class RegisterResponse(BaseModel):
    """Outcome of register and force-acquire."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    is_new_editor: bool = Field(..., alias="isNewEditor")
    current_editor: Optional[str] = Field(None, alias="currentEditor")
    started_at: Optional[datetime] = Field(
        None, alias="startedAt", description="Start time of the other editor's session on contention"
    )


class CheckResponse(BaseModel):
    """Whether the caller may save without overriding someone."""

    model_config = ConfigDict(populate_by_name=True)

    is_current_editor: bool = Field(..., alias="isCurrentEditor")
    current_editor: Optional[str] = Field(None, alias="currentEditor")


class SuccessResponse(BaseModel):
    """Acknowledgement for fire-and-forget operations."""

    success: bool = True


__all__ = [
    "SESSION_TIMEOUT",
    "UNNAMED_EDITOR_LABEL",
    "EditSession",
    "Unowned",
    "OwnedBySelf",
    "OwnedByOther",
    "Ownership",
    "SessionRequest",
    "SessionClaimRequest",
    "RegisterResponse",
    "CheckResponse",
    "SuccessResponse",
]
