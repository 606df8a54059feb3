"""Pydantic models for data validation and serialization."""

from .edit_session import (
    CheckResponse,
    EditSession,
    OwnedByOther,
    OwnedBySelf,
    Ownership,
    RegisterResponse,
    SessionClaimRequest,
    SessionRequest,
    SuccessResponse,
    Unowned,
)
from .project import Project, ProjectCreate, ProjectList, ProjectUpdate

__all__ = [
    "EditSession",
    "Ownership",
    "Unowned",
    "OwnedBySelf",
    "OwnedByOther",
    "SessionRequest",
    "SessionClaimRequest",
    "RegisterResponse",
    "CheckResponse",
    "SuccessResponse",
    "Project",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectList",
]
