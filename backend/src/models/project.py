"""Project-related Pydantic models for the project registry."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TARGET_PLATFORMS = ["flutter"]
DEFAULT_APP_NAME = "My App"


def default_pages_config(project_name: str = DEFAULT_APP_NAME) -> dict[str, Any]:
    """
    Build the empty pages.json document for a project.

    Args:
        project_name: Name written into the ``projectName`` field

    Returns:
        A fresh dict; callers may mutate it freely
    """
    return {
        "projectName": project_name,
        "targetPlatform": list(DEFAULT_TARGET_PLATFORMS),
        "designSystem": {},
        "sharedComponents": [],
        "htmlFiles": [],
        "pageGroups": [],
    }


class ProjectBase(BaseModel):
    """Base project fields shared between create/update."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100, description="Human-readable project name")
    description: Optional[str] = Field("", max_length=500, description="Optional project description")


class ProjectCreate(ProjectBase):
    """Request payload to create a new project."""

    design_system: Optional[dict[str, Any]] = Field(
        None,
        alias="designSystem",
        description="Design tokens (colors, typography, spacing) as a JSON object",
    )


class ProjectUpdate(BaseModel):
    """Request payload to update a project. Omitted fields keep their value."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Updated project name")
    description: Optional[str] = Field(None, max_length=500, description="Updated project description")
    design_system: Optional[dict[str, Any]] = Field(
        None, alias="designSystem", description="Updated design tokens"
    )


class Project(ProjectBase):
    """Complete project model with all fields."""

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Shop App",
                "description": "Checkout flow mockups",
                "designSystem": {"colors": {"primary": "#3366ff"}},
                "createdAt": "2025-01-10T09:00:00+00:00",
                "updatedAt": "2025-01-15T14:30:00+00:00",
            }
        },
    )

    id: int = Field(..., description="Unique project identifier")
    design_system: Optional[dict[str, Any]] = Field(None, alias="designSystem")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="Last update timestamp")


class ProjectList(BaseModel):
    """Response model for listing projects."""

    projects: list[Project] = Field(default_factory=list, description="Projects, most recently updated first")


class ProjectCreated(BaseModel):
    """Response for a successful project creation."""

    success: bool = True
    project: Project


__all__ = [
    "Project",
    "ProjectBase",
    "ProjectCreate",
    "ProjectCreated",
    "ProjectUpdate",
    "ProjectList",
    "default_pages_config",
    "DEFAULT_APP_NAME",
]
