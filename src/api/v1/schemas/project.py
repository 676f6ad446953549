"""Pydantic schemas for Project API."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

_COLOR_PATTERN = "^#[0-9A-Fa-f]{6}$"


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    color: Optional[str] = Field(None, pattern=_COLOR_PATTERN)


class ProjectUpdate(BaseModel):
    """All fields optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    color: Optional[str] = Field(None, pattern=_COLOR_PATTERN)


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    owner_id: UUID
    name: str
    description: Optional[str]
    color: str
    created_at: datetime
    updated_at: datetime


class ProjectListResponse(BaseModel):
    data: list[ProjectResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class ProjectDetailResponse(BaseModel):
    data: ProjectResponse


class ProjectMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    role: str
    added_at: datetime
    added_by: Optional[UUID] = None


class ProjectMemberListResponse(BaseModel):
    data: list[ProjectMemberResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class AddProjectMemberRequest(BaseModel):
    user_id: UUID
    role: str = Field("member", pattern="^(admin|member)$")


class UpdateProjectMemberRoleRequest(BaseModel):
    role: str = Field(..., pattern="^(admin|member)$")
