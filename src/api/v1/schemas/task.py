"""Pydantic schemas for Task, Assignee and Comment API."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.common import CamelModel
from domain.entities.task import TaskPriority, TaskStatus

# --- Tasks ---


class TaskCreate(BaseModel):
    """Schema for creating a Task. ``assignee_ids`` are assigned atomically."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[datetime] = None
    assignee_ids: list[UUID] = Field(default_factory=list, max_length=50)


class TaskUpdate(BaseModel):
    """Partial update. Explicit nulls clear description and due_date."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskResponse(BaseModel):
    """Schema for Task response. ``assignee_id`` mirrors one assignee."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "project_id": "223e4567-e89b-12d3-a456-426614174000",
                "creator_id": "323e4567-e89b-12d3-a456-426614174000",
                "assignee_id": "423e4567-e89b-12d3-a456-426614174000",
                "title": "Send proposal to Acme",
                "description": None,
                "status": "IN_PROGRESS",
                "priority": "HIGH",
                "due_date": "2026-02-10T17:00:00",
                "created_at": "2026-02-01T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
                "completed_at": None,
                "deleted_at": None,
            }
        },
    )

    id: UUID
    project_id: UUID
    creator_id: UUID
    assignee_id: Optional[UUID]
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime]
    deleted_at: Optional[datetime]


class TaskListResponse(BaseModel):
    data: list[TaskResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class TaskDetailResponse(BaseModel):
    data: TaskResponse


# --- Assignees ---


class UserSummary(CamelModel):
    id: UUID
    email: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class AssigneeResponse(CamelModel):
    id: UUID
    task_id: UUID
    user_id: UUID
    assigned_by: UUID
    assigned_at: datetime
    user: Optional[UserSummary] = None
    assigner: Optional[UserSummary] = None


class AssigneeListResponse(CamelModel):
    assignees: list[AssigneeResponse]


class AssigneesRequest(CamelModel):
    """Body of POST and DELETE /tasks/{id}/assignees."""

    user_ids: list[UUID] = Field(..., max_length=50)


class AssignResponse(CamelModel):
    message: str
    assignments: list[AssigneeResponse]


class UnassignResponse(CamelModel):
    message: str
    removed_count: int


# --- Comments ---


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class CommentResponse(BaseModel):
    id: UUID
    task_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    author_name: Optional[str] = None


class CommentListResponse(BaseModel):
    data: list[CommentResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
