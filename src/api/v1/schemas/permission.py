"""Pydantic schemas for the permission check API."""

from typing import Optional
from uuid import UUID

from pydantic import Field

from api.v1.schemas.common import CamelModel


class PermissionCheckRequest(CamelModel):
    """``action="permissions"`` asks for the bulk object of the resource."""

    type: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    resource_id: Optional[UUID] = None
    workspace_id: Optional[UUID] = None


class PermissionCheckResponse(CamelModel):
    allowed: bool


class WorkspacePermissionsSchema(CamelModel):
    can_create_project: bool


class ProjectPermissionsSchema(CamelModel):
    can_view: bool
    can_edit: bool
    can_delete: bool
    can_manage_members: bool
    can_create_tasks: bool


class TaskPermissionsSchema(CamelModel):
    can_view: bool
    can_edit: bool
    can_delete: bool
    can_assign: bool
    can_change_status: bool
    can_verify: bool
    can_comment: bool


class BulkPermissionsResponse(CamelModel):
    workspace: Optional[WorkspacePermissionsSchema] = None
    project: Optional[ProjectPermissionsSchema] = None
    task: Optional[TaskPermissionsSchema] = None
