"""Permission check API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import InitializedUser
from api.v1.dependencies import get_permission_service
from api.v1.schemas.permission import (
    BulkPermissionsResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    ProjectPermissionsSchema,
    TaskPermissionsSchema,
    WorkspacePermissionsSchema,
)
from core.rate_limit import limiter
from domain.entities.permission import BulkPermissions
from domain.services.permission_service import BULK_ACTION, PermissionService

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.post(
    "",
    response_model=PermissionCheckResponse | BulkPermissionsResponse,
    summary="Check a single permission",
    responses={
        200: {"description": "Decision, or the bulk object for action=permissions"},
        400: {"description": "Missing or invalid type, action or resource id"},
        404: {"description": "Resource not found"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def check_permission(
    request: Request,
    body: PermissionCheckRequest,
    user: InitializedUser,
    service: PermissionService = Depends(get_permission_service),
) -> PermissionCheckResponse | BulkPermissionsResponse:
    """Answer whether the caller may perform ``action`` on a project or task."""
    if body.action == BULK_ACTION:
        bulk = await service.bulk_for(user.id, body.type, body.resource_id)
        return _bulk_response(bulk)

    allowed = await service.check(
        user_id=user.id,
        resource_type=body.type,
        action=body.action,
        resource_id=body.resource_id,
        workspace_id=body.workspace_id,
    )
    return PermissionCheckResponse(allowed=allowed)


@router.get(
    "",
    response_model=BulkPermissionsResponse,
    response_model_exclude_none=True,
    summary="Bulk permissions for UI pre-filtering",
    responses={404: {"description": "Resource not found"}},
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_permissions(
    request: Request,
    user: InitializedUser,
    project_id: UUID | None = Query(None, alias="projectId"),
    task_id: UUID | None = Query(None, alias="taskId"),
    workspace_id: UUID | None = Query(None, alias="workspaceId"),
    service: PermissionService = Depends(get_permission_service),
) -> BulkPermissionsResponse:
    """Permission objects for whichever of project, task and workspace are given."""
    bulk = await service.bulk(
        user.id,
        project_id=project_id,
        task_id=task_id,
        workspace_id=workspace_id,
    )
    return _bulk_response(bulk)


def _bulk_response(bulk: BulkPermissions) -> BulkPermissionsResponse:
    return BulkPermissionsResponse(
        workspace=(
            WorkspacePermissionsSchema.model_validate(bulk.workspace, from_attributes=True)
            if bulk.workspace
            else None
        ),
        project=(
            ProjectPermissionsSchema.model_validate(bulk.project, from_attributes=True)
            if bulk.project
            else None
        ),
        task=(
            TaskPermissionsSchema.model_validate(bulk.task, from_attributes=True)
            if bulk.task
            else None
        ),
    )
