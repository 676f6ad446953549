"""Project API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import InitializedUser
from api.v1.dependencies import get_project_service
from api.v1.schemas.project import (
    AddProjectMemberRequest,
    ProjectCreate,
    ProjectDetailResponse,
    ProjectListResponse,
    ProjectMemberListResponse,
    ProjectMemberResponse,
    ProjectResponse,
    ProjectUpdate,
    UpdateProjectMemberRoleRequest,
)
from core.rate_limit import limiter
from domain.entities.project import Project, ProjectMember, ProjectRole
from domain.services.project_service import ProjectService

# Projects listed and created under their workspace
workspace_projects_router = APIRouter(
    prefix="/workspaces/{workspace_id}/projects",
    tags=["projects"],
)

router = APIRouter(prefix="/projects", tags=["projects"])


@workspace_projects_router.get(
    "",
    response_model=ProjectListResponse,
    summary="List projects in a workspace",
    responses={404: {"description": "Workspace not found or not a member"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_projects(
    request: Request,
    workspace_id: UUID,
    user: InitializedUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectListResponse:
    """Projects visible to the caller: all of them for workspace admins."""
    projects = await service.list_for_workspace(workspace_id, user.id)
    data = [ProjectResponse.model_validate(p) for p in projects]
    return ProjectListResponse(data=data, meta={"total": len(data)})


@workspace_projects_router.post(
    "",
    response_model=ProjectDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
    responses={
        201: {"description": "Project created"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Workspace not found or not a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_project(
    request: Request,
    workspace_id: UUID,
    body: ProjectCreate,
    user: InitializedUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetailResponse:
    """Create a project. The creator becomes its owner."""
    project = await service.create(
        workspace_id=workspace_id,
        user_id=user.id,
        name=body.name,
        description=body.description,
        color=body.color,
    )
    return _detail(project)


@router.get(
    "/{project_id}",
    response_model=ProjectDetailResponse,
    summary="Get project",
    responses={404: {"description": "Project not found"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_project(
    request: Request,
    project_id: UUID,
    user: InitializedUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetailResponse:
    project = await service.get(project_id, user.id)
    return _detail(project)


@router.patch(
    "/{project_id}",
    response_model=ProjectDetailResponse,
    summary="Update project",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_project(
    request: Request,
    project_id: UUID,
    body: ProjectUpdate,
    user: InitializedUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectDetailResponse:
    project = await service.update(
        project_id=project_id,
        user_id=user.id,
        name=body.name,
        description=body.description,
        color=body.color,
    )
    return _detail(project)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    responses={
        204: {"description": "Project and its tasks deleted"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_project(
    request: Request,
    project_id: UUID,
    user: InitializedUser,
    service: ProjectService = Depends(get_project_service),
) -> None:
    """Delete a project. Allowed for the project owner and workspace admins."""
    await service.delete(project_id, user.id)
    return None


# --- Member Management ---


@router.get(
    "/{project_id}/members",
    response_model=ProjectMemberListResponse,
    summary="List project members",
    responses={404: {"description": "Project not found"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_project_members(
    request: Request,
    project_id: UUID,
    user: InitializedUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectMemberListResponse:
    members = await service.get_members(project_id, user.id)
    data = [_build_member_response(m) for m in members]
    return ProjectMemberListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/{project_id}/members",
    response_model=ProjectMemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add project member",
    responses={
        400: {"description": "User is not a workspace member"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Project not found"},
        409: {"description": "User is already a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def add_project_member(
    request: Request,
    project_id: UUID,
    body: AddProjectMemberRequest,
    user: InitializedUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectMemberResponse:
    """Add a workspace member to the project."""
    member = await service.add_member(
        project_id=project_id,
        user_id=user.id,
        target_user_id=body.user_id,
        role=ProjectRole(body.role),
    )
    return _build_member_response(member)


@router.patch(
    "/{project_id}/members/{member_user_id}",
    response_model=ProjectMemberResponse,
    summary="Update project member role",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Project or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_project_member_role(
    request: Request,
    project_id: UUID,
    member_user_id: UUID,
    body: UpdateProjectMemberRoleRequest,
    user: InitializedUser,
    service: ProjectService = Depends(get_project_service),
) -> ProjectMemberResponse:
    member = await service.update_member_role(
        project_id=project_id,
        user_id=user.id,
        target_user_id=member_user_id,
        role=ProjectRole(body.role),
    )
    return _build_member_response(member)


@router.delete(
    "/{project_id}/members/{member_user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove project member",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Project or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_project_member(
    request: Request,
    project_id: UUID,
    member_user_id: UUID,
    user: InitializedUser,
    service: ProjectService = Depends(get_project_service),
) -> None:
    """Remove a member, or leave the project."""
    await service.remove_member(project_id, user.id, member_user_id)
    return None


def _detail(project: Project) -> ProjectDetailResponse:
    return ProjectDetailResponse(data=ProjectResponse.model_validate(project))


def _build_member_response(member: ProjectMember) -> ProjectMemberResponse:
    return ProjectMemberResponse(
        user_id=member.user_id,
        role=member.role.value,
        added_at=member.added_at,
        added_by=member.added_by,
    )
