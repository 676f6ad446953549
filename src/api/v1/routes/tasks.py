"""Task, assignee and comment API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import InitializedUser
from api.v1.dependencies import get_assignment_service, get_comment_service, get_task_service
from api.v1.schemas.task import (
    AssigneeListResponse,
    AssigneeResponse,
    AssigneesRequest,
    AssignResponse,
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    TaskCreate,
    TaskDetailResponse,
    TaskListResponse,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
    UnassignResponse,
    UserSummary,
)
from core.rate_limit import limiter
from domain.entities.comment import CommentView
from domain.entities.profile import Profile
from domain.entities.task import Task, TaskAssigneeView
from domain.services.assignment_service import AssignmentService
from domain.services.comment_service import CommentService
from domain.services.task_service import TaskService

# Tasks listed and created under their project
project_tasks_router = APIRouter(
    prefix="/projects/{project_id}/tasks",
    tags=["tasks"],
)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@project_tasks_router.get(
    "",
    response_model=TaskListResponse,
    summary="List tasks in a project",
    responses={404: {"description": "Project not found"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_tasks(
    request: Request,
    project_id: UUID,
    user: InitializedUser,
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    """Non-deleted tasks of the project, oldest first."""
    tasks = await service.list_for_project(project_id, user.id)
    data = [TaskResponse.model_validate(t) for t in tasks]
    return TaskListResponse(data=data, meta={"total": len(data)})


@project_tasks_router.post(
    "",
    response_model=TaskDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
    responses={
        400: {"description": "Invalid title or assignee outside the workspace"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Project not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_task(
    request: Request,
    project_id: UUID,
    body: TaskCreate,
    user: InitializedUser,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    """Create a task, optionally assigning users in the same transaction."""
    task = await service.create(
        project_id=project_id,
        user_id=user.id,
        title=body.title,
        description=body.description,
        priority=body.priority,
        status=body.status,
        due_date=body.due_date,
        assignee_ids=body.assignee_ids,
    )
    return _detail(task)


@router.get(
    "/{task_id}",
    response_model=TaskDetailResponse,
    summary="Get task",
    responses={404: {"description": "Task not found"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_task(
    request: Request,
    task_id: UUID,
    user: InitializedUser,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    task = await service.get(task_id, user.id)
    return _detail(task)


@router.patch(
    "/{task_id}",
    response_model=TaskDetailResponse,
    summary="Update task",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_task(
    request: Request,
    task_id: UUID,
    body: TaskUpdate,
    user: InitializedUser,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    """Partial update; only fields present in the body change."""
    task = await service.update(task_id, user.id, **body.model_dump(exclude_unset=True))
    return _detail(task)


@router.patch(
    "/{task_id}/status",
    response_model=TaskDetailResponse,
    summary="Change task status",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def change_task_status(
    request: Request,
    task_id: UUID,
    body: TaskStatusUpdate,
    user: InitializedUser,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    task = await service.change_status(task_id, user.id, body.status)
    return _detail(task)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete task",
    responses={
        204: {"description": "Task moved to trash"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_task(
    request: Request,
    task_id: UUID,
    user: InitializedUser,
    service: TaskService = Depends(get_task_service),
) -> None:
    """Soft-delete a task. It can be restored later."""
    await service.delete(task_id, user.id)
    return None


@router.post(
    "/{task_id}/restore",
    response_model=TaskDetailResponse,
    summary="Restore a deleted task",
    responses={
        403: {"description": "Insufficient permissions"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def restore_task(
    request: Request,
    task_id: UUID,
    user: InitializedUser,
    service: TaskService = Depends(get_task_service),
) -> TaskDetailResponse:
    task = await service.restore(task_id, user.id)
    return _detail(task)


# --- Assignees ---


@router.get(
    "/{task_id}/assignees",
    response_model=AssigneeListResponse,
    summary="List task assignees",
    responses={404: {"description": "Task not found"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_assignees(
    request: Request,
    task_id: UUID,
    user: InitializedUser,
    service: AssignmentService = Depends(get_assignment_service),
) -> AssigneeListResponse:
    """Assignments with user and assigner details, earliest first."""
    views = await service.list_assignees(task_id, user.id)
    return AssigneeListResponse(assignees=[_build_assignee(v) for v in views])


@router.post(
    "/{task_id}/assignees",
    response_model=AssignResponse,
    summary="Assign users to a task",
    responses={
        200: {"description": "Users assigned (already-assigned users are skipped)"},
        400: {"description": "Empty list or user outside the workspace"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def add_assignees(
    request: Request,
    task_id: UUID,
    body: AssigneesRequest,
    user: InitializedUser,
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignResponse:
    """Assign users. Members may always assign themselves."""
    result = await service.add_assignees(task_id, user.id, body.user_ids)
    return AssignResponse(
        message=result.message,
        assignments=[_build_assignee(v) for v in result.assignments],
    )


@router.delete(
    "/{task_id}/assignees",
    response_model=UnassignResponse,
    summary="Unassign users from a task",
    responses={
        400: {"description": "Empty list"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def remove_assignees(
    request: Request,
    task_id: UUID,
    body: AssigneesRequest,
    user: InitializedUser,
    service: AssignmentService = Depends(get_assignment_service),
) -> UnassignResponse:
    """Unassign users. Members may always unassign themselves."""
    result = await service.remove_assignees(task_id, user.id, body.user_ids)
    return UnassignResponse(message=result.message, removed_count=result.removed_count)


# --- Comments ---


@router.get(
    "/{task_id}/comments",
    response_model=CommentListResponse,
    summary="List task comments",
    responses={404: {"description": "Task not found"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_comments(
    request: Request,
    task_id: UUID,
    user: InitializedUser,
    service: CommentService = Depends(get_comment_service),
) -> CommentListResponse:
    views = await service.list_for_task(task_id, user.id)
    data = [_build_comment(v) for v in views]
    return CommentListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/{task_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a task",
    responses={
        403: {"description": "Only the creator, assignees or project owner may comment"},
        404: {"description": "Task not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def add_comment(
    request: Request,
    task_id: UUID,
    body: CommentCreate,
    user: InitializedUser,
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    view = await service.add(task_id, user.id, body.content)
    return _build_comment(view)


def _detail(task: Task) -> TaskDetailResponse:
    return TaskDetailResponse(data=TaskResponse.model_validate(task))


def _summary(profile: Profile | None) -> UserSummary | None:
    if profile is None:
        return None
    return UserSummary(
        id=profile.id,
        email=profile.email,
        display_name=profile.display_name,
        avatar_url=profile.avatar_url,
    )


def _build_assignee(view: TaskAssigneeView) -> AssigneeResponse:
    a = view.assignment
    return AssigneeResponse(
        id=a.id,
        task_id=a.task_id,
        user_id=a.user_id,
        assigned_by=a.assigned_by,
        assigned_at=a.assigned_at,
        user=_summary(view.user),
        assigner=_summary(view.assigner),
    )


def _build_comment(view: CommentView) -> CommentResponse:
    c = view.comment
    return CommentResponse(
        id=c.id,
        task_id=c.task_id,
        user_id=c.user_id,
        content=c.content,
        created_at=c.created_at,
        author_name=view.author.label if view.author else None,
    )
