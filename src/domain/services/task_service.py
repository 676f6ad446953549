"""Task service layer with business logic."""

from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import structlog

from core.exceptions import TaskNotFoundError, ValidationFailedError
from domain.entities.notification import NotificationType
from domain.entities.permission import Action, ResourceType
from domain.entities.task import Task, TaskPriority, TaskStatus
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.assignment_service import AssignmentService
from domain.services.notification_service import NotificationService
from domain.services.permission_service import PermissionService

logger = structlog.get_logger()

_UNSET: Any = object()


class TaskService:
    """Service layer for Task business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        permission_service: PermissionService | None = None,
        assignment_service: AssignmentService | None = None,
        notification_service: Optional["NotificationService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._permissions = permission_service or PermissionService(uow_factory)
        self._assignments = assignment_service or AssignmentService(
            uow_factory, self._permissions, notification_service
        )
        self._notification = notification_service

    async def list_for_project(self, project_id: UUID, user_id: UUID) -> list[Task]:
        """Live tasks of a project. Requires project view."""
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.PROJECT, project_id, Action.VIEW
            )
            return await uow.tasks.get_for_project(project_id)  # type: ignore[no-any-return]

    async def get(self, task_id: UUID, user_id: UUID) -> Task:
        async with self._uow_factory() as uow:
            await self._permissions.authorize(uow, user_id, ResourceType.TASK, task_id, Action.VIEW)
            return await self._load(uow, task_id)

    async def create(
        self,
        project_id: UUID,
        user_id: UUID,
        title: str,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        status: TaskStatus = TaskStatus.TODO,
        due_date: datetime | None = None,
        assignee_ids: list[UUID] | None = None,
    ) -> Task:
        """Create a task, optionally with initial assignees.

        Initial assignees follow the same rules as the assignment endpoint:
        assigning anyone but yourself needs the assign capability, which for
        a new task means project owner or admin.
        """
        title = title.strip()
        if not title:
            raise ValidationFailedError("title", "Title must not be empty")

        async with self._uow_factory() as uow:
            project_access = await self._permissions.authorize(
                uow, user_id, ResourceType.PROJECT, project_id, Action.CREATE_TASK
            )

            task = Task(
                project_id=project_id,
                creator_id=user_id,
                title=title,
                description=description,
                priority=priority,
                due_date=due_date,
            )
            if status != TaskStatus.TODO:
                task.set_status(status)
            created = await uow.tasks.create(task)

            targets = list(dict.fromkeys(assignee_ids or []))
            if targets:
                await self._permissions.authorize(
                    uow,
                    user_id,
                    ResourceType.TASK,
                    created.id,
                    Action.ASSIGN,
                    targets_only_self=targets == [user_id],
                )
                members = await uow.workspaces.get_member_ids(project_access.workspace_id, targets)
                outsiders = [str(u) for u in targets if u not in members]
                if outsiders:
                    raise ValidationFailedError(
                        "assigneeIds",
                        f"Users are not members of this workspace: {', '.join(outsiders)}",
                    )
                await self._assignments.assign_in_uow(uow, created, user_id, targets)

            await uow.commit()
            logger.info("task_created", task_id=str(created.id), project_id=str(project_id))
            return created

    async def update(
        self,
        task_id: UUID,
        user_id: UUID,
        title: str | None = None,
        description: Any = _UNSET,
        priority: TaskPriority | None = None,
        due_date: Any = _UNSET,
    ) -> Task:
        """Edit scalar fields. ``assignee_id`` is not editable here."""
        async with self._uow_factory() as uow:
            await self._permissions.authorize(uow, user_id, ResourceType.TASK, task_id, Action.EDIT)
            task = await self._load(uow, task_id)

            changed: list[str] = []
            if title is not None:
                title = title.strip()
                if not title:
                    raise ValidationFailedError("title", "Title must not be empty")
                if title != task.title:
                    task.title = title
                    changed.append("title")
            if description is not _UNSET and description != task.description:
                task.description = description
                changed.append("description")
            if priority is not None and priority != task.priority:
                task.priority = priority
                changed.append("priority")
            if due_date is not _UNSET and due_date != task.due_date:
                task.due_date = due_date
                changed.append("due_date")

            if not changed:
                return task

            task.updated_at = datetime.utcnow()
            updated = await uow.tasks.update(task)

            await self._notify_assignees(
                uow,
                task,
                user_id,
                NotificationType.TASK_UPDATED,
                title="Task updated",
                message=f'"{task.title}" was updated',
                extra={"changed": ", ".join(changed)},
            )

            await uow.commit()
            return updated  # type: ignore[no-any-return]

    async def change_status(self, task_id: UUID, user_id: UUID, status: TaskStatus) -> Task:
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.TASK, task_id, Action.CHANGE_STATUS
            )
            task = await self._load(uow, task_id)
            if task.status == status:
                return task

            task.set_status(status)
            updated = await uow.tasks.update(task)

            if status == TaskStatus.DONE and self._notification:
                await self._notification.enqueue(
                    uow,
                    NotificationType.TASK_COMPLETED,
                    recipient_ids=[task.creator_id],
                    title="Task completed",
                    message=f'"{task.title}" was marked as done',
                    actor_id=user_id,
                    data=self._task_data(task),
                )

            await uow.commit()
            return updated  # type: ignore[no-any-return]

    async def delete(self, task_id: UUID, user_id: UUID) -> None:
        """Soft-delete. The task stays restorable by its creator or admins."""
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.TASK, task_id, Action.DELETE
            )
            task = await self._load(uow, task_id)
            task.soft_delete()
            await uow.tasks.update(task)

            await self._notify_assignees(
                uow,
                task,
                user_id,
                NotificationType.TASK_DELETED,
                title="Task deleted",
                message=f'"{task.title}" was deleted',
            )

            await uow.commit()
            logger.info("task_deleted", task_id=str(task_id), actor_id=str(user_id))

    async def restore(self, task_id: UUID, user_id: UUID) -> Task:
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.TASK, task_id, Action.RESTORE
            )
            task = await self._load(uow, task_id)
            task.restore()
            restored = await uow.tasks.update(task)
            await uow.commit()
            return restored  # type: ignore[no-any-return]

    # --- Internal helpers ---

    async def _notify_assignees(
        self,
        uow: IUnitOfWork,
        task: Task,
        actor_id: UUID,
        type: NotificationType,
        title: str,
        message: str,
        extra: dict[str, str] | None = None,
    ) -> None:
        if not self._notification:
            return
        recipients = [a.user_id for a in await uow.tasks.get_assignees(task.id)]
        await self._notification.enqueue(
            uow,
            type,
            recipient_ids=recipients,
            title=title,
            message=message,
            actor_id=actor_id,
            data={**self._task_data(task), **(extra or {})},
        )

    @staticmethod
    async def _load(uow: IUnitOfWork, task_id: UUID) -> Task:
        task = await uow.tasks.get(task_id)
        if not task:
            raise TaskNotFoundError(str(task_id))
        return task

    @staticmethod
    def _task_data(task: Task) -> dict[str, str]:
        return {"task_id": str(task.id), "project_id": str(task.project_id)}
