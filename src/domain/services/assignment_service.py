"""Assignment service: the task assignee collection and its legacy mirror."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import TaskNotFoundError, ValidationFailedError
from domain.entities.notification import NotificationType
from domain.entities.permission import Action, ResourceType
from domain.entities.task import (
    Task,
    TaskAssignee,
    TaskAssigneeView,
    recompute_assignee_mirror,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.notification_service import NotificationService
from domain.services.permission_service import PermissionService

logger = structlog.get_logger()

ALREADY_ASSIGNED_MESSAGE = "All users are already assigned to this task"


@dataclass
class AssignResult:
    message: str
    assignments: list[TaskAssigneeView] = field(default_factory=list)


@dataclass
class UnassignResult:
    message: str
    removed_count: int = 0


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = str(exc.orig).lower() if exc.orig else ""
    return "unique" in orig or "duplicate" in orig


class AssignmentService:
    """Adds and removes task assignees.

    Every mutation recomputes ``Task.assignee_id`` in the same unit of work
    as the row changes. Notifications go through the outbox and cannot fail
    the assignment.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        permission_service: PermissionService | None = None,
        notification_service: Optional["NotificationService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._permissions = permission_service or PermissionService(uow_factory)
        self._notification = notification_service

    async def list_assignees(self, task_id: UUID, requester_id: UUID) -> list[TaskAssigneeView]:
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, requester_id, ResourceType.TASK, task_id, Action.VIEW
            )
            assignees = await uow.tasks.get_assignees(task_id)
            return await self._views(uow, assignees)

    async def add_assignees(
        self,
        task_id: UUID,
        requester_id: UUID,
        user_ids: list[UUID],
    ) -> AssignResult:
        """Assign users to a task. Already-assigned users are skipped.

        Raises:
            TaskNotFoundError: task missing or invisible to the requester.
            InsufficientPermissionsError: requester may not assign others.
            ValidationFailedError: empty list or a target outside the workspace.
        """
        targets = self._dedupe(user_ids)
        async with self._uow_factory() as uow:
            access = await self._permissions.authorize(
                uow,
                requester_id,
                ResourceType.TASK,
                task_id,
                Action.ASSIGN,
                targets_only_self=targets == [requester_id],
            )
            await self._require_workspace_members(uow, access.workspace_id, targets)

            task = await self._get_task(uow, task_id)
            created = await self.assign_in_uow(uow, task, requester_id, targets)

            if not created:
                return AssignResult(message=ALREADY_ASSIGNED_MESSAGE)

            await uow.commit()
            logger.info(
                "task_assignees_added",
                task_id=str(task_id),
                actor_id=str(requester_id),
                added=len(created),
            )
            views = await self._views(uow, created)
            return AssignResult(
                message=f"Assigned {len(created)} user(s) to task",
                assignments=views,
            )

    async def assign_in_uow(
        self,
        uow: IUnitOfWork,
        task: Task,
        requester_id: UUID,
        targets: list[UUID],
    ) -> list[TaskAssignee]:
        """Insert new assignments, refresh the mirror and queue notifications.

        Shared with task creation. The caller has already authorized the
        requester and validated workspace membership; the caller commits.
        """
        current = {a.user_id for a in await uow.tasks.get_assignees(task.id)}
        created: list[TaskAssignee] = []
        for user_id in targets:
            if user_id in current:
                continue
            try:
                async with uow.savepoint():
                    row = await uow.tasks.add_assignee(
                        TaskAssignee(task_id=task.id, user_id=user_id, assigned_by=requester_id)
                    )
            except IntegrityError as exc:
                if not is_unique_violation(exc):
                    raise
                # Inserted concurrently by another request
                logger.debug("task_assignee_exists", task_id=str(task.id), user_id=str(user_id))
                continue
            created.append(row)

        if not created:
            return created

        await self._refresh_mirror(uow, task, preferred=[a.user_id for a in created])

        if self._notification:
            actor = await uow.profiles.get(requester_id)
            actor_name = actor.label if actor else "Someone"
            await self._notification.enqueue(
                uow,
                NotificationType.TASK_ASSIGNED,
                recipient_ids=[a.user_id for a in created],
                title="New task assignment",
                message=f'{actor_name} assigned you to "{task.title}"',
                actor_id=requester_id,
                data={"task_id": str(task.id), "project_id": str(task.project_id)},
            )
        return created

    async def remove_assignees(
        self,
        task_id: UUID,
        requester_id: UUID,
        user_ids: list[UUID],
    ) -> UnassignResult:
        """Unassign users. Members without assign rights may only remove themselves."""
        targets = self._dedupe(user_ids)
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow,
                requester_id,
                ResourceType.TASK,
                task_id,
                Action.ASSIGN,
                targets_only_self=targets == [requester_id],
            )
            task = await self._get_task(uow, task_id)

            assigned = {a.user_id for a in await uow.tasks.get_assignees(task_id)}
            removed_ids = [u for u in targets if u in assigned]
            removed_count = await uow.tasks.remove_assignees(task_id, targets)

            if removed_count:
                await self._refresh_mirror(uow, task)
                if self._notification:
                    await self._notification.enqueue(
                        uow,
                        NotificationType.TASK_UNASSIGNED,
                        recipient_ids=removed_ids,
                        title="Removed from task",
                        message=f'You were unassigned from "{task.title}"',
                        actor_id=requester_id,
                        data={"task_id": str(task.id), "project_id": str(task.project_id)},
                    )

            await uow.commit()
            return UnassignResult(
                message=f"Removed {removed_count} user(s) from task",
                removed_count=removed_count,
            )

    # --- Internal helpers ---

    async def _refresh_mirror(
        self,
        uow: IUnitOfWork,
        task: Task,
        preferred: list[UUID] | None = None,
    ) -> None:
        remaining = [a.user_id for a in await uow.tasks.get_assignees(task.id)]
        mirror = recompute_assignee_mirror(task.assignee_id, remaining, preferred)
        if mirror != task.assignee_id:
            await uow.tasks.set_assignee_mirror(task.id, mirror)
            task.assignee_id = mirror

    @staticmethod
    async def _get_task(uow: IUnitOfWork, task_id: UUID) -> Task:
        task = await uow.tasks.get(task_id)
        if not task:
            raise TaskNotFoundError(str(task_id))
        return task

    @staticmethod
    def _dedupe(user_ids: list[UUID]) -> list[UUID]:
        targets = list(dict.fromkeys(user_ids))
        if not targets:
            raise ValidationFailedError("userIds", "userIds must contain at least one user")
        return targets

    @staticmethod
    async def _require_workspace_members(
        uow: IUnitOfWork, workspace_id: UUID, user_ids: list[UUID]
    ) -> None:
        members = await uow.workspaces.get_member_ids(workspace_id, user_ids)
        outsiders = [str(u) for u in user_ids if u not in members]
        if outsiders:
            raise ValidationFailedError(
                "userIds",
                f"Users are not members of this workspace: {', '.join(outsiders)}",
            )

    @staticmethod
    async def _views(uow: IUnitOfWork, assignees: list[TaskAssignee]) -> list[TaskAssigneeView]:
        ids = {a.user_id for a in assignees} | {a.assigned_by for a in assignees}
        profiles = await uow.profiles.get_many(list(ids)) if ids else {}
        return [
            TaskAssigneeView(
                assignment=a,
                user=profiles.get(a.user_id),
                assigner=profiles.get(a.assigned_by),
            )
            for a in assignees
        ]
