"""Comment service layer."""

from collections.abc import Callable
from typing import Optional
from uuid import UUID

from core.exceptions import ValidationFailedError
from domain.entities.comment import Comment, CommentView
from domain.entities.notification import NotificationType
from domain.entities.permission import Action, ResourceType
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.notification_service import NotificationService
from domain.services.permission_service import PermissionService

MAX_COMMENT_LENGTH = 10_000


class CommentService:
    """Task comments. Commenting is limited to the task's creator, its
    assignees and the project owner."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        permission_service: PermissionService | None = None,
        notification_service: Optional["NotificationService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._permissions = permission_service or PermissionService(uow_factory)
        self._notification = notification_service

    async def list_for_task(self, task_id: UUID, user_id: UUID) -> list[CommentView]:
        async with self._uow_factory() as uow:
            await self._permissions.authorize(uow, user_id, ResourceType.TASK, task_id, Action.VIEW)
            comments = await uow.comments.get_for_task(task_id)
            authors = await uow.profiles.get_many(list({c.user_id for c in comments}))
            return [CommentView(comment=c, author=authors.get(c.user_id)) for c in comments]

    async def add(self, task_id: UUID, user_id: UUID, content: str) -> CommentView:
        content = content.strip()
        if not content:
            raise ValidationFailedError("content", "Comment must not be empty")
        if len(content) > MAX_COMMENT_LENGTH:
            raise ValidationFailedError(
                "content", f"Comment must be at most {MAX_COMMENT_LENGTH} characters"
            )

        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.TASK, task_id, Action.COMMENT
            )
            task = await uow.tasks.get(task_id)
            created = await uow.comments.create(
                Comment(task_id=task_id, user_id=user_id, content=content)
            )
            author = await uow.profiles.get(user_id)

            if self._notification and task:
                recipients = [task.creator_id]
                recipients += [a.user_id for a in await uow.tasks.get_assignees(task_id)]
                author_name = author.label if author else "Someone"
                await self._notification.enqueue(
                    uow,
                    NotificationType.COMMENT_ADDED,
                    recipient_ids=recipients,
                    title="New comment",
                    message=f'{author_name} commented on "{task.title}"',
                    actor_id=user_id,
                    data={
                        "task_id": str(task_id),
                        "project_id": str(task.project_id),
                        "comment_id": str(created.id),
                    },
                )

            await uow.commit()
            return CommentView(comment=created, author=author)
