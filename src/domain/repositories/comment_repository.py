"""Comment repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.comment import Comment


class ICommentRepository(Protocol):
    async def create(self, comment: Comment) -> Comment:
        ...

    async def get_for_task(self, task_id: UUID) -> list[Comment]:
        """Comments of a task, oldest first."""
        ...
