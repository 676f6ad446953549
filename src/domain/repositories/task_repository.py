"""Task repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.task import Task, TaskAssignee


class ITaskRepository(Protocol):
    """Repository interface for Task entities and their assignee collection."""

    async def get(self, id: UUID) -> Task | None:
        """Get a task by ID, including soft-deleted tasks."""
        ...

    async def get_for_project(self, project_id: UUID, include_deleted: bool = False) -> list[Task]:
        """Get tasks of a project ordered by creation time."""
        ...

    async def create(self, task: Task) -> Task:
        ...

    async def update(self, task: Task) -> Task:
        """Persist scalar fields. Does not touch ``assignee_id``."""
        ...

    async def set_assignee_mirror(self, task_id: UUID, user_id: UUID | None) -> None:
        """Write the legacy single-assignee field."""
        ...

    # --- Assignees ---

    async def get_assignees(self, task_id: UUID) -> list[TaskAssignee]:
        """Get assignments ordered by assigned_at (earliest first)."""
        ...

    async def is_assignee(self, task_id: UUID, user_id: UUID) -> bool:
        ...

    async def add_assignee(self, assignee: TaskAssignee) -> TaskAssignee:
        """Insert one assignment. Raises IntegrityError on a duplicate pair."""
        ...

    async def remove_assignees(self, task_id: UUID, user_ids: list[UUID]) -> int:
        """Delete matching assignments. Returns the number removed."""
        ...
