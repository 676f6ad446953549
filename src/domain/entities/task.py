"""Task domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.profile import Profile


class TaskStatus(StrEnum):
    """Workflow status of a task."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"


class TaskPriority(StrEnum):
    """Task priority."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


@dataclass
class Task:
    """Domain entity for a Task.

    ``assignee_id`` is the legacy single-assignee field. It mirrors one row of
    the task's assignee collection and is only ever written by the assignment
    flow, never set directly by callers.
    """

    project_id: UUID
    creator_id: UUID
    title: str
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    assignee_id: UUID | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def set_status(self, status: TaskStatus) -> None:
        """Change status, stamping completed_at on entry to / exit from DONE."""
        now = datetime.utcnow()
        if status == TaskStatus.DONE and self.status != TaskStatus.DONE:
            self.completed_at = now
        elif status != TaskStatus.DONE:
            self.completed_at = None
        self.status = status
        self.updated_at = now

    def soft_delete(self) -> None:
        self.deleted_at = datetime.utcnow()
        self.updated_at = self.deleted_at

    def restore(self) -> None:
        self.deleted_at = None
        self.updated_at = datetime.utcnow()


@dataclass
class TaskAssignee:
    """One (task, user) assignment. The pair is unique."""

    task_id: UUID
    user_id: UUID
    assigned_by: UUID
    id: UUID = field(default_factory=uuid4)
    assigned_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True, slots=True)
class TaskAssigneeView:
    """Read-only value object: an assignment with user and assigner details."""

    assignment: TaskAssignee
    user: Profile | None
    assigner: Profile | None


def recompute_assignee_mirror(
    current: UUID | None,
    assignee_ids: list[UUID],
    preferred: list[UUID] | None = None,
) -> UUID | None:
    """Derive the legacy ``assignee_id`` from the assignee collection.

    Keeps the current value while it is still assigned. Otherwise picks the
    first of ``preferred`` that is assigned, then the earliest assignee, then
    None when the collection is empty.
    """
    assigned = set(assignee_ids)
    if current is not None and current in assigned:
        return current
    for user_id in preferred or []:
        if user_id in assigned:
            return user_id
    return assignee_ids[0] if assignee_ids else None
