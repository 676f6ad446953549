"""Unit of Work protocol."""

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from domain.repositories.comment_repository import ICommentRepository
from domain.repositories.invitation_repository import IInvitationRepository
from domain.repositories.notification_repository import (
    INotificationRepository,
    IOutboxRepository,
)
from domain.repositories.profile_repository import IProfileRepository
from domain.repositories.project_repository import IProjectRepository
from domain.repositories.task_repository import ITaskRepository
from domain.repositories.workspace_repository import IWorkspaceRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    profiles: IProfileRepository
    workspaces: IWorkspaceRepository
    projects: IProjectRepository
    tasks: ITaskRepository
    comments: ICommentRepository
    invitations: IInvitationRepository
    notifications: INotificationRepository
    outbox: IOutboxRepository

    def savepoint(self) -> AbstractAsyncContextManager[Any]:
        """Open a nested transaction. Errors inside roll back only the savepoint."""
        ...

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
