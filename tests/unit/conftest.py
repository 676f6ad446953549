"""Shared fixtures for unit tests."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.project import Project, ProjectMember, ProjectRole
from domain.entities.task import Task
from domain.entities.workspace import WorkspaceMember, WorkspaceRole


class FakeUnitOfWork:
    """Fake Unit of Work with a mock per repository for unit testing."""

    def __init__(self) -> None:
        self.profiles = AsyncMock()
        self.workspaces = AsyncMock()
        self.projects = AsyncMock()
        self.tasks = AsyncMock()
        self.comments = AsyncMock()
        self.invitations = AsyncMock()
        self.notifications = AsyncMock()
        self.outbox = AsyncMock()

        # Neutral defaults: nobody is a member of anything until a test says so
        self.workspaces.get_member.return_value = None
        self.projects.get_member.return_value = None
        self.tasks.is_assignee.return_value = False
        self.tasks.get_assignees.return_value = []
        self.profiles.get.return_value = None
        self.profiles.get_many.return_value = {}

        self.committed = False
        self.rolled_back = False
        self.savepoints = 0

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        self.savepoints += 1
        yield

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


class Membership:
    """Declarative workspace/project membership for the fake repositories.

    ``uow.workspaces.get_member`` and ``uow.projects.get_member`` are wired to
    look roles up here, so tests read as "bob is a project member" instead of
    a pile of return values.
    """

    def __init__(self, uow: FakeUnitOfWork) -> None:
        self.workspace: dict[tuple[UUID, UUID], WorkspaceRole] = {}
        self.project: dict[tuple[UUID, UUID], ProjectRole] = {}

        async def get_workspace_member(workspace_id: UUID, user_id: UUID) -> WorkspaceMember | None:
            role = self.workspace.get((workspace_id, user_id))
            if role is None:
                return None
            return WorkspaceMember(workspace_id=workspace_id, user_id=user_id, role=role)

        async def get_project_member(project_id: UUID, user_id: UUID) -> ProjectMember | None:
            role = self.project.get((project_id, user_id))
            if role is None:
                return None
            return ProjectMember(project_id=project_id, user_id=user_id, role=role)

        async def get_member_ids(workspace_id: UUID, user_ids: list[UUID]) -> set[UUID]:
            return {u for u in user_ids if (workspace_id, u) in self.workspace}

        uow.workspaces.get_member.side_effect = get_workspace_member
        uow.projects.get_member.side_effect = get_project_member
        uow.workspaces.get_member_ids.side_effect = get_member_ids

    def join_workspace(
        self, workspace_id: UUID, user_id: UUID, role: WorkspaceRole = WorkspaceRole.MEMBER
    ) -> None:
        self.workspace[(workspace_id, user_id)] = role

    def join_project(
        self, project: Project, user_id: UUID, role: ProjectRole = ProjectRole.MEMBER
    ) -> None:
        self.workspace.setdefault((project.workspace_id, user_id), WorkspaceRole.MEMBER)
        self.project[(project.id, user_id)] = role


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def membership(uow: FakeUnitOfWork) -> Membership:
    return Membership(uow)


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def workspace_id() -> UUID:
    """A random workspace ID."""
    return uuid4()


@pytest.fixture
def actor_id() -> UUID:
    """A random actor ID (distinct from user_id)."""
    return uuid4()


@pytest.fixture
def owner_id() -> UUID:
    """Owner of ``project``."""
    return uuid4()


@pytest.fixture
def project(workspace_id: UUID, owner_id: UUID, uow: FakeUnitOfWork, membership: Membership) -> Project:
    """A project whose owner is a workspace member; returned by ``uow.projects.get``."""
    project = Project(workspace_id=workspace_id, owner_id=owner_id, name="Launch")
    membership.join_workspace(workspace_id, owner_id, WorkspaceRole.MEMBER)
    uow.projects.get.return_value = project
    return project


@pytest.fixture
def task(project: Project, uow: FakeUnitOfWork) -> Task:
    """A task in ``project`` created by its owner; returned by ``uow.tasks.get``."""
    task = Task(project_id=project.id, creator_id=project.owner_id, title="Write copy")
    uow.tasks.get.return_value = task
    return task
