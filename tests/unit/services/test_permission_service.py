"""Unit tests for PermissionService."""

from uuid import uuid4

import pytest

from core.exceptions import (
    InsufficientPermissionsError,
    ProjectNotFoundError,
    TaskNotFoundError,
    ValidationFailedError,
    WorkspaceNotFoundError,
)
from domain.entities.permission import Action, ResourceType
from domain.entities.project import Project, ProjectRole
from domain.entities.task import Task
from domain.entities.workspace import WorkspaceRole
from domain.services.permission_service import PermissionService
from tests.unit.conftest import FakeUnitOfWork, Membership


@pytest.fixture
def service(uow: FakeUnitOfWork) -> PermissionService:
    return PermissionService(lambda: uow)


class TestAuthorize:
    async def test_returns_access_when_allowed(self, service, uow, project: Project):
        access = await service.authorize(
            uow, project.owner_id, ResourceType.PROJECT, project.id, Action.DELETE
        )

        assert access.resource_id == project.id

    async def test_raises_forbidden_when_denied(
        self, service, uow, membership: Membership, project: Project
    ):
        member = uuid4()
        membership.join_project(project, member)

        with pytest.raises(InsufficientPermissionsError):
            await service.authorize(uow, member, ResourceType.PROJECT, project.id, Action.DELETE)

    async def test_raises_not_found_for_outsider(self, service, uow, project: Project):
        with pytest.raises(ProjectNotFoundError):
            await service.authorize(uow, uuid4(), ResourceType.PROJECT, project.id, Action.VIEW)

    async def test_deleted_task_is_not_found_except_restore(
        self, service, uow, project: Project, task: Task
    ):
        task.soft_delete()

        with pytest.raises(TaskNotFoundError):
            await service.authorize(uow, project.owner_id, ResourceType.TASK, task.id, Action.VIEW)

        access = await service.authorize(
            uow, project.owner_id, ResourceType.TASK, task.id, Action.RESTORE
        )
        assert access.is_deleted


class TestCheck:
    async def test_alice_bob_scenario(self, service, uow, membership: Membership, workspace_id):
        alice, bob = uuid4(), uuid4()
        membership.join_workspace(workspace_id, alice, WorkspaceRole.OWNER)
        membership.join_workspace(workspace_id, bob, WorkspaceRole.MEMBER)
        project = Project(workspace_id=workspace_id, owner_id=alice, name="P")
        membership.join_project(project, bob, ProjectRole.MEMBER)
        task = Task(project_id=project.id, creator_id=alice, title="T", assignee_id=bob)
        uow.projects.get.return_value = project
        uow.tasks.get.return_value = task

        assert await service.check(bob, "task", "comment", resource_id=task.id)
        assert await service.check(bob, "task", "view", resource_id=task.id)
        assert not await service.check(bob, "project", "delete", resource_id=project.id)
        assert await service.check(alice, "project", "delete", resource_id=project.id)

    async def test_project_create_uses_workspace(
        self, service, uow, membership: Membership, workspace_id
    ):
        admin, member = uuid4(), uuid4()
        membership.join_workspace(workspace_id, admin, WorkspaceRole.ADMIN)
        membership.join_workspace(workspace_id, member, WorkspaceRole.MEMBER)

        assert await service.check(admin, "project", "create", workspace_id=workspace_id)
        assert not await service.check(member, "project", "create", workspace_id=workspace_id)

    async def test_project_create_requires_workspace_id(self, service):
        with pytest.raises(ValidationFailedError):
            await service.check(uuid4(), "project", "create")

    async def test_missing_resource_id(self, service):
        with pytest.raises(ValidationFailedError):
            await service.check(uuid4(), "task", "view")

    @pytest.mark.parametrize(
        "resource_type,action",
        [("workspace", "view"), ("project", "comment"), ("task", "createTask"), ("task", "")],
    )
    async def test_invalid_type_or_action(self, service, resource_type, action):
        with pytest.raises(ValidationFailedError):
            await service.check(uuid4(), resource_type, action, resource_id=uuid4())

    async def test_nonexistent_project_is_not_found(
        self, service, uow, membership: Membership, workspace_id, user_id
    ):
        membership.join_workspace(workspace_id, user_id, WorkspaceRole.OWNER)
        uow.projects.get.return_value = None

        with pytest.raises(ProjectNotFoundError):
            await service.check(
                user_id, "project", "view", resource_id=uuid4(), workspace_id=workspace_id
            )

    async def test_nonexistent_task_is_not_found(self, service, uow, user_id):
        uow.tasks.get.return_value = None

        with pytest.raises(TaskNotFoundError):
            await service.check(user_id, "task", "edit", resource_id=uuid4())

    async def test_resource_in_another_workspace_is_not_found(
        self, service, uow, project: Project
    ):
        with pytest.raises(ProjectNotFoundError):
            await service.check(
                project.owner_id, "project", "view", resource_id=project.id, workspace_id=uuid4()
            )


class TestBulk:
    async def test_project_and_task_objects(self, service, uow, project: Project, task: Task):
        bulk = await service.bulk(project.owner_id, project_id=project.id, task_id=task.id)

        assert bulk.workspace is None
        assert bulk.project.can_delete
        assert bulk.project.can_manage_members
        assert bulk.task.can_comment
        assert bulk.task.can_assign

    async def test_plain_member(self, service, uow, membership: Membership, project: Project, task: Task):
        member = uuid4()
        membership.join_project(project, member)

        bulk = await service.bulk(member, project_id=project.id, task_id=task.id)

        assert bulk.project.can_view
        assert bulk.project.can_create_tasks
        assert not bulk.project.can_edit
        assert bulk.task.can_change_status
        assert not bulk.task.can_comment
        assert not bulk.task.can_assign

    async def test_workspace_object(self, service, uow, membership: Membership, workspace_id, user_id):
        membership.join_workspace(workspace_id, user_id, WorkspaceRole.ADMIN)

        bulk = await service.bulk(user_id, workspace_id=workspace_id)

        assert bulk.workspace.can_create_project
        assert bulk.project is None

    async def test_non_member_workspace_is_not_found(self, service, workspace_id, user_id):
        with pytest.raises(WorkspaceNotFoundError):
            await service.bulk(user_id, workspace_id=workspace_id)

    async def test_bulk_for_rejects_workspace_type(self, service):
        with pytest.raises(ValidationFailedError):
            await service.bulk_for(uuid4(), "workspace", uuid4())

    async def test_bulk_for_task(self, service, uow, project: Project, task: Task):
        bulk = await service.bulk_for(project.owner_id, "task", task.id)

        assert bulk.task is not None
        assert bulk.project is None
