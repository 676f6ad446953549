"""Unit tests for WorkspaceService."""

from uuid import UUID, uuid4

import pytest

from core.exceptions import (
    AlreadyAMemberError,
    InsufficientPermissionsError,
    LastOwnerError,
    MemberNotFoundError,
    UserNotFoundError,
    ValidationFailedError,
    WorkspaceNotFoundError,
    WorkspaceSlugTakenError,
)
from domain.entities.notification import NotificationType
from domain.entities.profile import Profile
from domain.entities.workspace import Workspace, WorkspaceRole
from domain.services.notification_service import NotificationService
from domain.services.workspace_service import WorkspaceService
from tests.unit.conftest import FakeUnitOfWork, Membership


@pytest.fixture
def service(uow: FakeUnitOfWork) -> WorkspaceService:
    return WorkspaceService(lambda: uow, notification_service=NotificationService(lambda: uow))


@pytest.fixture
def workspace(
    uow: FakeUnitOfWork, membership: Membership, workspace_id: UUID, owner_id: UUID
) -> Workspace:
    workspace = Workspace(id=workspace_id, name="Acme", slug="acme", owner_id=owner_id)
    membership.join_workspace(workspace_id, owner_id, WorkspaceRole.OWNER)
    uow.workspaces.get.return_value = workspace
    uow.workspaces.update.side_effect = lambda w: w
    return workspace


class TestCreate:
    async def test_creator_becomes_sole_owner(self, service, uow, user_id):
        uow.workspaces.get_by_slug.return_value = None
        uow.workspaces.create.side_effect = lambda w: w

        created = await service.create(user_id, "  My Team  ")

        assert created.name == "My Team"
        assert created.slug == "my-team"
        assert created.owner_id == user_id
        member = uow.workspaces.add_member.call_args.args[0]
        assert member.user_id == user_id
        assert member.role == WorkspaceRole.OWNER
        assert uow.committed

    async def test_slug_collision_appends_user_prefix(self, service, uow, user_id):
        uow.workspaces.get_by_slug.side_effect = [object(), None]
        uow.workspaces.create.side_effect = lambda w: w

        created = await service.create(user_id, "Acme")

        assert created.slug == f"acme-{str(user_id)[:8]}"

    async def test_slug_taken_twice_raises(self, service, uow, user_id):
        uow.workspaces.get_by_slug.return_value = object()

        with pytest.raises(WorkspaceSlugTakenError):
            await service.create(user_id, "Acme")

    async def test_blank_name(self, service):
        with pytest.raises(ValidationFailedError):
            await service.create(uuid4(), "  ")

    @pytest.mark.parametrize(
        "name,slug",
        [("Hello World!", "hello-world"), ("a  --  b", "a-b"), ("!!!", "workspace")],
    )
    def test_generate_slug(self, name, slug):
        assert WorkspaceService._generate_slug(name) == slug


class TestGetAndUpdate:
    async def test_non_member_gets_not_found(self, service, workspace: Workspace):
        with pytest.raises(WorkspaceNotFoundError):
            await service.get_by_id(workspace.id, uuid4())

    async def test_admin_can_update(self, service, membership, workspace: Workspace):
        admin = uuid4()
        membership.join_workspace(workspace.id, admin, WorkspaceRole.ADMIN)

        updated = await service.update(workspace.id, admin, name="Acme Inc")

        assert updated.name == "Acme Inc"

    async def test_member_cannot_update(self, service, membership, workspace: Workspace):
        member = uuid4()
        membership.join_workspace(workspace.id, member)

        with pytest.raises(InsufficientPermissionsError):
            await service.update(workspace.id, member, name="Nope")

    async def test_only_owner_deletes(self, service, uow, membership, workspace: Workspace):
        admin = uuid4()
        membership.join_workspace(workspace.id, admin, WorkspaceRole.ADMIN)

        with pytest.raises(InsufficientPermissionsError):
            await service.delete(workspace.id, admin)

        uow.workspaces.delete.return_value = True
        assert await service.delete(workspace.id, workspace.owner_id) is True


class TestMembers:
    async def test_add_member_notifies(self, service, uow, workspace: Workspace):
        target = uuid4()
        uow.profiles.get.return_value = Profile(id=target, email="t@example.com")
        uow.workspaces.add_member.side_effect = lambda m: m

        added = await service.add_member(workspace.id, workspace.owner_id, target)

        assert added.role == WorkspaceRole.MEMBER
        assert added.invited_by == workspace.owner_id
        message = uow.outbox.add.call_args.args[0]
        assert message.type == NotificationType.MEMBER_ADDED
        assert message.recipient_id == target

    async def test_add_owner_role_is_rejected(self, service, workspace: Workspace):
        with pytest.raises(ValidationFailedError):
            await service.add_member(
                workspace.id, workspace.owner_id, uuid4(), WorkspaceRole.OWNER
            )

    async def test_add_unknown_user(self, service, workspace: Workspace):
        with pytest.raises(UserNotFoundError):
            await service.add_member(workspace.id, workspace.owner_id, uuid4())

    async def test_add_existing_member(self, service, uow, membership, workspace: Workspace):
        target = uuid4()
        membership.join_workspace(workspace.id, target)
        uow.profiles.get.return_value = Profile(id=target)

        with pytest.raises(AlreadyAMemberError):
            await service.add_member(workspace.id, workspace.owner_id, target)

    async def test_owner_cannot_be_demoted(self, service, membership, workspace: Workspace):
        admin = uuid4()
        membership.join_workspace(workspace.id, admin, WorkspaceRole.ADMIN)

        with pytest.raises(LastOwnerError):
            await service.update_member_role(
                workspace.id, admin, workspace.owner_id, WorkspaceRole.MEMBER
            )

    async def test_promote_member(self, service, uow, membership, workspace: Workspace):
        target = uuid4()
        membership.join_workspace(workspace.id, target)

        await service.update_member_role(
            workspace.id, workspace.owner_id, target, WorkspaceRole.ADMIN
        )

        uow.workspaces.update_member_role.assert_awaited_once_with(
            workspace.id, target, WorkspaceRole.ADMIN
        )

    async def test_cannot_change_own_role(self, service, membership, workspace: Workspace):
        admin = uuid4()
        membership.join_workspace(workspace.id, admin, WorkspaceRole.ADMIN)

        with pytest.raises(InsufficientPermissionsError):
            await service.update_member_role(workspace.id, admin, admin, WorkspaceRole.MEMBER)

    async def test_update_unknown_member(self, service, workspace: Workspace):
        with pytest.raises(MemberNotFoundError):
            await service.update_member_role(
                workspace.id, workspace.owner_id, uuid4(), WorkspaceRole.ADMIN
            )

    async def test_member_can_leave_without_notification(
        self, service, uow, membership, workspace: Workspace
    ):
        member = uuid4()
        membership.join_workspace(workspace.id, member)
        uow.workspaces.remove_member.return_value = True

        assert await service.remove_member(workspace.id, member, member)
        uow.outbox.add.assert_not_called()

    async def test_owner_cannot_leave(self, service, workspace: Workspace):
        with pytest.raises(LastOwnerError):
            await service.remove_member(workspace.id, workspace.owner_id, workspace.owner_id)

    async def test_admin_cannot_remove_admin(self, service, membership, workspace: Workspace):
        admin, other = uuid4(), uuid4()
        membership.join_workspace(workspace.id, admin, WorkspaceRole.ADMIN)
        membership.join_workspace(workspace.id, other, WorkspaceRole.ADMIN)

        with pytest.raises(InsufficientPermissionsError):
            await service.remove_member(workspace.id, admin, other)

    async def test_member_cannot_remove_others(self, service, membership, workspace: Workspace):
        member, other = uuid4(), uuid4()
        membership.join_workspace(workspace.id, member)
        membership.join_workspace(workspace.id, other)

        with pytest.raises(InsufficientPermissionsError):
            await service.remove_member(workspace.id, member, other)

    async def test_owner_removes_admin_and_notifies(
        self, service, uow, membership, workspace: Workspace
    ):
        admin = uuid4()
        membership.join_workspace(workspace.id, admin, WorkspaceRole.ADMIN)
        uow.workspaces.remove_member.return_value = True

        await service.remove_member(workspace.id, workspace.owner_id, admin)

        message = uow.outbox.add.call_args.args[0]
        assert message.type == NotificationType.MEMBER_REMOVED
        assert message.recipient_id == admin
