"""Unit tests for the permission evaluator."""

from uuid import uuid4

import pytest

from domain.entities.permission import Action, ResolvedAccess, ResourceType, RoleToken
from domain.entities.workspace import WorkspaceRole
from domain.services.permission_evaluator import (
    CAPABILITIES,
    allowed_roles,
    evaluate,
    is_supported,
)


def _access(
    resource_type: ResourceType,
    *tokens: RoleToken,
    workspace_role: WorkspaceRole | None = WorkspaceRole.MEMBER,
    is_deleted: bool = False,
) -> ResolvedAccess:
    workspace_id = uuid4()
    return ResolvedAccess(
        resource_type=resource_type,
        resource_id=uuid4(),
        workspace_id=workspace_id,
        user_id=uuid4(),
        roles=frozenset(tokens) or frozenset({RoleToken.NONE}),
        workspace_role=workspace_role,
        is_deleted=is_deleted,
    )


class TestCapabilityTable:
    def test_every_entry_excludes_none_token(self):
        for allowed in CAPABILITIES.values():
            assert RoleToken.NONE not in allowed

    def test_unsupported_pair_is_reported(self):
        assert not is_supported(ResourceType.WORKSPACE, Action.ASSIGN)
        assert allowed_roles(ResourceType.WORKSPACE, Action.ASSIGN) == frozenset()

    def test_unsupported_pair_is_denied(self):
        access = _access(ResourceType.WORKSPACE, RoleToken.OWNER)
        assert evaluate(access, Action.ASSIGN) is False

    @pytest.mark.parametrize(
        "action,expected",
        [
            (Action.VIEW, {RoleToken.OWNER, RoleToken.ADMIN, RoleToken.MEMBER}),
            (Action.EDIT, {RoleToken.OWNER, RoleToken.ADMIN}),
            (Action.DELETE, {RoleToken.OWNER}),
            (Action.CREATE_PROJECT, {RoleToken.OWNER, RoleToken.ADMIN}),
            (Action.INVITE, {RoleToken.OWNER, RoleToken.ADMIN}),
            (Action.MANAGE_MEMBERS, {RoleToken.OWNER, RoleToken.ADMIN}),
        ],
    )
    def test_workspace_rows(self, action: Action, expected: set[RoleToken]):
        assert allowed_roles(ResourceType.WORKSPACE, action) == expected

    @pytest.mark.parametrize(
        "action,expected",
        [
            (Action.VIEW, {RoleToken.OWNER, RoleToken.ADMIN, RoleToken.MEMBER}),
            (Action.CREATE_TASK, {RoleToken.OWNER, RoleToken.ADMIN, RoleToken.MEMBER}),
            (Action.EDIT, {RoleToken.OWNER, RoleToken.ADMIN}),
            (Action.DELETE, {RoleToken.OWNER, RoleToken.ADMIN}),
            (Action.MANAGE_MEMBERS, {RoleToken.OWNER, RoleToken.ADMIN}),
        ],
    )
    def test_project_rows(self, action: Action, expected: set[RoleToken]):
        assert allowed_roles(ResourceType.PROJECT, action) == expected


class TestTaskActions:
    def test_project_member_can_view_but_not_comment(self):
        access = _access(ResourceType.TASK, RoleToken.MEMBER)

        assert evaluate(access, Action.VIEW)
        assert evaluate(access, Action.CHANGE_STATUS)
        assert not evaluate(access, Action.COMMENT)
        assert not evaluate(access, Action.VIEW_ATTACHMENTS)

    def test_admin_cannot_comment_without_task_relationship(self):
        access = _access(ResourceType.TASK, RoleToken.ADMIN)

        assert evaluate(access, Action.EDIT)
        assert evaluate(access, Action.ASSIGN)
        assert not evaluate(access, Action.COMMENT)

    def test_creator_can_edit_and_delete(self):
        access = _access(ResourceType.TASK, RoleToken.TASK_CREATOR)

        assert evaluate(access, Action.EDIT)
        assert evaluate(access, Action.DELETE)
        assert not evaluate(access, Action.ASSIGN)
        assert not evaluate(access, Action.VERIFY)

    def test_assignee_can_change_status_but_not_edit(self):
        access = _access(ResourceType.TASK, RoleToken.TASK_ASSIGNEE)

        assert evaluate(access, Action.CHANGE_STATUS)
        assert evaluate(access, Action.COMMENT)
        assert not evaluate(access, Action.EDIT)
        assert not evaluate(access, Action.DELETE)

    def test_none_token_is_denied_everything(self):
        access = _access(ResourceType.TASK)

        for (resource_type, action) in CAPABILITIES:
            if resource_type == ResourceType.TASK:
                assert not evaluate(access, action)


class TestCommentCombinations:
    """Comment is allowed iff creator, assignee or project owner, for every
    combination of project membership and task relationship."""

    @pytest.mark.parametrize("is_project_member", [True, False])
    @pytest.mark.parametrize(
        "relationship,allowed",
        [
            (RoleToken.TASK_CREATOR, True),
            (RoleToken.TASK_ASSIGNEE, True),
            (RoleToken.OWNER, True),
            (None, False),
        ],
    )
    def test_comment(
        self, is_project_member: bool, relationship: RoleToken | None, allowed: bool
    ):
        tokens = set()
        if is_project_member:
            tokens.add(RoleToken.MEMBER)
        if relationship:
            tokens.add(relationship)

        access = _access(ResourceType.TASK, *tokens)

        assert evaluate(access, Action.COMMENT) is allowed


class TestSelfAssignment:
    def test_member_can_self_assign(self):
        access = _access(ResourceType.TASK, RoleToken.MEMBER)

        assert evaluate(access, Action.ASSIGN, targets_only_self=True)

    def test_member_cannot_assign_others(self):
        access = _access(ResourceType.TASK, RoleToken.MEMBER)

        assert not evaluate(access, Action.ASSIGN, targets_only_self=False)

    def test_workspace_member_without_project_role_can_self_assign(self):
        access = _access(ResourceType.TASK, workspace_role=WorkspaceRole.MEMBER)

        assert evaluate(access, Action.ASSIGN, targets_only_self=True)

    def test_non_workspace_member_cannot_self_assign(self):
        access = _access(ResourceType.TASK, workspace_role=None)

        assert not evaluate(access, Action.ASSIGN, targets_only_self=True)

    def test_self_flag_does_not_grant_other_actions(self):
        access = _access(ResourceType.TASK, RoleToken.MEMBER)

        assert not evaluate(access, Action.VERIFY, targets_only_self=True)

    def test_admin_assigns_regardless_of_flag(self):
        access = _access(ResourceType.TASK, RoleToken.ADMIN)

        assert evaluate(access, Action.ASSIGN)


class TestDeletedTasks:
    def test_deleted_task_only_admits_restore(self):
        access = _access(ResourceType.TASK, RoleToken.TASK_CREATOR, is_deleted=True)

        assert evaluate(access, Action.RESTORE)
        assert not evaluate(access, Action.VIEW)
        assert not evaluate(access, Action.EDIT)

    def test_live_task_never_admits_restore(self):
        access = _access(ResourceType.TASK, RoleToken.OWNER)

        assert not evaluate(access, Action.RESTORE)

    def test_member_cannot_restore(self):
        access = _access(ResourceType.TASK, RoleToken.MEMBER, is_deleted=True)

        assert not evaluate(access, Action.RESTORE)
