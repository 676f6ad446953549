"""Permission evaluator: a pure decision over already-resolved access.

The whole authorization policy lives in ``CAPABILITIES``. Nothing in this
module performs I/O; callers pass a :class:`ResolvedAccess` produced by the
role resolver.
"""

from domain.entities.permission import Action, ResolvedAccess, ResourceType, RoleToken

_O, _A, _M = RoleToken.OWNER, RoleToken.ADMIN, RoleToken.MEMBER
_CREATOR, _ASSIGNEE = RoleToken.TASK_CREATOR, RoleToken.TASK_ASSIGNEE

CAPABILITIES: dict[tuple[ResourceType, Action], frozenset[RoleToken]] = {
    # Workspace
    (ResourceType.WORKSPACE, Action.VIEW): frozenset({_O, _A, _M}),
    (ResourceType.WORKSPACE, Action.EDIT): frozenset({_O, _A}),
    (ResourceType.WORKSPACE, Action.DELETE): frozenset({_O}),
    (ResourceType.WORKSPACE, Action.CREATE_PROJECT): frozenset({_O, _A}),
    (ResourceType.WORKSPACE, Action.INVITE): frozenset({_O, _A}),
    (ResourceType.WORKSPACE, Action.MANAGE_MEMBERS): frozenset({_O, _A}),
    # Project
    (ResourceType.PROJECT, Action.VIEW): frozenset({_O, _A, _M}),
    (ResourceType.PROJECT, Action.EDIT): frozenset({_O, _A}),
    (ResourceType.PROJECT, Action.DELETE): frozenset({_O, _A}),
    (ResourceType.PROJECT, Action.MANAGE_MEMBERS): frozenset({_O, _A}),
    (ResourceType.PROJECT, Action.CREATE_TASK): frozenset({_O, _A, _M}),
    # Task
    (ResourceType.TASK, Action.VIEW): frozenset({_O, _A, _M, _CREATOR, _ASSIGNEE}),
    (ResourceType.TASK, Action.COMMENT): frozenset({_O, _CREATOR, _ASSIGNEE}),
    (ResourceType.TASK, Action.VIEW_ATTACHMENTS): frozenset({_O, _CREATOR, _ASSIGNEE}),
    (ResourceType.TASK, Action.EDIT): frozenset({_O, _A, _CREATOR}),
    (ResourceType.TASK, Action.CHANGE_STATUS): frozenset({_O, _A, _M, _CREATOR, _ASSIGNEE}),
    (ResourceType.TASK, Action.DELETE): frozenset({_O, _A, _CREATOR}),
    (ResourceType.TASK, Action.RESTORE): frozenset({_O, _A, _CREATOR}),
    (ResourceType.TASK, Action.ASSIGN): frozenset({_O, _A}),
    (ResourceType.TASK, Action.VERIFY): frozenset({_O, _A}),
}


def is_supported(resource_type: ResourceType, action: Action) -> bool:
    """Whether the action is defined for the resource type at all."""
    return (resource_type, action) in CAPABILITIES


def allowed_roles(resource_type: ResourceType, action: Action) -> frozenset[RoleToken]:
    return CAPABILITIES.get((resource_type, action), frozenset())


def evaluate(
    access: ResolvedAccess,
    action: Action,
    *,
    targets_only_self: bool = False,
) -> bool:
    """Decide whether ``access`` permits ``action``.

    ``targets_only_self`` is the caller's statement that every target user of
    an assignment mutation is the requester. It enables the self-assignment
    rule, which is checked in addition to the capability table: any workspace
    member may add or remove their own assignment.

    Soft-deleted tasks only admit RESTORE; live tasks never admit it.
    """
    allowed = CAPABILITIES.get((access.resource_type, action))
    if allowed is None:
        return False

    if access.resource_type == ResourceType.TASK:
        if access.is_deleted != (action == Action.RESTORE):
            return False

    if access.roles & allowed:
        return True

    if action == Action.ASSIGN and targets_only_self and access.is_workspace_member:
        return True

    return False
