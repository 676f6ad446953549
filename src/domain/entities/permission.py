"""Permission model value objects: role tokens, actions and resolved access."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from domain.entities.workspace import WorkspaceRole


class ResourceType(StrEnum):
    WORKSPACE = "workspace"
    PROJECT = "project"
    TASK = "task"


class RoleToken(StrEnum):
    """Effective role of a user on one resource.

    OWNER/ADMIN/MEMBER come from ownership and membership rows. TASK_CREATOR
    and TASK_ASSIGNEE are implicit roles derived from the task itself. NONE
    marks a workspace member with no relationship to the resource.
    """

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    TASK_CREATOR = "TASK_CREATOR"
    TASK_ASSIGNEE = "TASK_ASSIGNEE"
    NONE = "NONE"


class Action(StrEnum):
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    CREATE_PROJECT = "create_project"
    INVITE = "invite"
    MANAGE_MEMBERS = "manage_members"
    CREATE_TASK = "create_task"
    COMMENT = "comment"
    VIEW_ATTACHMENTS = "view_attachments"
    CHANGE_STATUS = "change_status"
    ASSIGN = "assign"
    VERIFY = "verify"
    RESTORE = "restore"


@dataclass(frozen=True, slots=True)
class ResolvedAccess:
    """Everything the evaluator needs to decide, fetched up front by the resolver."""

    resource_type: ResourceType
    resource_id: UUID
    workspace_id: UUID
    user_id: UUID
    roles: frozenset[RoleToken]
    workspace_role: WorkspaceRole | None = None
    is_deleted: bool = False

    @property
    def is_workspace_member(self) -> bool:
        return self.workspace_role is not None

    def has(self, token: RoleToken) -> bool:
        return token in self.roles


@dataclass(frozen=True, slots=True)
class WorkspacePermissions:
    can_create_project: bool = False


@dataclass(frozen=True, slots=True)
class ProjectPermissions:
    can_view: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_manage_members: bool = False
    can_create_tasks: bool = False


@dataclass(frozen=True, slots=True)
class TaskPermissions:
    can_view: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_assign: bool = False
    can_change_status: bool = False
    can_verify: bool = False
    can_comment: bool = False


@dataclass(frozen=True, slots=True)
class BulkPermissions:
    workspace: WorkspacePermissions | None = None
    project: ProjectPermissions | None = None
    task: TaskPermissions | None = None
