"""Permission service: resolver + evaluator behind typed errors and check APIs."""

from collections.abc import Callable
from uuid import UUID

from core.exceptions import (
    InsufficientPermissionsError,
    ProjectNotFoundError,
    TaskNotFoundError,
    ValidationFailedError,
    WorkspaceNotFoundError,
)
from domain.entities.permission import (
    Action,
    BulkPermissions,
    ProjectPermissions,
    ResolvedAccess,
    ResourceType,
    TaskPermissions,
    WorkspacePermissions,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.permission_evaluator import evaluate
from domain.services.role_resolver import RoleResolver

# Action names accepted by the check endpoint, per resource type
PROJECT_CHECK_ACTIONS: dict[str, Action] = {
    "view": Action.VIEW,
    "create": Action.CREATE_PROJECT,
    "edit": Action.EDIT,
    "delete": Action.DELETE,
    "manageMembers": Action.MANAGE_MEMBERS,
    "createTask": Action.CREATE_TASK,
}

TASK_CHECK_ACTIONS: dict[str, Action] = {
    "view": Action.VIEW,
    "edit": Action.EDIT,
    "delete": Action.DELETE,
    "assign": Action.ASSIGN,
    "changeStatus": Action.CHANGE_STATUS,
    "verify": Action.VERIFY,
    "comment": Action.COMMENT,
    "viewAttachments": Action.VIEW_ATTACHMENTS,
    "restore": Action.RESTORE,
}

# Asking for this action returns the bulk object for the resource
BULK_ACTION = "permissions"

_NOT_FOUND = {
    ResourceType.WORKSPACE: WorkspaceNotFoundError,
    ResourceType.PROJECT: ProjectNotFoundError,
    ResourceType.TASK: TaskNotFoundError,
}


class PermissionService:
    """Single entry point for authorization decisions.

    ``authorize`` is called by the other services inside their own unit of
    work. ``check`` and ``bulk`` back the permission check endpoints.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        resolver: RoleResolver | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._resolver = resolver or RoleResolver()

    # --- In-transaction helpers ---

    async def access(
        self,
        uow: IUnitOfWork,
        user_id: UUID,
        resource_type: ResourceType,
        resource_id: UUID,
    ) -> ResolvedAccess:
        """Resolve access or raise the resource's NotFound error."""
        access = await self._resolver.resolve(uow, user_id, resource_type, resource_id)
        if access is None:
            raise _NOT_FOUND[resource_type](str(resource_id))
        return access

    async def authorize(
        self,
        uow: IUnitOfWork,
        user_id: UUID,
        resource_type: ResourceType,
        resource_id: UUID,
        action: Action,
        *,
        targets_only_self: bool = False,
    ) -> ResolvedAccess:
        """Resolve and evaluate in one step.

        Raises:
            WorkspaceNotFoundError / ProjectNotFoundError / TaskNotFoundError:
                resource missing, user outside the workspace, or a
                soft-deleted task addressed by anything but RESTORE.
            InsufficientPermissionsError: access exists but is not enough.
        """
        access = await self.access(uow, user_id, resource_type, resource_id)
        if resource_type == ResourceType.TASK and access.is_deleted and action != Action.RESTORE:
            raise TaskNotFoundError(str(resource_id))
        if not evaluate(access, action, targets_only_self=targets_only_self):
            raise InsufficientPermissionsError(action.value, resource_type.value)
        return access

    # --- Check endpoints ---

    async def check(
        self,
        user_id: UUID,
        resource_type: str,
        action: str,
        resource_id: UUID | None = None,
        workspace_id: UUID | None = None,
    ) -> bool:
        """Answer a single allow/deny question.

        Unknown types or actions are validation errors. Missing resources
        raise NotFound so the caller can tell them apart from a denial.
        """
        parsed_type, parsed_action = self._parse(resource_type, action)

        async with self._uow_factory() as uow:
            if parsed_type == ResourceType.PROJECT and parsed_action == Action.CREATE_PROJECT:
                if workspace_id is None:
                    raise ValidationFailedError(
                        "workspaceId", "workspaceId is required to check project creation"
                    )
                access = await self.access(uow, user_id, ResourceType.WORKSPACE, workspace_id)
                return evaluate(access, Action.CREATE_PROJECT)

            if resource_id is None:
                raise ValidationFailedError("resourceId", "resourceId is required")

            access = await self.access(uow, user_id, parsed_type, resource_id)
            self._ensure_in_workspace(access, workspace_id)
            return evaluate(access, parsed_action)

    async def bulk(
        self,
        user_id: UUID,
        project_id: UUID | None = None,
        task_id: UUID | None = None,
        workspace_id: UUID | None = None,
    ) -> BulkPermissions:
        """Compute the permission objects the UI uses to pre-filter controls."""
        async with self._uow_factory() as uow:
            workspace_perms = None
            project_perms = None
            task_perms = None

            if workspace_id is not None:
                ws_access = await self.access(uow, user_id, ResourceType.WORKSPACE, workspace_id)
                workspace_perms = self.workspace_permissions(ws_access)

            if project_id is not None:
                project_access = await self.access(uow, user_id, ResourceType.PROJECT, project_id)
                self._ensure_in_workspace(project_access, workspace_id)
                project_perms = self.project_permissions(project_access)

            if task_id is not None:
                task_access = await self.access(uow, user_id, ResourceType.TASK, task_id)
                self._ensure_in_workspace(task_access, workspace_id)
                task_perms = self.task_permissions(task_access)

            return BulkPermissions(
                workspace=workspace_perms,
                project=project_perms,
                task=task_perms,
            )

    async def bulk_for(
        self, user_id: UUID, resource_type: str, resource_id: UUID | None
    ) -> BulkPermissions:
        """Bulk object for a single resource (``action="permissions"``)."""
        if resource_type not in (ResourceType.PROJECT.value, ResourceType.TASK.value):
            raise ValidationFailedError("type", "type must be 'project' or 'task'")
        if resource_id is None:
            raise ValidationFailedError("resourceId", "resourceId is required")
        if resource_type == ResourceType.PROJECT.value:
            return await self.bulk(user_id, project_id=resource_id)
        return await self.bulk(user_id, task_id=resource_id)

    # --- Permission objects ---

    @staticmethod
    def workspace_permissions(access: ResolvedAccess) -> WorkspacePermissions:
        return WorkspacePermissions(can_create_project=evaluate(access, Action.CREATE_PROJECT))

    @staticmethod
    def project_permissions(access: ResolvedAccess) -> ProjectPermissions:
        return ProjectPermissions(
            can_view=evaluate(access, Action.VIEW),
            can_edit=evaluate(access, Action.EDIT),
            can_delete=evaluate(access, Action.DELETE),
            can_manage_members=evaluate(access, Action.MANAGE_MEMBERS),
            can_create_tasks=evaluate(access, Action.CREATE_TASK),
        )

    @staticmethod
    def task_permissions(access: ResolvedAccess) -> TaskPermissions:
        return TaskPermissions(
            can_view=evaluate(access, Action.VIEW),
            can_edit=evaluate(access, Action.EDIT),
            can_delete=evaluate(access, Action.DELETE),
            can_assign=evaluate(access, Action.ASSIGN),
            can_change_status=evaluate(access, Action.CHANGE_STATUS),
            can_verify=evaluate(access, Action.VERIFY),
            can_comment=evaluate(access, Action.COMMENT),
        )

    # --- Internal helpers ---

    @staticmethod
    def _parse(resource_type: str, action: str) -> tuple[ResourceType, Action]:
        if resource_type == ResourceType.PROJECT.value:
            table = PROJECT_CHECK_ACTIONS
        elif resource_type == ResourceType.TASK.value:
            table = TASK_CHECK_ACTIONS
        else:
            raise ValidationFailedError("type", "type must be 'project' or 'task'")

        parsed = table.get(action)
        if parsed is None:
            raise ValidationFailedError(
                "action",
                f"Invalid action for {resource_type}: {action}. "
                f"Expected one of: {', '.join(sorted(table))}",
            )
        return ResourceType(resource_type), parsed

    @staticmethod
    def _ensure_in_workspace(access: ResolvedAccess, workspace_id: UUID | None) -> None:
        """A resource addressed through another workspace does not exist there."""
        if workspace_id is not None and access.workspace_id != workspace_id:
            raise _NOT_FOUND[access.resource_type](str(access.resource_id))
