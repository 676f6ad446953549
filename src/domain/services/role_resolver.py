"""Role resolver: turns ownership and membership rows into role tokens."""

from uuid import UUID

from domain.entities.permission import ResolvedAccess, ResourceType, RoleToken
from domain.entities.project import Project, ProjectRole
from domain.entities.task import Task
from domain.entities.workspace import WorkspaceRole
from domain.repositories.unit_of_work import IUnitOfWork

_WORKSPACE_TOKENS = {
    WorkspaceRole.OWNER: RoleToken.OWNER,
    WorkspaceRole.ADMIN: RoleToken.ADMIN,
    WorkspaceRole.MEMBER: RoleToken.MEMBER,
}


def _finalize(tokens: set[RoleToken]) -> frozenset[RoleToken]:
    return frozenset(tokens) if tokens else frozenset({RoleToken.NONE})


class RoleResolver:
    """Read-only lookups that produce a :class:`ResolvedAccess`.

    Every method returns ``None`` when the resource does not exist or the
    user is not even a member of the owning workspace. Callers turn that into
    a 404 so that existence is not leaked through a 403.
    """

    async def resolve(
        self,
        uow: IUnitOfWork,
        user_id: UUID,
        resource_type: ResourceType,
        resource_id: UUID,
    ) -> ResolvedAccess | None:
        if resource_type == ResourceType.WORKSPACE:
            return await self.resolve_workspace(uow, user_id, resource_id)
        if resource_type == ResourceType.PROJECT:
            return await self.resolve_project(uow, user_id, resource_id)
        return await self.resolve_task(uow, user_id, resource_id)

    async def resolve_workspace(
        self, uow: IUnitOfWork, user_id: UUID, workspace_id: UUID
    ) -> ResolvedAccess | None:
        member = await uow.workspaces.get_member(workspace_id, user_id)
        if not member:
            return None
        return ResolvedAccess(
            resource_type=ResourceType.WORKSPACE,
            resource_id=workspace_id,
            workspace_id=workspace_id,
            user_id=user_id,
            roles=_finalize({_WORKSPACE_TOKENS[member.role]}),
            workspace_role=member.role,
        )

    async def resolve_project(
        self, uow: IUnitOfWork, user_id: UUID, project_id: UUID
    ) -> ResolvedAccess | None:
        project = await uow.projects.get(project_id)
        if not project:
            return None
        tokens, workspace_role = await self._project_tokens(uow, user_id, project)
        if workspace_role is None:
            return None
        return ResolvedAccess(
            resource_type=ResourceType.PROJECT,
            resource_id=project_id,
            workspace_id=project.workspace_id,
            user_id=user_id,
            roles=_finalize(tokens),
            workspace_role=workspace_role,
        )

    async def resolve_task(
        self, uow: IUnitOfWork, user_id: UUID, task_id: UUID
    ) -> ResolvedAccess | None:
        task = await uow.tasks.get(task_id)
        if not task:
            return None
        project = await uow.projects.get(task.project_id)
        if not project:
            return None
        tokens, workspace_role = await self._project_tokens(uow, user_id, project)
        if workspace_role is None:
            return None
        tokens |= await self._task_tokens(uow, user_id, task)
        return ResolvedAccess(
            resource_type=ResourceType.TASK,
            resource_id=task_id,
            workspace_id=project.workspace_id,
            user_id=user_id,
            roles=_finalize(tokens),
            workspace_role=workspace_role,
            is_deleted=task.is_deleted,
        )

    async def _project_tokens(
        self, uow: IUnitOfWork, user_id: UUID, project: Project
    ) -> tuple[set[RoleToken], WorkspaceRole | None]:
        ws_member = await uow.workspaces.get_member(project.workspace_id, user_id)
        if not ws_member:
            return set(), None

        tokens: set[RoleToken] = set()
        if project.owner_id == user_id:
            tokens.add(RoleToken.OWNER)
        # Workspace owner and admins get admin-equivalent access to every project
        if ws_member.role >= WorkspaceRole.ADMIN:
            tokens.add(RoleToken.ADMIN)

        project_member = await uow.projects.get_member(project.id, user_id)
        if project_member:
            if project_member.role == ProjectRole.ADMIN:
                tokens.add(RoleToken.ADMIN)
            else:
                tokens.add(RoleToken.MEMBER)
        return tokens, ws_member.role

    async def _task_tokens(self, uow: IUnitOfWork, user_id: UUID, task: Task) -> set[RoleToken]:
        tokens: set[RoleToken] = set()
        if task.creator_id == user_id:
            tokens.add(RoleToken.TASK_CREATOR)
        if task.assignee_id == user_id or await uow.tasks.is_assignee(task.id, user_id):
            tokens.add(RoleToken.TASK_ASSIGNEE)
        return tokens
