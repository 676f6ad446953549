"""Project service layer with business logic."""

from collections.abc import Callable
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

from core.exceptions import (
    AlreadyAMemberError,
    MemberNotFoundError,
    ProjectNotFoundError,
    ValidationFailedError,
)
from domain.entities.notification import NotificationType
from domain.entities.permission import Action, ResourceType
from domain.entities.project import Project, ProjectMember, ProjectRole
from domain.entities.workspace import WorkspaceRole
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.notification_service import NotificationService
from domain.services.permission_service import PermissionService

logger = structlog.get_logger()


class ProjectService:
    """Service layer for Project business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        permission_service: PermissionService | None = None,
        notification_service: Optional["NotificationService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._permissions = permission_service or PermissionService(uow_factory)
        self._notification = notification_service

    async def list_for_workspace(self, workspace_id: UUID, user_id: UUID) -> list[Project]:
        """Workspace owner and admins see every project; members see their own."""
        async with self._uow_factory() as uow:
            access = await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.VIEW
            )
            if access.workspace_role is not None and access.workspace_role >= WorkspaceRole.ADMIN:
                return await uow.projects.get_for_workspace(workspace_id)  # type: ignore[no-any-return]
            return await uow.projects.get_for_member(workspace_id, user_id)  # type: ignore[no-any-return]

    async def get(self, project_id: UUID, user_id: UUID) -> Project:
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.PROJECT, project_id, Action.VIEW
            )
            return await self._load(uow, project_id)

    async def create(
        self,
        workspace_id: UUID,
        user_id: UUID,
        name: str,
        description: str | None = None,
        color: str | None = None,
    ) -> Project:
        """Create a project owned by the caller. Requires workspace owner or admin."""
        name = name.strip()
        if not name:
            raise ValidationFailedError("name", "Project name must not be empty")

        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.CREATE_PROJECT
            )
            project = Project(
                workspace_id=workspace_id,
                owner_id=user_id,
                name=name,
                description=description,
            )
            if color:
                project.color = color
            created = await uow.projects.create(project)
            await uow.commit()
            logger.info("project_created", project_id=str(created.id), workspace_id=str(workspace_id))
            return created

    async def update(
        self,
        project_id: UUID,
        user_id: UUID,
        name: str | None = None,
        description: str | None = None,
        color: str | None = None,
    ) -> Project:
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.PROJECT, project_id, Action.EDIT
            )
            project = await self._load(uow, project_id)

            if name is not None:
                if not name.strip():
                    raise ValidationFailedError("name", "Project name must not be empty")
                project.name = name.strip()
            if description is not None:
                project.description = description
            if color is not None:
                project.color = color

            project.updated_at = datetime.utcnow()
            updated = await uow.projects.update(project)
            await uow.commit()
            return updated  # type: ignore[no-any-return]

    async def delete(self, project_id: UUID, user_id: UUID) -> bool:
        """Delete a project and, by cascade, its tasks."""
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.PROJECT, project_id, Action.DELETE
            )
            deleted = await uow.projects.delete(project_id)
            await uow.commit()
            logger.info("project_deleted", project_id=str(project_id), actor_id=str(user_id))
            return deleted  # type: ignore[no-any-return]

    # --- Members ---

    async def get_members(self, project_id: UUID, user_id: UUID) -> list[ProjectMember]:
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.PROJECT, project_id, Action.VIEW
            )
            return await uow.projects.get_members(project_id)  # type: ignore[no-any-return]

    async def add_member(
        self,
        project_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
        role: ProjectRole = ProjectRole.MEMBER,
    ) -> ProjectMember:
        """Add a workspace member to the project.

        Raises:
            ValidationFailedError: target is not a member of the workspace.
            AlreadyAMemberError: target already belongs to the project.
        """
        async with self._uow_factory() as uow:
            access = await self._permissions.authorize(
                uow, user_id, ResourceType.PROJECT, project_id, Action.MANAGE_MEMBERS
            )
            project = await self._load(uow, project_id)

            if not await uow.workspaces.get_member(access.workspace_id, target_user_id):
                raise ValidationFailedError("userId", "User is not a member of this workspace")
            if project.owner_id == target_user_id or await uow.projects.get_member(
                project_id, target_user_id
            ):
                raise AlreadyAMemberError(str(target_user_id))

            added = await uow.projects.add_member(
                ProjectMember(
                    project_id=project_id,
                    user_id=target_user_id,
                    role=role,
                    added_by=user_id,
                )
            )

            if self._notification:
                actor = await uow.profiles.get(user_id)
                actor_name = actor.label if actor else "Someone"
                await self._notification.enqueue(
                    uow,
                    NotificationType.PROJECT_INVITE,
                    recipient_ids=[target_user_id],
                    title="Added to project",
                    message=f'{actor_name} added you to "{project.name}"',
                    actor_id=user_id,
                    data={"project_id": str(project_id), "role": role.value},
                )

            await uow.commit()
            return added  # type: ignore[no-any-return]

    async def update_member_role(
        self,
        project_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
        role: ProjectRole,
    ) -> ProjectMember:
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.PROJECT, project_id, Action.MANAGE_MEMBERS
            )
            if not await uow.projects.get_member(project_id, target_user_id):
                raise MemberNotFoundError(str(target_user_id))
            updated = await uow.projects.update_member_role(project_id, target_user_id, role)
            await uow.commit()
            return updated  # type: ignore[no-any-return]

    async def remove_member(self, project_id: UUID, user_id: UUID, target_user_id: UUID) -> bool:
        """Remove a project member. Any member may remove themselves."""
        async with self._uow_factory() as uow:
            if user_id == target_user_id:
                await self._permissions.authorize(
                    uow, user_id, ResourceType.PROJECT, project_id, Action.VIEW
                )
            else:
                await self._permissions.authorize(
                    uow, user_id, ResourceType.PROJECT, project_id, Action.MANAGE_MEMBERS
                )

            if not await uow.projects.get_member(project_id, target_user_id):
                raise MemberNotFoundError(str(target_user_id))
            removed = await uow.projects.remove_member(project_id, target_user_id)
            await uow.commit()
            return removed  # type: ignore[no-any-return]

    @staticmethod
    async def _load(uow: IUnitOfWork, project_id: UUID) -> Project:
        project = await uow.projects.get(project_id)
        if not project:
            raise ProjectNotFoundError(str(project_id))
        return project
