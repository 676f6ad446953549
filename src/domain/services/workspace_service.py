"""Workspace service layer with business logic."""

import re
from collections.abc import Callable
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

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
from domain.entities.permission import Action, ResourceType
from domain.entities.workspace import Workspace, WorkspaceMember, WorkspaceRole
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.notification_service import NotificationService
from domain.services.permission_service import PermissionService

logger = structlog.get_logger()


class WorkspaceService:
    """Service layer for Workspace business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        permission_service: PermissionService | None = None,
        notification_service: Optional["NotificationService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._permissions = permission_service or PermissionService(uow_factory)
        self._notification = notification_service

    async def get_all_for_user(self, user_id: UUID) -> list[Workspace]:
        """Get all workspaces a user is a member of."""
        async with self._uow_factory() as uow:
            return await uow.workspaces.get_all_for_user(user_id)  # type: ignore[no-any-return]

    async def get_by_id(self, workspace_id: UUID, user_id: UUID) -> Workspace:
        """Get a workspace. Non-members get WorkspaceNotFoundError."""
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.VIEW
            )
            return await self._load(uow, workspace_id)

    async def create(
        self,
        user_id: UUID,
        name: str,
        description: str | None = None,
    ) -> Workspace:
        """Create a new workspace owned by the caller."""
        name = name.strip()
        if not name:
            raise ValidationFailedError("name", "Workspace name must not be empty")

        async with self._uow_factory() as uow:
            slug = self._generate_slug(name)

            # Ensure slug uniqueness
            existing = await uow.workspaces.get_by_slug(slug)
            if existing:
                slug = f"{slug}-{str(user_id)[:8]}"
                existing = await uow.workspaces.get_by_slug(slug)
                if existing:
                    raise WorkspaceSlugTakenError(slug)

            workspace = Workspace(
                name=name,
                slug=slug,
                description=description,
                owner_id=user_id,
            )
            created = await uow.workspaces.create(workspace)

            await uow.workspaces.add_member(
                WorkspaceMember(
                    workspace_id=created.id,
                    user_id=user_id,
                    role=WorkspaceRole.OWNER,
                )
            )

            await uow.commit()
            logger.info("workspace_created", workspace_id=str(created.id), owner_id=str(user_id))
            return created

    async def update(
        self,
        workspace_id: UUID,
        user_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> Workspace:
        """Update a workspace. Requires owner or admin."""
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.EDIT
            )
            workspace = await self._load(uow, workspace_id)

            if name is not None:
                if not name.strip():
                    raise ValidationFailedError("name", "Workspace name must not be empty")
                workspace.name = name.strip()
            if description is not None:
                workspace.description = description

            workspace.updated_at = datetime.utcnow()
            updated = await uow.workspaces.update(workspace)
            await uow.commit()
            return updated  # type: ignore[no-any-return]

    async def delete(self, workspace_id: UUID, user_id: UUID) -> bool:
        """Delete a workspace with its projects and tasks. Owner only."""
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.DELETE
            )
            deleted = await uow.workspaces.delete(workspace_id)
            await uow.commit()
            logger.info("workspace_deleted", workspace_id=str(workspace_id), actor_id=str(user_id))
            return deleted  # type: ignore[no-any-return]

    # --- Members ---

    async def get_members(self, workspace_id: UUID, user_id: UUID) -> list[WorkspaceMember]:
        """Get all members of a workspace. Requires membership."""
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.VIEW
            )
            return await uow.workspaces.get_members(workspace_id)  # type: ignore[no-any-return]

    async def add_member(
        self,
        workspace_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
        role: WorkspaceRole = WorkspaceRole.MEMBER,
    ) -> WorkspaceMember:
        """Add an existing user directly. Requires owner or admin.

        Ownership cannot be granted here; a workspace has exactly one owner.
        """
        if role == WorkspaceRole.OWNER:
            raise ValidationFailedError("role", "A workspace has exactly one owner")

        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.MANAGE_MEMBERS
            )
            workspace = await self._load(uow, workspace_id)

            if not await uow.profiles.get(target_user_id):
                raise UserNotFoundError(str(target_user_id))
            if await uow.workspaces.get_member(workspace_id, target_user_id):
                raise AlreadyAMemberError(str(target_user_id))

            added = await uow.workspaces.add_member(
                WorkspaceMember(
                    workspace_id=workspace_id,
                    user_id=target_user_id,
                    role=role,
                    invited_by=user_id,
                )
            )

            if self._notification:
                await self._notification.enqueue(
                    uow,
                    NotificationType.MEMBER_ADDED,
                    recipient_ids=[target_user_id],
                    title="Added to workspace",
                    message=f'You were added to "{workspace.name}" as {role.label}',
                    actor_id=user_id,
                    data={"workspace_id": str(workspace_id), "role": role.label},
                )

            await uow.commit()
            return added  # type: ignore[no-any-return]

    async def update_member_role(
        self,
        workspace_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
        role: WorkspaceRole,
    ) -> WorkspaceMember:
        """Change a member's role between admin and member.

        The owner cannot be demoted and nobody can be promoted to owner.
        """
        if role == WorkspaceRole.OWNER:
            raise ValidationFailedError("role", "A workspace has exactly one owner")

        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.MANAGE_MEMBERS
            )
            if user_id == target_user_id:
                raise InsufficientPermissionsError("change own role")

            target = await uow.workspaces.get_member(workspace_id, target_user_id)
            if not target:
                raise MemberNotFoundError(str(target_user_id))
            if target.role == WorkspaceRole.OWNER:
                raise LastOwnerError()

            updated = await uow.workspaces.update_member_role(workspace_id, target_user_id, role)
            await uow.commit()
            return updated  # type: ignore[no-any-return]

    async def remove_member(
        self,
        workspace_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
    ) -> bool:
        """Remove a member from a workspace.

        - Members can remove themselves (leave)
        - Admins can remove members
        - The owner can remove anyone but themselves
        """
        async with self._uow_factory() as uow:
            access = await self._permissions.access(
                uow, user_id, ResourceType.WORKSPACE, workspace_id
            )
            workspace = await self._load(uow, workspace_id)

            target = await uow.workspaces.get_member(workspace_id, target_user_id)
            if not target:
                raise MemberNotFoundError(str(target_user_id))
            if target.role == WorkspaceRole.OWNER:
                raise LastOwnerError()

            is_self_leave = user_id == target_user_id
            if not is_self_leave:
                await self._permissions.authorize(
                    uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.MANAGE_MEMBERS
                )
                # Admins cannot remove other admins
                if target.role >= (access.workspace_role or WorkspaceRole.MEMBER):
                    raise InsufficientPermissionsError("remove member", "workspace")

            removed = await uow.workspaces.remove_member(workspace_id, target_user_id)

            if not is_self_leave and self._notification:
                await self._notification.enqueue(
                    uow,
                    NotificationType.MEMBER_REMOVED,
                    recipient_ids=[target_user_id],
                    title="Removed from workspace",
                    message=f'You were removed from "{workspace.name}"',
                    actor_id=user_id,
                    data={"workspace_id": str(workspace_id)},
                )

            await uow.commit()
            return removed  # type: ignore[no-any-return]

    # --- Internal helpers ---

    @staticmethod
    async def _load(uow: IUnitOfWork, workspace_id: UUID) -> Workspace:
        workspace = await uow.workspaces.get(workspace_id)
        if not workspace:
            raise WorkspaceNotFoundError(str(workspace_id))
        return workspace

    @staticmethod
    def _generate_slug(name: str) -> str:
        """Generate a URL-friendly slug from a workspace name."""
        slug = name.lower().strip()
        slug = re.sub(r"[^a-z0-9\s-]", "", slug)
        slug = re.sub(r"[\s_]+", "-", slug)
        slug = re.sub(r"-+", "-", slug)
        slug = slug.strip("-")
        return slug[:100] if slug else "workspace"
