"""SQLAlchemy implementation of Workspace repository."""

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.workspace import Workspace, WorkspaceMember, WorkspaceRole
from infrastructure.database.models import (
    InvitationModel,
    ProjectModel,
    WorkspaceMemberModel,
    WorkspaceModel,
)
from infrastructure.database.repositories.sqlalchemy_project_repo import delete_projects

# Map string role values in DB to WorkspaceRole enum
_ROLE_TO_ENUM = {
    "owner": WorkspaceRole.OWNER,
    "admin": WorkspaceRole.ADMIN,
    "member": WorkspaceRole.MEMBER,
}

_ENUM_TO_ROLE = {v: k for k, v in _ROLE_TO_ENUM.items()}


class SQLAlchemyWorkspaceRepository:
    """SQLAlchemy implementation of IWorkspaceRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID."""
        model = await self._session.get(WorkspaceModel, id)
        return self._to_entity(model) if model else None

    async def get_by_slug(self, slug: str) -> Workspace | None:
        """Get a workspace by slug."""
        stmt = select(WorkspaceModel).where(WorkspaceModel.slug == slug)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_all_for_user(self, user_id: UUID) -> list[Workspace]:
        """Get all workspaces a user is a member of."""
        stmt = (
            select(WorkspaceModel)
            .join(
                WorkspaceMemberModel,
                WorkspaceMemberModel.workspace_id == WorkspaceModel.id,
            )
            .where(WorkspaceMemberModel.user_id == user_id)
            .order_by(WorkspaceModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, workspace: Workspace) -> Workspace:
        """Create a new workspace."""
        model = self._to_model(workspace)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, workspace: Workspace) -> Workspace:
        """Update name, slug and description."""
        model = await self._session.get(WorkspaceModel, workspace.id)
        if not model:
            raise ValueError(f"Workspace {workspace.id} not found")

        model.name = workspace.name
        model.slug = workspace.slug
        model.description = workspace.description
        model.updated_at = workspace.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a workspace with its projects, members and invitations.

        Children are removed explicitly so the result does not depend on the
        backend enforcing ON DELETE CASCADE.
        """
        model = await self._session.get(WorkspaceModel, id)
        if not model:
            return False

        project_ids = select(ProjectModel.id).where(ProjectModel.workspace_id == id)
        await delete_projects(self._session, project_ids)
        await self._session.execute(
            delete(InvitationModel).where(InvitationModel.workspace_id == id)
        )
        await self._session.execute(
            delete(WorkspaceMemberModel).where(WorkspaceMemberModel.workspace_id == id)
        )
        await self._session.delete(model)
        await self._session.flush()
        return True

    # --- Members ---

    async def get_member(self, workspace_id: UUID, user_id: UUID) -> WorkspaceMember | None:
        """Get a workspace member by workspace and user IDs."""
        model = await self._session.get(WorkspaceMemberModel, (workspace_id, user_id))
        return self._member_to_entity(model) if model else None

    async def get_members(self, workspace_id: UUID) -> list[WorkspaceMember]:
        """Get all members of a workspace."""
        stmt = (
            select(WorkspaceMemberModel)
            .where(WorkspaceMemberModel.workspace_id == workspace_id)
            .order_by(WorkspaceMemberModel.joined_at)
        )
        result = await self._session.execute(stmt)
        return [self._member_to_entity(model) for model in result.scalars()]

    async def get_member_ids(self, workspace_id: UUID, user_ids: list[UUID]) -> set[UUID]:
        """Return the subset of ``user_ids`` that are members of the workspace."""
        if not user_ids:
            return set()
        stmt = select(WorkspaceMemberModel.user_id).where(
            WorkspaceMemberModel.workspace_id == workspace_id,
            WorkspaceMemberModel.user_id.in_(user_ids),
        )
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def add_member(self, member: WorkspaceMember) -> WorkspaceMember:
        """Add a member to a workspace."""
        model = self._member_to_model(member)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._member_to_entity(model)

    async def update_member_role(
        self, workspace_id: UUID, user_id: UUID, role: WorkspaceRole
    ) -> WorkspaceMember:
        """Update a member's role in a workspace."""
        model = await self._session.get(WorkspaceMemberModel, (workspace_id, user_id))
        if not model:
            raise ValueError("Member not found in workspace")

        model.role = _ENUM_TO_ROLE[role]
        await self._session.flush()
        return self._member_to_entity(model)

    async def remove_member(self, workspace_id: UUID, user_id: UUID) -> bool:
        """Remove a member from a workspace."""
        model = await self._session.get(WorkspaceMemberModel, (workspace_id, user_id))
        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def count_members(self, workspace_id: UUID) -> int:
        """Count the number of members in a workspace."""
        stmt = (
            select(func.count())
            .select_from(WorkspaceMemberModel)
            .where(WorkspaceMemberModel.workspace_id == workspace_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    # --- Conversion methods ---

    def _to_entity(self, model: WorkspaceModel) -> Workspace:
        return Workspace(
            id=model.id,
            name=model.name,
            slug=model.slug,
            description=model.description,
            owner_id=model.owner_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Workspace) -> WorkspaceModel:
        return WorkspaceModel(
            id=entity.id,
            name=entity.name,
            slug=entity.slug,
            description=entity.description,
            owner_id=entity.owner_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _member_to_entity(self, model: WorkspaceMemberModel) -> WorkspaceMember:
        return WorkspaceMember(
            workspace_id=model.workspace_id,
            user_id=model.user_id,
            role=_ROLE_TO_ENUM[model.role],
            joined_at=model.joined_at,
            invited_by=model.invited_by,
        )

    def _member_to_model(self, entity: WorkspaceMember) -> WorkspaceMemberModel:
        return WorkspaceMemberModel(
            workspace_id=entity.workspace_id,
            user_id=entity.user_id,
            role=_ENUM_TO_ROLE[entity.role],
            joined_at=entity.joined_at,
            invited_by=entity.invited_by,
        )
