"""SQLAlchemy implementation of Project repository."""

from typing import Any
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.project import Project, ProjectMember, ProjectRole
from infrastructure.database.models import (
    CommentModel,
    ProjectMemberModel,
    ProjectModel,
    TaskAssigneeModel,
    TaskModel,
)


async def delete_projects(session: AsyncSession, project_ids: Any) -> None:
    """Delete projects and everything below them, children first.

    ``project_ids`` is a list of IDs or a SELECT of project IDs. Rows are
    removed explicitly so the result does not depend on the backend
    enforcing ON DELETE CASCADE.
    """
    task_ids = select(TaskModel.id).where(TaskModel.project_id.in_(project_ids))
    for stmt in (
        delete(TaskAssigneeModel).where(TaskAssigneeModel.task_id.in_(task_ids)),
        delete(CommentModel).where(CommentModel.task_id.in_(task_ids)),
        delete(TaskModel).where(TaskModel.project_id.in_(project_ids)),
        delete(ProjectMemberModel).where(ProjectMemberModel.project_id.in_(project_ids)),
        delete(ProjectModel).where(ProjectModel.id.in_(project_ids)),
    ):
        await session.execute(stmt.execution_options(synchronize_session=False))


class SQLAlchemyProjectRepository:
    """SQLAlchemy implementation of IProjectRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Project | None:
        model = await self._session.get(ProjectModel, id)
        return self._to_entity(model) if model else None

    async def get_for_workspace(self, workspace_id: UUID) -> list[Project]:
        stmt = (
            select(ProjectModel)
            .where(ProjectModel.workspace_id == workspace_id)
            .order_by(ProjectModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars()]

    async def get_for_member(self, workspace_id: UUID, user_id: UUID) -> list[Project]:
        """Projects in the workspace the user owns or belongs to."""
        member_of = select(ProjectMemberModel.project_id).where(
            ProjectMemberModel.user_id == user_id
        )
        stmt = (
            select(ProjectModel)
            .where(
                ProjectModel.workspace_id == workspace_id,
                or_(ProjectModel.owner_id == user_id, ProjectModel.id.in_(member_of)),
            )
            .order_by(ProjectModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars()]

    async def create(self, project: Project) -> Project:
        model = self._to_model(project)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, project: Project) -> Project:
        model = await self._session.get(ProjectModel, project.id)
        if not model:
            raise ValueError(f"Project {project.id} not found")

        model.name = project.name
        model.description = project.description
        model.color = project.color
        model.updated_at = project.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a project with its tasks, assignments, comments and members."""
        exists = await self._session.scalar(select(ProjectModel.id).where(ProjectModel.id == id))
        if not exists:
            return False
        await delete_projects(self._session, [id])
        return True

    # --- Members ---

    async def get_member(self, project_id: UUID, user_id: UUID) -> ProjectMember | None:
        model = await self._session.get(ProjectMemberModel, (project_id, user_id))
        return self._member_to_entity(model) if model else None

    async def get_members(self, project_id: UUID) -> list[ProjectMember]:
        stmt = (
            select(ProjectMemberModel)
            .where(ProjectMemberModel.project_id == project_id)
            .order_by(ProjectMemberModel.added_at)
        )
        result = await self._session.execute(stmt)
        return [self._member_to_entity(m) for m in result.scalars()]

    async def add_member(self, member: ProjectMember) -> ProjectMember:
        model = ProjectMemberModel(
            project_id=member.project_id,
            user_id=member.user_id,
            role=member.role.value,
            added_at=member.added_at,
            added_by=member.added_by,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._member_to_entity(model)

    async def update_member_role(
        self, project_id: UUID, user_id: UUID, role: ProjectRole
    ) -> ProjectMember:
        model = await self._session.get(ProjectMemberModel, (project_id, user_id))
        if not model:
            raise ValueError("Member not found in project")
        model.role = role.value
        await self._session.flush()
        return self._member_to_entity(model)

    async def remove_member(self, project_id: UUID, user_id: UUID) -> bool:
        model = await self._session.get(ProjectMemberModel, (project_id, user_id))
        if not model:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True

    # --- Conversion methods ---

    def _to_entity(self, model: ProjectModel) -> Project:
        return Project(
            id=model.id,
            workspace_id=model.workspace_id,
            owner_id=model.owner_id,
            name=model.name,
            description=model.description,
            color=model.color,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Project) -> ProjectModel:
        return ProjectModel(
            id=entity.id,
            workspace_id=entity.workspace_id,
            owner_id=entity.owner_id,
            name=entity.name,
            description=entity.description,
            color=entity.color,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _member_to_entity(self, model: ProjectMemberModel) -> ProjectMember:
        return ProjectMember(
            project_id=model.project_id,
            user_id=model.user_id,
            role=ProjectRole(model.role),
            added_at=model.added_at,
            added_by=model.added_by,
        )
