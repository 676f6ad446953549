"""Project repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.project import Project, ProjectMember, ProjectRole


class IProjectRepository(Protocol):
    """Repository interface for Project entities."""

    async def get(self, id: UUID) -> Project | None:
        """Get a project by ID."""
        ...

    async def get_for_workspace(self, workspace_id: UUID) -> list[Project]:
        """Get all projects in a workspace."""
        ...

    async def get_for_member(self, workspace_id: UUID, user_id: UUID) -> list[Project]:
        """Get projects in a workspace the user owns or is a member of."""
        ...

    async def create(self, project: Project) -> Project:
        ...

    async def update(self, project: Project) -> Project:
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a project; tasks cascade."""
        ...

    async def get_member(self, project_id: UUID, user_id: UUID) -> ProjectMember | None:
        ...

    async def get_members(self, project_id: UUID) -> list[ProjectMember]:
        ...

    async def add_member(self, member: ProjectMember) -> ProjectMember:
        ...

    async def update_member_role(
        self, project_id: UUID, user_id: UUID, role: ProjectRole
    ) -> ProjectMember:
        ...

    async def remove_member(self, project_id: UUID, user_id: UUID) -> bool:
        ...
