"""Project domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4


class ProjectRole(StrEnum):
    """Project-scoped role. The project owner is implicit (Project.owner_id)."""

    ADMIN = "admin"
    MEMBER = "member"


@dataclass
class Project:
    """Domain entity for a Project inside a workspace."""

    workspace_id: UUID
    owner_id: UUID
    name: str
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    color: str = "#3B82F6"
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ProjectMember:
    """Domain entity for a project membership."""

    project_id: UUID
    user_id: UUID
    role: ProjectRole = ProjectRole.MEMBER
    added_at: datetime = field(default_factory=datetime.utcnow)
    added_by: UUID | None = None
