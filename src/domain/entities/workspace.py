"""Workspace domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from uuid import UUID, uuid4


class WorkspaceRole(IntEnum):
    """Workspace role hierarchy. Higher value = more permissions."""

    MEMBER = 20
    ADMIN = 30
    OWNER = 40

    @classmethod
    def parse(cls, value: str) -> "WorkspaceRole":
        """Parse a lowercase role name ("owner", "admin", "member")."""
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown workspace role: {value}") from None

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass
class Workspace:
    """Domain entity for a Workspace. Exactly one owner."""

    name: str
    owner_id: UUID
    id: UUID = field(default_factory=uuid4)
    slug: str = ""
    description: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at


@dataclass
class WorkspaceMember:
    """Domain entity for a workspace membership."""

    workspace_id: UUID
    user_id: UUID
    role: WorkspaceRole = WorkspaceRole.MEMBER
    joined_at: datetime = field(default_factory=datetime.utcnow)
    invited_by: UUID | None = None
