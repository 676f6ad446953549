"""Invitation repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.invitation import Invitation


class IInvitationRepository(Protocol):
    """Repository interface for Invitation entities."""

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        ...

    async def update(self, invitation: Invitation) -> Invitation:
        """Persist status, token, role and timestamps of an invitation."""
        ...

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        ...

    async def get_by_token_hash(self, token_hash: str) -> Invitation | None:
        """Get an invitation by its hashed token."""
        ...

    async def get_for_workspace_email(self, workspace_id: UUID, email: str) -> Invitation | None:
        """Get the (unique) invitation row for a workspace and email, any status."""
        ...

    async def get_for_workspace(self, workspace_id: UUID) -> list[Invitation]:
        """Get all invitations for a workspace."""
        ...

    async def get_for_email(self, email: str) -> list[Invitation]:
        """Get all invitations for an email address."""
        ...
