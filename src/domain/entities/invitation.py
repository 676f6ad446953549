"""Invitation domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.workspace import WorkspaceRole

# Default invitation expiry: 7 days
INVITATION_EXPIRY_DAYS = 7


class InvitationStatus(StrEnum):
    """Status of a workspace invitation."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


@dataclass
class Invitation:
    """Domain entity for a workspace invitation.

    One row per (email, workspace). Re-inviting after a decline or expiry
    reuses the row via :meth:`reissue`.
    """

    workspace_id: UUID
    email: str
    token_hash: str
    invited_by: UUID
    role: WorkspaceRole = WorkspaceRole.MEMBER
    id: UUID = field(default_factory=uuid4)
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime = field(
        default_factory=lambda: datetime.utcnow() + timedelta(days=INVITATION_EXPIRY_DAYS)
    )
    responded_at: datetime | None = None

    @property
    def is_expired(self) -> bool:
        """Check if the invitation has expired."""
        return datetime.utcnow() > self.expires_at

    @property
    def effective_status(self) -> InvitationStatus:
        """Status as seen at read time: a lapsed PENDING row reads as EXPIRED."""
        if self.status == InvitationStatus.PENDING and self.is_expired:
            return InvitationStatus.EXPIRED
        return self.status

    @property
    def is_pending(self) -> bool:
        """Check if the invitation is still pending and not expired."""
        return self.effective_status == InvitationStatus.PENDING

    def accept(self) -> None:
        self.status = InvitationStatus.ACCEPTED
        self.responded_at = datetime.utcnow()

    def decline(self) -> None:
        self.status = InvitationStatus.DECLINED
        self.responded_at = datetime.utcnow()

    def reissue(
        self,
        token_hash: str,
        invited_by: UUID,
        role: WorkspaceRole,
        expiry_days: int = INVITATION_EXPIRY_DAYS,
    ) -> None:
        """Reset a terminal invitation back to PENDING with a fresh token."""
        now = datetime.utcnow()
        self.token_hash = token_hash
        self.invited_by = invited_by
        self.role = role
        self.status = InvitationStatus.PENDING
        self.created_at = now
        self.expires_at = now + timedelta(days=expiry_days)
        self.responded_at = None
