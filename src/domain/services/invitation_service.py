"""Invitation service layer with business logic."""

import hashlib
import secrets
from collections.abc import Callable
from typing import Optional
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import (
    AlreadyAMemberError,
    DuplicateInvitationError,
    InvitationAlreadyRespondedError,
    InvitationEmailMismatchError,
    InvitationExpiredError,
    InvitationNotFoundError,
    ValidationFailedError,
)
from domain.entities.invitation import Invitation, InvitationStatus
from domain.entities.notification import NotificationType
from domain.entities.permission import Action, ResourceType
from domain.entities.workspace import WorkspaceMember, WorkspaceRole
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.notification_service import NotificationService
from domain.services.permission_service import PermissionService

logger = structlog.get_logger()


class InvitationService:
    """Service layer for workspace invitation business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        permission_service: PermissionService | None = None,
        notification_service: Optional["NotificationService"] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._permissions = permission_service or PermissionService(uow_factory)
        self._notification = notification_service

    async def create_invitation(
        self,
        workspace_id: UUID,
        user_id: UUID,
        email: str,
        role: WorkspaceRole = WorkspaceRole.MEMBER,
    ) -> tuple[Invitation, str]:
        """Create, or re-issue, a workspace invitation.

        Args:
            workspace_id: The workspace to invite to.
            user_id: The user creating the invitation (must be owner or admin).
            email: The email address to invite.
            role: The role to assign on acceptance.

        Returns:
            Tuple of (Invitation, raw_token). The raw_token is only available
            at creation time and should be shared with the invitee.

        Raises:
            WorkspaceNotFoundError: workspace missing or caller not a member.
            InsufficientPermissionsError: caller is a plain member.
            DuplicateInvitationError: a pending invitation already exists.
            AlreadyAMemberError: the email belongs to an existing member.
        """
        if role == WorkspaceRole.OWNER:
            raise ValidationFailedError("role", "Invitations cannot grant ownership")
        email = email.lower().strip()

        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.INVITE
            )
            workspace = await uow.workspaces.get(workspace_id)

            invitee = await uow.profiles.get_by_email(email)
            if invitee and await uow.workspaces.get_member(workspace_id, invitee.id):
                raise AlreadyAMemberError(str(invitee.id))

            raw_token = secrets.token_urlsafe(32)
            token_hash = self._hash_token(raw_token)

            # One row per (email, workspace): terminal invitations are reused
            existing = await uow.invitations.get_for_workspace_email(workspace_id, email)
            if existing:
                if existing.is_pending:
                    raise DuplicateInvitationError(email)
                existing.reissue(
                    token_hash=token_hash,
                    invited_by=user_id,
                    role=role,
                    expiry_days=settings.invitation_expiry_days,
                )
                invitation = await uow.invitations.update(existing)
            else:
                invitation = await uow.invitations.create(
                    Invitation(
                        workspace_id=workspace_id,
                        email=email,
                        role=role,
                        token_hash=token_hash,
                        invited_by=user_id,
                    )
                )

            if invitee and self._notification:
                workspace_name = workspace.name if workspace else ""
                await self._notification.enqueue(
                    uow,
                    NotificationType.WORKSPACE_INVITE,
                    recipient_ids=[invitee.id],
                    title="Workspace invitation",
                    message=f'You have been invited to join "{workspace_name}"',
                    actor_id=user_id,
                    data={
                        "workspace_id": str(workspace_id),
                        "invitation_id": str(invitation.id),
                    },
                )

            await uow.commit()
            logger.info(
                "invitation_created",
                invitation_id=str(invitation.id),
                workspace_id=str(workspace_id),
            )
            return invitation, raw_token

    async def accept_invitation(
        self,
        token: str,
        user_id: UUID,
        user_email: str,
    ) -> WorkspaceMember:
        """Accept a workspace invitation using the raw token.

        Raises:
            InvitationNotFoundError: If token does not match any invitation.
            InvitationExpiredError: If the invitation has expired.
            InvitationAlreadyRespondedError: If already accepted or declined.
            InvitationEmailMismatchError: If user email doesn't match.
            AlreadyAMemberError: If user is already a workspace member.
        """
        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_token_hash(self._hash_token(token))
            if not invitation:
                raise InvitationNotFoundError()
            return await self._process_acceptance(uow, invitation, user_id, user_email)

    async def accept_by_id(
        self,
        invitation_id: UUID,
        user_id: UUID,
        user_email: str,
    ) -> WorkspaceMember:
        """Accept a workspace invitation by its ID (in-app flow)."""
        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_id(invitation_id)
            if not invitation:
                raise InvitationNotFoundError(str(invitation_id))
            return await self._process_acceptance(uow, invitation, user_id, user_email)

    async def decline_by_id(
        self,
        invitation_id: UUID,
        user_id: UUID,
        user_email: str,
    ) -> Invitation:
        """Decline a pending invitation addressed to the caller."""
        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_id(invitation_id)
            if not invitation:
                raise InvitationNotFoundError(str(invitation_id))
            await self._ensure_respondable(uow, invitation, user_email)

            invitation.decline()
            declined = await uow.invitations.update(invitation)
            await uow.commit()
            logger.info("invitation_declined", invitation_id=str(invitation_id), user_id=str(user_id))
            return declined  # type: ignore[no-any-return]

    async def get_workspace_invitations(
        self,
        workspace_id: UUID,
        user_id: UUID,
    ) -> list[Invitation]:
        """Get all invitations for a workspace. Requires owner or admin."""
        async with self._uow_factory() as uow:
            await self._permissions.authorize(
                uow, user_id, ResourceType.WORKSPACE, workspace_id, Action.INVITE
            )
            return await uow.invitations.get_for_workspace(workspace_id)  # type: ignore[no-any-return]

    async def get_user_pending_invitations(self, email: str) -> list[Invitation]:
        """Pending, unexpired invitations addressed to an email."""
        async with self._uow_factory() as uow:
            invitations = await uow.invitations.get_for_email(email.lower().strip())
            return [inv for inv in invitations if inv.is_pending]

    # --- Internal helpers ---

    async def _ensure_respondable(
        self, uow: IUnitOfWork, invitation: Invitation, user_email: str
    ) -> None:
        """Shared status, expiry and recipient checks for accept and decline."""
        if invitation.status in (InvitationStatus.ACCEPTED, InvitationStatus.DECLINED):
            raise InvitationAlreadyRespondedError(invitation.status.value.lower())

        if invitation.effective_status == InvitationStatus.EXPIRED:
            if invitation.status != InvitationStatus.EXPIRED:
                invitation.status = InvitationStatus.EXPIRED
                await uow.invitations.update(invitation)
                await uow.commit()
            raise InvitationExpiredError()

        if user_email.lower().strip() != invitation.email.lower().strip():
            raise InvitationEmailMismatchError()

    async def _process_acceptance(
        self,
        uow: IUnitOfWork,
        invitation: Invitation,
        user_id: UUID,
        user_email: str,
    ) -> WorkspaceMember:
        await self._ensure_respondable(uow, invitation, user_email)

        existing_member = await uow.workspaces.get_member(invitation.workspace_id, user_id)
        if existing_member:
            # Close the invitation so the token cannot be replayed
            invitation.accept()
            await uow.invitations.update(invitation)
            await uow.commit()
            raise AlreadyAMemberError(str(user_id))

        added = await uow.workspaces.add_member(
            WorkspaceMember(
                workspace_id=invitation.workspace_id,
                user_id=user_id,
                role=invitation.role,
                invited_by=invitation.invited_by,
            )
        )
        invitation.accept()
        await uow.invitations.update(invitation)

        if self._notification:
            workspace = await uow.workspaces.get(invitation.workspace_id)
            profile = await uow.profiles.get(user_id)
            who = profile.label if profile else user_email
            await self._notification.enqueue(
                uow,
                NotificationType.INVITATION_ACCEPTED,
                recipient_ids=[invitation.invited_by],
                title="Invitation accepted",
                message=f'{who} joined "{workspace.name if workspace else ""}"',
                actor_id=user_id,
                data={
                    "workspace_id": str(invitation.workspace_id),
                    "invitation_id": str(invitation.id),
                },
            )

        await uow.commit()
        logger.info(
            "invitation_accepted",
            invitation_id=str(invitation.id),
            workspace_id=str(invitation.workspace_id),
        )
        return added  # type: ignore[no-any-return]

    @staticmethod
    def _hash_token(token: str) -> str:
        """Hash a raw invitation token using SHA-256."""
        return hashlib.sha256(token.encode()).hexdigest()
