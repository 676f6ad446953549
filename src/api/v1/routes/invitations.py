"""Invitation API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import InitializedUser
from api.v1.dependencies import get_invitation_service
from api.v1.schemas.invitation import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    CreateInvitationRequest,
    InvitationCreatedResponse,
    InvitationDetailResponse,
    InvitationListResponse,
    InvitationResponse,
)
from core.rate_limit import limiter
from domain.entities.invitation import Invitation
from domain.entities.workspace import WorkspaceMember, WorkspaceRole
from domain.services.invitation_service import InvitationService

# Workspace-scoped invitation routes
workspace_invitations_router = APIRouter(
    prefix="/workspaces/{workspace_id}/invitations",
    tags=["invitations"],
)

# User-scoped invitation routes (mine, accept, decline)
invitations_router = APIRouter(
    prefix="/invitations",
    tags=["invitations"],
)


@workspace_invitations_router.post(
    "",
    response_model=InvitationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create workspace invitation",
    responses={
        201: {"description": "Invitation created or re-issued"},
        403: {"description": "Insufficient permissions (Admin+ only)"},
        404: {"description": "Workspace not found"},
        409: {"description": "Pending invitation exists or already a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_invitation(
    request: Request,
    workspace_id: UUID,
    body: CreateInvitationRequest,
    user: InitializedUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationCreatedResponse:
    """Invite an email address to the workspace. Requires Admin+ role."""
    invitation, raw_token = await service.create_invitation(
        workspace_id=workspace_id,
        user_id=user.id,
        email=body.email,
        role=WorkspaceRole.parse(body.role),
    )
    return InvitationCreatedResponse(data=_build_response(invitation), token=raw_token)


@workspace_invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="List workspace invitations",
    responses={
        200: {"description": "List of workspace invitations"},
        403: {"description": "Insufficient permissions (Admin+ only)"},
        404: {"description": "Workspace not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_workspace_invitations(
    request: Request,
    workspace_id: UUID,
    user: InitializedUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """List all invitations for a workspace, newest first."""
    invitations = await service.get_workspace_invitations(workspace_id, user.id)
    data = [_build_response(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


# --- User-scoped routes ---


@invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="Get my pending invitations",
    responses={
        200: {"description": "Pending invitations for the current user's email"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_pending_invitations(
    request: Request,
    user: InitializedUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """Get all pending invitations for the current user's email."""
    invitations = await service.get_user_pending_invitations(user.email)
    data = [_build_response(inv) for inv in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@invitations_router.post(
    "/accept",
    response_model=AcceptInvitationResponse,
    summary="Accept invitation by token",
    responses={
        200: {"description": "Invitation accepted, user added to workspace"},
        400: {"description": "Invitation expired or already responded"},
        403: {"description": "Email mismatch"},
        404: {"description": "Invitation not found"},
        409: {"description": "Already a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def accept_invitation(
    request: Request,
    body: AcceptInvitationRequest,
    user: InitializedUser,
    service: InvitationService = Depends(get_invitation_service),
) -> AcceptInvitationResponse:
    """Accept a workspace invitation using the emailed token."""
    member = await service.accept_invitation(
        token=body.token,
        user_id=user.id,
        user_email=user.email,
    )
    return _build_accept_response(member)


@invitations_router.post(
    "/{invitation_id}/accept",
    response_model=AcceptInvitationResponse,
    summary="Accept invitation",
    responses={
        200: {"description": "Invitation accepted, user added to workspace"},
        400: {"description": "Invitation expired or already responded"},
        403: {"description": "Email mismatch"},
        404: {"description": "Invitation not found"},
        409: {"description": "Already a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def accept_invitation_by_id(
    request: Request,
    invitation_id: UUID,
    user: InitializedUser,
    service: InvitationService = Depends(get_invitation_service),
) -> AcceptInvitationResponse:
    """Accept an invitation from the in-app list."""
    member = await service.accept_by_id(
        invitation_id=invitation_id,
        user_id=user.id,
        user_email=user.email,
    )
    return _build_accept_response(member)


@invitations_router.post(
    "/{invitation_id}/decline",
    response_model=InvitationDetailResponse,
    summary="Decline invitation",
    responses={
        200: {"description": "Invitation declined"},
        400: {"description": "Invitation expired or already responded"},
        403: {"description": "Email mismatch"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def decline_invitation(
    request: Request,
    invitation_id: UUID,
    user: InitializedUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationDetailResponse:
    """Decline an invitation addressed to the caller."""
    invitation = await service.decline_by_id(
        invitation_id=invitation_id,
        user_id=user.id,
        user_email=user.email,
    )
    return InvitationDetailResponse(data=_build_response(invitation))


def _build_response(invitation: Invitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        workspace_id=invitation.workspace_id,
        email=invitation.email,
        role=invitation.role.label,
        status=invitation.effective_status.value,
        invited_by=invitation.invited_by,
        created_at=invitation.created_at,
        expires_at=invitation.expires_at,
        responded_at=invitation.responded_at,
    )


def _build_accept_response(member: WorkspaceMember) -> AcceptInvitationResponse:
    return AcceptInvitationResponse(workspace_id=member.workspace_id, role=member.role.label)
