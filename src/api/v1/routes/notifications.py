"""Notification API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import CsrfChecked, InitializedUser
from api.v1.dependencies import get_notification_service
from api.v1.schemas.notification import (
    NotificationAction,
    NotificationActionRequest,
    NotificationActionResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from core.config import settings
from core.exceptions import ValidationFailedError
from core.rate_limit import limiter
from domain.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List my notifications",
    responses={200: {"description": "Newest first, sanitized, with unread count"}},
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def list_notifications(
    request: Request,
    user: InitializedUser,
    limit: int = Query(
        settings.notification_default_limit,
        ge=1,
        description=f"Page size, clamped to {settings.notification_max_limit}",
    ),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    views, unread_count = await service.get_notifications(user.id, limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(v, from_attributes=True) for v in views],
        unread_count=unread_count,
    )


@router.get(
    "/count",
    response_model=UnreadCountResponse,
    summary="Get unread notification count",
)
@limiter.limit("120/minute")  # type: ignore[untyped-decorator]
async def get_unread_count(
    request: Request,
    user: InitializedUser,
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCountResponse:
    count = await service.get_unread_count(user.id)
    return UnreadCountResponse(unread_count=count)


@router.post(
    "",
    response_model=NotificationActionResponse,
    response_model_exclude_none=True,
    summary="Apply a notification action",
    responses={
        400: {"description": "Unknown action or missing notificationId"},
        404: {"description": "Notification not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def post_notification_action(
    request: Request,
    body: NotificationActionRequest,
    user: InitializedUser,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationActionResponse:
    """markAsRead, markAllAsRead or delete."""
    return await _apply_action(service, user.id, body)


@router.patch(
    "",
    response_model=NotificationActionResponse,
    response_model_exclude_none=True,
    summary="Apply a notification action (CSRF-checked)",
    dependencies=[CsrfChecked],
    responses={
        400: {"description": "Unknown action or missing notificationId"},
        403: {"description": "Missing X-Requested-With header"},
        404: {"description": "Notification not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def patch_notification_action(
    request: Request,
    body: NotificationActionRequest,
    user: InitializedUser,
    service: NotificationService = Depends(get_notification_service),
) -> NotificationActionResponse:
    """Same actions as POST; requires ``X-Requested-With: XMLHttpRequest``."""
    return await _apply_action(service, user.id, body)


async def _apply_action(
    service: NotificationService, user_id: UUID, body: NotificationActionRequest
) -> NotificationActionResponse:
    if body.action == NotificationAction.MARK_ALL_AS_READ:
        count = await service.mark_all_read(user_id)
        return NotificationActionResponse(count=count)

    if body.notification_id is None:
        raise ValidationFailedError("notificationId", "notificationId is required")

    if body.action == NotificationAction.MARK_AS_READ:
        await service.mark_read(body.notification_id, user_id)
    else:
        await service.delete_notification(body.notification_id, user_id)
    return NotificationActionResponse()
