"""Pydantic schemas for Notification API."""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import Field

from api.v1.schemas.common import CamelModel


class NotificationAction(StrEnum):
    MARK_AS_READ = "markAsRead"
    MARK_ALL_AS_READ = "markAllAsRead"
    DELETE = "delete"


class NotificationResponse(CamelModel):
    """Single notification in the feed, after output sanitization."""

    id: UUID
    type: str
    title: str
    message: str
    data: dict[str, Any]
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(CamelModel):
    notifications: list[NotificationResponse]
    unread_count: int


class UnreadCountResponse(CamelModel):
    unread_count: int


class NotificationActionRequest(CamelModel):
    """Body of POST and PATCH /notifications."""

    action: NotificationAction
    notification_id: UUID | None = None


class NotificationActionResponse(CamelModel):
    success: bool = True
    count: int | None = Field(None, description="Number marked, for markAllAsRead")
