"""Notification and outbox domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4


class NotificationType(StrEnum):
    """Kinds of in-app notification."""

    # Task notifications
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_UNASSIGNED = "TASK_UNASSIGNED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_COMPLETED = "TASK_COMPLETED"
    TASK_DELETED = "TASK_DELETED"
    COMMENT_ADDED = "COMMENT_ADDED"

    # Membership notifications
    PROJECT_INVITE = "PROJECT_INVITE"
    WORKSPACE_INVITE = "WORKSPACE_INVITE"
    INVITATION_ACCEPTED = "INVITATION_ACCEPTED"
    MEMBER_ADDED = "MEMBER_ADDED"
    MEMBER_REMOVED = "MEMBER_REMOVED"


@dataclass
class Notification:
    """Domain entity for a delivered in-app notification.

    Only the read and deleted flags change after creation.
    """

    user_id: UUID
    type: NotificationType
    title: str
    message: str
    id: UUID = field(default_factory=uuid4)
    data: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    read_at: datetime | None = None
    is_deleted: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)


class OutboxStatus(StrEnum):
    """Delivery state of an outbox message."""

    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


@dataclass
class OutboxMessage:
    """A notification waiting to be materialised by the dispatcher."""

    recipient_id: UUID
    type: NotificationType
    title: str
    message: str
    id: UUID = field(default_factory=uuid4)
    data: dict[str, Any] = field(default_factory=dict)
    actor_id: UUID | None = None
    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = 0
    last_error: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    available_at: datetime = field(default_factory=datetime.utcnow)
    delivered_at: datetime | None = None

    def to_notification(self) -> Notification:
        return Notification(
            user_id=self.recipient_id,
            type=self.type,
            title=self.title,
            message=self.message,
            data=dict(self.data),
        )


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Counters from one outbox dispatcher pass."""

    delivered: int = 0
    retried: int = 0
    failed: int = 0
