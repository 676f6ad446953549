"""Notification and outbox repository protocols."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.notification import Notification, OutboxMessage


class INotificationRepository(Protocol):
    """Repository interface for delivered notifications."""

    async def create(self, notification: Notification) -> Notification:
        """Create a new notification."""
        ...

    async def get_for_user(self, user_id: UUID, limit: int = 20) -> list[Notification]:
        """Newest-first, non-deleted notifications of a user."""
        ...

    async def get_unread_count(self, user_id: UUID) -> int:
        """Get the count of unread notifications for a user."""
        ...

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> bool:
        """Mark as read. True when the notification exists for the user,
        including when it was already read."""
        ...

    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark all notifications as read for a user. Returns count updated."""
        ...

    async def soft_delete(self, notification_id: UUID, user_id: UUID) -> bool:
        """Soft-delete a notification for a user."""
        ...


class IOutboxRepository(Protocol):
    """Repository interface for the notification outbox."""

    async def add(self, message: OutboxMessage) -> OutboxMessage:
        ...

    async def get_due(self, now: datetime, limit: int) -> list[OutboxMessage]:
        """PENDING messages whose available_at has passed, oldest first."""
        ...

    async def mark_delivered(self, message_id: UUID, delivered_at: datetime) -> None:
        ...

    async def record_failure(
        self,
        message_id: UUID,
        error: str,
        retry_at: datetime | None,
    ) -> None:
        """Count a failed attempt. ``retry_at=None`` marks the message FAILED."""
        ...
