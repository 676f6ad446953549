"""Notification service: outbox enqueue, dispatch and the user's feed."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import NotificationNotFoundError
from core.sanitize import sanitize_message, sanitize_title, sanitize_url, truncate_id
from domain.entities.notification import (
    DispatchResult,
    Notification,
    NotificationType,
    OutboxMessage,
)
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class IBroadcaster(Protocol):
    """Real-time channel. Delivery is not guaranteed."""

    async def emit_to_user(self, user_id: UUID, event: str, payload: dict[str, Any]) -> None:
        ...


@dataclass(frozen=True, slots=True)
class NotificationView:
    """Read-only value object: a notification after output sanitization."""

    id: UUID
    type: str
    title: str
    message: str
    data: dict[str, Any]
    is_read: bool
    read_at: datetime | None
    created_at: datetime


def sanitize_notification(notification: Notification) -> NotificationView:
    data: dict[str, Any] = {}
    for key, value in (notification.data or {}).items():
        if key.endswith("url"):
            url = sanitize_url(value)
            if url:
                data[key] = url
        elif key.endswith("_id"):
            data[key] = truncate_id(value)
        elif isinstance(value, str):
            data[key] = sanitize_title(value)
        else:
            data[key] = value

    return NotificationView(
        id=notification.id,
        type=notification.type.value,
        title=sanitize_title(notification.title),
        message=sanitize_message(notification.message),
        data=data,
        is_read=notification.is_read,
        read_at=notification.read_at,
        created_at=notification.created_at,
    )


class NotificationService:
    """Notifications are appended to an outbox inside the caller's transaction
    and materialised later by :meth:`dispatch_pending`.

    Enqueue failures are logged and never reach the caller's primary action.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        broadcaster: IBroadcaster | None = None,
        max_attempts: int = settings.outbox_max_attempts,
        retry_base_seconds: int = settings.outbox_retry_base_seconds,
    ) -> None:
        self._uow_factory = uow_factory
        self._broadcaster = broadcaster
        self._max_attempts = max_attempts
        self._retry_base_seconds = retry_base_seconds

    # --- In-transaction enqueue ---

    async def enqueue(
        self,
        uow: IUnitOfWork,
        type: NotificationType,
        recipient_ids: list[UUID],
        title: str,
        message: str,
        actor_id: UUID | None = None,
        data: dict[str, Any] | None = None,
    ) -> int:
        """Append one outbox message per recipient within the caller's UoW.

        The actor never notifies themselves and duplicate recipients collapse.
        Runs in a savepoint so a failure leaves the caller's transaction
        usable. Returns the number of messages queued (0 on failure).
        """
        recipients = list(dict.fromkeys(r for r in recipient_ids if r != actor_id))
        if not recipients:
            return 0

        try:
            async with uow.savepoint():
                for recipient_id in recipients:
                    await uow.outbox.add(
                        OutboxMessage(
                            recipient_id=recipient_id,
                            type=type,
                            title=title,
                            message=message,
                            actor_id=actor_id,
                            data=data or {},
                        )
                    )
        except Exception:
            logger.exception(
                "notification_enqueue_failed",
                type=type.value,
                recipient_count=len(recipients),
            )
            return 0

        return len(recipients)

    # --- Dispatcher ---

    async def dispatch_pending(self, batch_size: int = settings.outbox_batch_size) -> DispatchResult:
        """Drain one batch of due outbox messages.

        Each message is materialised in its own savepoint. A failure bumps the
        attempt counter and schedules a retry with exponential backoff, or
        marks the message FAILED after ``max_attempts``. Real-time emission
        happens after commit and is best-effort.
        """
        now = datetime.utcnow()
        delivered: list[Notification] = []
        retried = 0
        failed = 0

        async with self._uow_factory() as uow:
            due = await uow.outbox.get_due(now, batch_size)
            for message in due:
                try:
                    async with uow.savepoint():
                        created = await uow.notifications.create(message.to_notification())
                        await uow.outbox.mark_delivered(message.id, now)
                    delivered.append(created)
                except Exception as exc:
                    attempts = message.attempts + 1
                    give_up = attempts >= self._max_attempts
                    retry_at = None if give_up else now + self._backoff(attempts)
                    await uow.outbox.record_failure(message.id, str(exc)[:500], retry_at)
                    logger.warning(
                        "outbox_delivery_failed",
                        message_id=str(message.id),
                        attempts=attempts,
                        gave_up=give_up,
                        error=str(exc),
                    )
                    if give_up:
                        failed += 1
                    else:
                        retried += 1
            await uow.commit()

        for notification in delivered:
            await self._emit(notification)

        if delivered or retried or failed:
            logger.info(
                "outbox_dispatch_completed",
                delivered=len(delivered),
                retried=retried,
                failed=failed,
            )
        return DispatchResult(delivered=len(delivered), retried=retried, failed=failed)

    def _backoff(self, attempts: int) -> timedelta:
        return timedelta(seconds=self._retry_base_seconds * (2 ** (attempts - 1)))

    async def _emit(self, notification: Notification) -> None:
        if not self._broadcaster:
            return
        view = sanitize_notification(notification)
        try:
            await self._broadcaster.emit_to_user(
                notification.user_id,
                "notification.created",
                {
                    "id": str(view.id),
                    "type": view.type,
                    "title": view.title,
                    "message": view.message,
                    "data": view.data,
                    "createdAt": view.created_at.isoformat(),
                },
            )
        except Exception:
            logger.warning(
                "notification_emit_failed",
                notification_id=str(notification.id),
                exc_info=True,
            )

    # --- Read / update methods (use own UoW context) ---

    async def get_notifications(
        self, user_id: UUID, limit: int = settings.notification_default_limit
    ) -> tuple[list[NotificationView], int]:
        """Sanitized newest-first feed and the unread count."""
        limit = max(1, min(limit, settings.notification_max_limit))
        async with self._uow_factory() as uow:
            notifications = await uow.notifications.get_for_user(user_id, limit)
            unread_count = await uow.notifications.get_unread_count(user_id)
            return [sanitize_notification(n) for n in notifications], unread_count

    async def get_unread_count(self, user_id: UUID) -> int:
        async with self._uow_factory() as uow:
            return await uow.notifications.get_unread_count(user_id)

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> None:
        """Mark one notification read. Already-read notifications succeed."""
        async with self._uow_factory() as uow:
            found = await uow.notifications.mark_read(notification_id, user_id)
            if not found:
                raise NotificationNotFoundError(str(notification_id))
            await uow.commit()

    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark all notifications as read. Returns count of marked (0 is fine)."""
        async with self._uow_factory() as uow:
            count = await uow.notifications.mark_all_read(user_id)
            await uow.commit()
            return count

    async def delete_notification(self, notification_id: UUID, user_id: UUID) -> None:
        """Soft-delete a notification for a user."""
        async with self._uow_factory() as uow:
            found = await uow.notifications.soft_delete(notification_id, user_id)
            if not found:
                raise NotificationNotFoundError(str(notification_id))
            await uow.commit()
