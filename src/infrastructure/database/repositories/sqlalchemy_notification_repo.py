"""SQLAlchemy implementation of Notification and Outbox repositories."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.notification import (
    Notification,
    NotificationType,
    OutboxMessage,
    OutboxStatus,
)
from infrastructure.database.models import NotificationModel, OutboxMessageModel


class SQLAlchemyNotificationRepository:
    """SQLAlchemy implementation of INotificationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, notification: Notification) -> Notification:
        """Create a new notification."""
        model = self._to_model(notification)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get_for_user(self, user_id: UUID, limit: int = 20) -> list[Notification]:
        """Newest-first feed of a user's non-deleted notifications."""
        stmt = (
            select(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.is_deleted.is_(False),
            )
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_unread_count(self, user_id: UUID) -> int:
        """Get the count of unread notifications for a user."""
        stmt = select(func.count(NotificationModel.id)).where(
            NotificationModel.user_id == user_id,
            NotificationModel.is_read.is_(False),
            NotificationModel.is_deleted.is_(False),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> bool:
        """Mark a notification as read for a user.

        Matches already-read rows too, so repeating the call still reports
        success. ``read_at`` keeps its first value.
        """
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
                NotificationModel.is_deleted.is_(False),
            )
            .values(
                is_read=True,
                read_at=func.coalesce(NotificationModel.read_at, datetime.utcnow()),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0  # type: ignore[attr-defined, no-any-return]

    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark all notifications as read for a user. Returns count updated."""
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
                NotificationModel.is_deleted.is_(False),
            )
            .values(is_read=True, read_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def soft_delete(self, notification_id: UUID, user_id: UUID) -> bool:
        """Soft-delete a notification for a user."""
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
                NotificationModel.is_deleted.is_(False),
            )
            .values(is_deleted=True)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0  # type: ignore[attr-defined, no-any-return]

    # --- Conversion methods ---

    def _to_entity(self, model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            data=dict(model.data or {}),
            is_read=model.is_read,
            read_at=model.read_at,
            is_deleted=model.is_deleted,
            created_at=model.created_at,
        )

    def _to_model(self, entity: Notification) -> NotificationModel:
        return NotificationModel(
            id=entity.id,
            user_id=entity.user_id,
            type=entity.type.value,
            title=entity.title,
            message=entity.message,
            data=entity.data or None,
            is_read=entity.is_read,
            read_at=entity.read_at,
            is_deleted=entity.is_deleted,
            created_at=entity.created_at,
        )


class SQLAlchemyOutboxRepository:
    """SQLAlchemy implementation of IOutboxRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, message: OutboxMessage) -> OutboxMessage:
        model = OutboxMessageModel(
            id=message.id,
            recipient_id=message.recipient_id,
            actor_id=message.actor_id,
            type=message.type.value,
            title=message.title,
            message=message.message,
            data=message.data or None,
            status=message.status.value,
            attempts=message.attempts,
            created_at=message.created_at,
            available_at=message.available_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get_due(self, now: datetime, limit: int) -> list[OutboxMessage]:
        """Claim due PENDING messages, oldest first.

        Rows locked by a concurrent dispatcher are skipped. The lock clause
        is ignored by backends without row locking.
        """
        stmt = (
            select(OutboxMessageModel)
            .where(
                OutboxMessageModel.status == OutboxStatus.PENDING.value,
                OutboxMessageModel.available_at <= now,
            )
            .order_by(OutboxMessageModel.available_at, OutboxMessageModel.created_at)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def mark_delivered(self, message_id: UUID, delivered_at: datetime) -> None:
        model = await self._session.get(OutboxMessageModel, message_id)
        if not model:
            raise ValueError(f"Outbox message {message_id} not found")
        model.status = OutboxStatus.DELIVERED.value
        model.attempts += 1
        model.delivered_at = delivered_at
        model.last_error = None
        await self._session.flush()

    async def record_failure(
        self,
        message_id: UUID,
        error: str,
        retry_at: datetime | None,
    ) -> None:
        """Count a failed attempt; ``retry_at=None`` parks the message as FAILED."""
        model = await self._session.get(OutboxMessageModel, message_id)
        if not model:
            raise ValueError(f"Outbox message {message_id} not found")
        model.attempts += 1
        model.last_error = error[:1000]
        if retry_at is None:
            model.status = OutboxStatus.FAILED.value
        else:
            model.available_at = retry_at
        await self._session.flush()

    def _to_entity(self, model: OutboxMessageModel) -> OutboxMessage:
        return OutboxMessage(
            id=model.id,
            recipient_id=model.recipient_id,
            actor_id=model.actor_id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            data=dict(model.data or {}),
            status=OutboxStatus(model.status),
            attempts=model.attempts,
            last_error=model.last_error,
            created_at=model.created_at,
            available_at=model.available_at,
            delivered_at=model.delivered_at,
        )
