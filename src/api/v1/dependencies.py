"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from domain.services.assignment_service import AssignmentService
from domain.services.comment_service import CommentService
from domain.services.email_classification_service import EmailClassificationService
from domain.services.invitation_service import InvitationService
from domain.services.notification_service import NotificationService
from domain.services.permission_service import PermissionService
from domain.services.project_service import ProjectService
from domain.services.task_service import TaskService
from domain.services.workspace_service import WorkspaceService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.llm.chat_client import HTTPChatClient
from infrastructure.realtime.connection_manager import connection_manager


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_permission_service() -> PermissionService:
    """Get Permission service instance."""
    return PermissionService(get_uow_factory())


@lru_cache
def get_notification_service() -> NotificationService:
    """Get Notification service instance (real-time fan-out via WebSocket)."""
    return NotificationService(get_uow_factory(), broadcaster=connection_manager)


@lru_cache
def get_assignment_service() -> AssignmentService:
    """Get Assignment service instance."""
    return AssignmentService(
        get_uow_factory(),
        permission_service=get_permission_service(),
        notification_service=get_notification_service(),
    )


@lru_cache
def get_task_service() -> TaskService:
    """Get Task service instance."""
    return TaskService(
        get_uow_factory(),
        permission_service=get_permission_service(),
        assignment_service=get_assignment_service(),
        notification_service=get_notification_service(),
    )


@lru_cache
def get_comment_service() -> CommentService:
    return CommentService(
        get_uow_factory(),
        permission_service=get_permission_service(),
        notification_service=get_notification_service(),
    )


@lru_cache
def get_project_service() -> ProjectService:
    """Get Project service instance."""
    return ProjectService(
        get_uow_factory(),
        permission_service=get_permission_service(),
        notification_service=get_notification_service(),
    )


@lru_cache
def get_workspace_service() -> WorkspaceService:
    """Get Workspace service instance."""
    return WorkspaceService(
        get_uow_factory(),
        permission_service=get_permission_service(),
        notification_service=get_notification_service(),
    )


@lru_cache
def get_invitation_service() -> InvitationService:
    """Get Invitation service instance."""
    return InvitationService(
        get_uow_factory(),
        permission_service=get_permission_service(),
        notification_service=get_notification_service(),
    )


@lru_cache
def get_email_classification_service() -> EmailClassificationService:
    return EmailClassificationService(HTTPChatClient())
