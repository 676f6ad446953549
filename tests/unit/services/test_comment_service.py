"""Unit tests for CommentService."""

from uuid import uuid4

import pytest

from core.exceptions import InsufficientPermissionsError, ValidationFailedError
from domain.entities.comment import Comment
from domain.entities.notification import NotificationType
from domain.entities.profile import Profile
from domain.entities.project import Project, ProjectRole
from domain.entities.task import Task, TaskAssignee
from domain.services.comment_service import MAX_COMMENT_LENGTH, CommentService
from domain.services.notification_service import NotificationService
from tests.unit.conftest import FakeUnitOfWork, Membership


@pytest.fixture
def service(uow: FakeUnitOfWork) -> CommentService:
    uow.comments.create.side_effect = lambda c: c
    return CommentService(lambda: uow, notification_service=NotificationService(lambda: uow))


class TestAdd:
    async def test_assignee_comments_and_creator_is_notified(
        self, service, uow, membership: Membership, project: Project, task: Task
    ):
        bob = uuid4()
        membership.join_project(project, bob)
        uow.tasks.is_assignee.return_value = True
        uow.tasks.get_assignees.return_value = [
            TaskAssignee(task_id=task.id, user_id=bob, assigned_by=task.creator_id)
        ]
        uow.profiles.get.return_value = Profile(id=bob, email="bob@example.com", display_name="Bob")

        view = await service.add(task.id, bob, "  Looks good  ")

        assert view.comment.content == "Looks good"
        assert view.author.display_name == "Bob"
        messages = [c.args[0] for c in uow.outbox.add.call_args_list]
        assert [m.recipient_id for m in messages] == [task.creator_id]
        assert messages[0].type == NotificationType.COMMENT_ADDED
        assert 'Bob commented on "Write copy"' == messages[0].message

    async def test_plain_project_member_cannot_comment(
        self, service, membership: Membership, project: Project, task: Task
    ):
        member = uuid4()
        membership.join_project(project, member)

        with pytest.raises(InsufficientPermissionsError):
            await service.add(task.id, member, "hi")

    async def test_project_admin_without_task_role_cannot_comment(
        self, service, membership: Membership, project: Project, task: Task
    ):
        admin = uuid4()
        membership.join_project(project, admin, ProjectRole.ADMIN)

        with pytest.raises(InsufficientPermissionsError):
            await service.add(task.id, admin, "hi")

    async def test_project_owner_can_comment_on_others_task(
        self, service, uow, membership: Membership, project: Project
    ):
        creator = uuid4()
        membership.join_project(project, creator)
        task = Task(project_id=project.id, creator_id=creator, title="Theirs")
        uow.tasks.get.return_value = task

        view = await service.add(task.id, project.owner_id, "Nice")

        assert view.comment.user_id == project.owner_id

    @pytest.mark.parametrize("content", ["", "   ", "x" * (MAX_COMMENT_LENGTH + 1)])
    async def test_invalid_content(self, service, task: Task, content):
        with pytest.raises(ValidationFailedError):
            await service.add(task.id, task.creator_id, content)


class TestList:
    async def test_lists_with_authors(self, service, uow, task: Task):
        author = Profile(id=task.creator_id, email="alice@example.com", display_name="Alice")
        uow.comments.get_for_task.return_value = [
            Comment(task_id=task.id, user_id=task.creator_id, content="first")
        ]
        uow.profiles.get_many.return_value = {author.id: author}

        views = await service.list_for_task(task.id, task.creator_id)

        assert [v.comment.content for v in views] == ["first"]
        assert views[0].author.display_name == "Alice"
