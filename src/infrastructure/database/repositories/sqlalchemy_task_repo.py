"""SQLAlchemy implementation of Task repository."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.task import Task, TaskAssignee, TaskPriority, TaskStatus
from infrastructure.database.models import TaskAssigneeModel, TaskModel


class SQLAlchemyTaskRepository:
    """SQLAlchemy implementation of ITaskRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Task | None:
        """Get a task by ID, soft-deleted or not."""
        model = await self._session.get(TaskModel, id)
        return self._to_entity(model) if model else None

    async def get_for_project(self, project_id: UUID, include_deleted: bool = False) -> list[Task]:
        stmt = select(TaskModel).where(TaskModel.project_id == project_id)
        if not include_deleted:
            stmt = stmt.where(TaskModel.deleted_at.is_(None))
        stmt = stmt.order_by(TaskModel.created_at)
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, task: Task) -> Task:
        model = self._to_model(task)
        # The mirror is owned by the assignment flow
        model.assignee_id = None
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, task: Task) -> Task:
        model = await self._session.get(TaskModel, task.id)
        if not model:
            raise ValueError(f"Task {task.id} not found")

        model.title = task.title
        model.description = task.description
        model.status = task.status.value
        model.priority = task.priority.value
        model.due_date = task.due_date
        model.updated_at = task.updated_at
        model.completed_at = task.completed_at
        model.deleted_at = task.deleted_at

        await self._session.flush()
        return self._to_entity(model)

    async def set_assignee_mirror(self, task_id: UUID, user_id: UUID | None) -> None:
        model = await self._session.get(TaskModel, task_id)
        if not model:
            raise ValueError(f"Task {task_id} not found")
        model.assignee_id = user_id
        await self._session.flush()

    # --- Assignees ---

    async def get_assignees(self, task_id: UUID) -> list[TaskAssignee]:
        stmt = (
            select(TaskAssigneeModel)
            .where(TaskAssigneeModel.task_id == task_id)
            .order_by(TaskAssigneeModel.assigned_at, TaskAssigneeModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._assignee_to_entity(model) for model in result.scalars()]

    async def is_assignee(self, task_id: UUID, user_id: UUID) -> bool:
        stmt = select(TaskAssigneeModel.id).where(
            TaskAssigneeModel.task_id == task_id,
            TaskAssigneeModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        return result.first() is not None

    async def add_assignee(self, assignee: TaskAssignee) -> TaskAssignee:
        """Insert one row; a duplicate (task, user) pair raises IntegrityError."""
        model = TaskAssigneeModel(
            id=assignee.id,
            task_id=assignee.task_id,
            user_id=assignee.user_id,
            assigned_by=assignee.assigned_by,
            assigned_at=assignee.assigned_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._assignee_to_entity(model)

    async def remove_assignees(self, task_id: UUID, user_ids: list[UUID]) -> int:
        if not user_ids:
            return 0
        stmt = (
            delete(TaskAssigneeModel)
            .where(
                TaskAssigneeModel.task_id == task_id,
                TaskAssigneeModel.user_id.in_(user_ids),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    # --- Conversion methods ---

    def _to_entity(self, model: TaskModel) -> Task:
        return Task(
            id=model.id,
            project_id=model.project_id,
            creator_id=model.creator_id,
            title=model.title,
            description=model.description,
            status=TaskStatus(model.status),
            priority=TaskPriority(model.priority),
            due_date=model.due_date,
            assignee_id=model.assignee_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
            completed_at=model.completed_at,
            deleted_at=model.deleted_at,
        )

    def _to_model(self, entity: Task) -> TaskModel:
        return TaskModel(
            id=entity.id,
            project_id=entity.project_id,
            creator_id=entity.creator_id,
            title=entity.title,
            description=entity.description,
            status=entity.status.value,
            priority=entity.priority.value,
            due_date=entity.due_date,
            assignee_id=entity.assignee_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            completed_at=entity.completed_at,
            deleted_at=entity.deleted_at,
        )

    def _assignee_to_entity(self, model: TaskAssigneeModel) -> TaskAssignee:
        return TaskAssignee(
            id=model.id,
            task_id=model.task_id,
            user_id=model.user_id,
            assigned_by=model.assigned_by,
            assigned_at=model.assigned_at,
        )
