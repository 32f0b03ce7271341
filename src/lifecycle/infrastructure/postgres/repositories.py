from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from functools import wraps
from typing import ParamSpec, TypeVar
from uuid import uuid4

from sqlalchemy import ColumnElement, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from src.lifecycle.domain.exceptions import PersistenceError, TaskNotFoundError
from src.lifecycle.domain.models.payloads import TaskCreate, TaskFilter, TaskUpdate
from src.lifecycle.domain.models.results import TaskStats
from src.lifecycle.domain.models.task import Task
from src.lifecycle.domain.models.task_priority import TaskPriority
from src.lifecycle.domain.models.task_status import TaskStatus
from src.lifecycle.domain.repositories import TaskStorageRepository
from src.lifecycle.infrastructure.postgres.mappers import OrmMapper
from src.lifecycle.infrastructure.postgres.orm import PostgresOrm, TaskRow

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def storage_errors(operation: str) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Translate driver errors into ``PersistenceError`` and log the cause."""

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as exc:
                logger.exception("Task storage operation failed", extra={"operation": operation})
                raise PersistenceError() from exc

        return wrapper

    return decorator


class PostgresTaskRepository(TaskStorageRepository):
    """Postgres-backed task storage using SQLAlchemy async sessions."""

    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    @storage_errors("create_task")
    async def create_task(self, request: TaskCreate) -> Task:
        """Persist a new task and return it."""
        task_row = OrmMapper.to_task_row(str(uuid4()), request, datetime.now(UTC))

        async with self._orm.session_factory() as session:
            async with session.begin():
                session.add(task_row)
        return OrmMapper.to_domain_task(task_row)

    @storage_errors("get_task")
    async def get_task(self, task_id: str) -> Task:
        async with self._orm.session_factory() as session:
            task_row = await session.get(TaskRow, task_id)

        if task_row is None:
            raise TaskNotFoundError(task_id)
        return OrmMapper.to_domain_task(task_row)

    @storage_errors("update_task")
    async def update_task(self, task_id: str, patch: TaskUpdate) -> tuple[Task, TaskStatus]:
        """Merge the patch over the stored row while holding its lock."""
        async with self._orm.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(TaskRow).where(TaskRow.id == task_id).with_for_update()
                )
                task_row = result.scalar_one_or_none()
                if task_row is None:
                    raise TaskNotFoundError(task_id)

                previous_status = task_row.status
                changes = patch.changes()
                if changes:
                    OrmMapper.apply_changes(task_row, changes)
                    task_row.updated_at = datetime.now(UTC)

        return OrmMapper.to_domain_task(task_row), previous_status

    async def delete_task(self, task_id: str) -> int:
        return await self.delete_tasks([task_id])

    @storage_errors("delete_tasks")
    async def delete_tasks(self, task_ids: Sequence[str]) -> int:
        if not task_ids:
            return 0
        async with self._orm.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(TaskRow)
                    .where(TaskRow.id.in_(list(task_ids)))
                    .execution_options(synchronize_session=False)
                )
        return result.rowcount or 0

    @storage_errors("update_status_where")
    async def update_status_where(
        self, task_ids: Sequence[str], status: TaskStatus
    ) -> tuple[list[str], datetime]:
        """Set the status in one statement, skipping rows already at ``status``."""
        changed_at = datetime.now(UTC)
        if not task_ids:
            return [], changed_at
        async with self._orm.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(TaskRow)
                    .where(TaskRow.id.in_(list(task_ids)), TaskRow.status != status)
                    .values(status=status, updated_at=changed_at)
                    .returning(TaskRow.id)
                    .execution_options(synchronize_session=False)
                )
                changed = set(result.scalars().all())

        return [task_id for task_id in dict.fromkeys(task_ids) if task_id in changed], changed_at

    @storage_errors("list_tasks")
    async def list_tasks(self, task_filter: TaskFilter) -> tuple[list[Task], int]:
        conditions = self._filter_conditions(task_filter)
        count_statement = select(func.count()).select_from(TaskRow).where(*conditions)
        page_statement = (
            select(TaskRow)
            .where(*conditions)
            .order_by(TaskRow.created_at, TaskRow.id)
            .offset(task_filter.offset)
            .limit(task_filter.limit)
        )

        async with self._orm.session_factory() as session:
            async with session.begin():
                total = (await session.execute(count_statement)).scalar_one()
                rows = (await session.execute(page_statement)).scalars().all()

        return [OrmMapper.to_domain_task(row) for row in rows], total

    @storage_errors("find_by_status")
    async def find_by_status(self, status: TaskStatus) -> list[Task]:
        statement = (
            select(TaskRow)
            .where(TaskRow.status == status)
            .order_by(TaskRow.created_at, TaskRow.id)
        )
        async with self._orm.session_factory() as session:
            rows = (await session.execute(statement)).scalars().all()
        return [OrmMapper.to_domain_task(row) for row in rows]

    @storage_errors("get_stats")
    async def get_stats(self) -> TaskStats:
        """Compute every counter in a single aggregate query."""
        statement = select(
            func.count().label("total"),
            func.count().filter(TaskRow.status == TaskStatus.COMPLETED).label("completed"),
            func.count().filter(TaskRow.status == TaskStatus.IN_PROGRESS).label("in_progress"),
            func.count().filter(TaskRow.status == TaskStatus.PENDING).label("pending"),
            func.count().filter(TaskRow.priority == TaskPriority.HIGH).label("high_priority"),
        ).select_from(TaskRow)

        async with self._orm.session_factory() as session:
            row = (await session.execute(statement)).one()
        return TaskStats.from_row(row)

    @staticmethod
    def _filter_conditions(task_filter: TaskFilter) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        if task_filter.status is not None:
            conditions.append(TaskRow.status == task_filter.status)
        if task_filter.priority is not None:
            conditions.append(TaskRow.priority == task_filter.priority)
        if task_filter.user_id:
            conditions.append(TaskRow.user_id == task_filter.user_id)
        if task_filter.search:
            pattern = f"%{_escape_like(task_filter.search)}%"
            conditions.append(
                or_(
                    TaskRow.title.ilike(pattern, escape="\\"),
                    TaskRow.description.ilike(pattern, escape="\\"),
                )
            )
        # The date range is bound to the creation timestamp.
        if task_filter.start_date is not None:
            conditions.append(TaskRow.created_at >= task_filter.start_date)
        if task_filter.end_date is not None:
            conditions.append(TaskRow.created_at <= task_filter.end_date)
        return conditions


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
