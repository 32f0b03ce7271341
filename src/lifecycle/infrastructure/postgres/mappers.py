from __future__ import annotations

from datetime import UTC, datetime

from src.lifecycle.domain.models.payloads import TaskCreate
from src.lifecycle.domain.models.task import Task
from src.lifecycle.infrastructure.postgres.orm import TaskRow


class OrmMapper:
    @staticmethod
    def to_task_row(task_id: str, request: TaskCreate, now: datetime) -> TaskRow:
        return TaskRow(
            id=task_id,
            title=request.title,
            description=request.description,
            status=request.status,
            priority=request.priority,
            user_id=request.user_id,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def to_domain_task(row: TaskRow) -> Task:
        return Task(
            id=row.id,
            title=row.title,
            description=row.description,
            status=row.status,
            priority=row.priority,
            user_id=row.user_id,
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )

    @staticmethod
    def apply_changes(row: TaskRow, changes: dict) -> None:
        for field, value in changes.items():
            setattr(row, field, value)


def _as_utc(value: datetime | None) -> datetime | None:
    # Drivers without timezone support hand back naive UTC values.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value

