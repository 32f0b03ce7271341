from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from src.lifecycle.domain.models.task import Task
from src.lifecycle.domain.models.task_status import TaskStatus

STATUS_UPDATE_TOPIC = "task-status-update"


class EventType(str, Enum):
    TASK_STATUS_UPDATE = STATUS_UPDATE_TOPIC


class StatusChangeNotification(BaseModel):
    """Announces that a task's status changed; consumed by the async pipeline."""

    notification_id: str = Field(default_factory=lambda: uuid4().hex)
    type: EventType = Field(default=EventType.TASK_STATUS_UPDATE)
    task_id: str = Field(description="Identifier of the task that changed.")
    status: TaskStatus = Field(description="Status after the change.")
    changed_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Commit time of the change, used to detect stale deliveries.",
    )

    @classmethod
    def for_task(cls, task: Task) -> StatusChangeNotification:
        return cls(
            task_id=task.id,
            status=task.status,
            changed_at=task.updated_at or datetime.now(UTC),
        )

    def payload(self) -> dict[str, str]:
        return {"taskId": self.task_id, "status": self.status.value}
