from src.lifecycle.domain.models.payloads import BatchRequest, TaskCreate, TaskFilter, TaskUpdate
from src.lifecycle.domain.models.results import (
    BatchResponse,
    BulkDeleteResult,
    BulkUpdateResult,
    PageMeta,
    TaskPage,
    TaskStats,
)
from src.lifecycle.domain.models.task import Task
from src.lifecycle.domain.models.task_priority import TaskPriority
from src.lifecycle.domain.models.task_status import TaskStatus

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "TaskCreate",
    "TaskUpdate",
    "TaskFilter",
    "BatchRequest",
    "BatchResponse",
    "BulkUpdateResult",
    "BulkDeleteResult",
    "PageMeta",
    "TaskPage",
    "TaskStats",
]
