from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from src.lifecycle.domain.events.status_change import StatusChangeNotification
from src.lifecycle.domain.models.payloads import TaskCreate, TaskFilter, TaskUpdate
from src.lifecycle.domain.models.results import TaskStats
from src.lifecycle.domain.models.task import Task
from src.lifecycle.domain.models.task_status import TaskStatus


class TaskStorageRepository(Protocol):
    """Repository contract for durable, transactional task storage.

    Every method runs in its own transaction and raises ``PersistenceError``
    when the underlying store fails.
    """

    async def create_task(self, request: TaskCreate) -> Task:
        """Persist a new task and return it with its assigned id and timestamps."""

    async def get_task(self, task_id: str) -> Task:
        """Fetch a task by id or raise ``TaskNotFoundError``."""

    async def update_task(self, task_id: str, patch: TaskUpdate) -> tuple[Task, TaskStatus]:
        """Apply ``patch`` under a row lock and return the updated task and its previous status."""

    async def delete_task(self, task_id: str) -> int:
        """Delete a single task and return the number of rows removed."""

    async def delete_tasks(self, task_ids: Sequence[str]) -> int:
        """Delete every task in ``task_ids`` in one statement and return the rows removed."""

    async def update_status_where(
        self, task_ids: Sequence[str], status: TaskStatus
    ) -> tuple[list[str], datetime]:
        """Set ``status`` on tasks in ``task_ids`` not already in it.

        Returns the changed ids and the ``updated_at`` written to every changed row.
        """

    async def list_tasks(self, task_filter: TaskFilter) -> tuple[list[Task], int]:
        """Return one page of tasks matching the filter and the unpaginated total."""

    async def find_by_status(self, status: TaskStatus) -> list[Task]:
        """Return all tasks currently in ``status``."""

    async def get_stats(self) -> TaskStats:
        """Return aggregate counts computed in a single read."""


class NotificationChannelRepository(Protocol):
    """Contract for the at-least-once status notification channel.

    ``enqueue`` must raise on failure; a silently dropped notification is a bug.
    """

    async def enqueue(self, notification: StatusChangeNotification) -> None:
        """Hand a status change notification to the asynchronous pipeline."""
