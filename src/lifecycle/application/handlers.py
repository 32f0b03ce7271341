from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import inject

from src.lifecycle.domain.events.status_change import StatusChangeNotification
from src.lifecycle.domain.exceptions import TaskNotFoundError
from src.lifecycle.domain.models.task import Task
from src.lifecycle.domain.repositories import TaskStorageRepository

logger = logging.getLogger(__name__)

StatusProcessor = Callable[[Task, StatusChangeNotification], Awaitable[None]]


async def log_status_change(task: Task, notification: StatusChangeNotification) -> None:
    logger.info(
        "Processing task status change",
        extra={
            "task_id": task.id,
            "status": task.status.value,
            "notification_id": notification.notification_id,
        },
    )


class StatusChangeHandler:
    """Consumes status notifications idempotently.

    Delivery is at-least-once, so the handler re-reads the task and skips
    notifications that no longer describe the stored state: the task was
    deleted, a later transition moved it to another status, or the task was
    updated after the notification's ``changed_at``. Later transitions carry
    their own notifications.
    """

    def __init__(
        self,
        storage: TaskStorageRepository | None = None,
        processor: StatusProcessor | None = None,
    ) -> None:
        self._storage = storage or inject.instance(TaskStorageRepository)
        self._processor = processor or log_status_change

    async def handle(self, notification: StatusChangeNotification) -> None:
        try:
            task = await self._storage.get_task(notification.task_id)
        except TaskNotFoundError:
            logger.info(
                "Skipping notification for deleted task",
                extra={"task_id": notification.task_id},
            )
            return

        # A task can return to an earlier status; the timestamp tells the two apart.
        superseded = task.updated_at is not None and notification.changed_at < task.updated_at
        if task.status != notification.status or superseded:
            logger.info(
                "Skipping stale notification",
                extra={
                    "task_id": task.id,
                    "notified_status": notification.status.value,
                    "current_status": task.status.value,
                    "changed_at": notification.changed_at.isoformat(),
                },
            )
            return

        await self._processor(task, notification)
