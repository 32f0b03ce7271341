from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import cast

import inject

from src.lifecycle.domain.events.status_change import StatusChangeNotification
from src.lifecycle.domain.exceptions import (
    NotificationDispatchError,
    TaskNotFoundError,
    TaskValidationError,
    UnknownBatchActionError,
)
from src.lifecycle.domain.models import (
    BatchRequest,
    BatchResponse,
    BulkDeleteResult,
    BulkUpdateResult,
    PageMeta,
    Task,
    TaskCreate,
    TaskFilter,
    TaskPage,
    TaskStats,
    TaskStatus,
    TaskUpdate,
)
from src.lifecycle.domain.repositories import NotificationChannelRepository, TaskStorageRepository

logger = logging.getLogger(__name__)

CREATE_FAILED_MESSAGE = "Failed to create task. Please try again later."
UPDATE_FAILED_MESSAGE = "Failed to update task queue. Please try again later."
BULK_FAILED_MESSAGE = "Failed to add task. Please try again later."


class BatchAction(str, Enum):
    COMPLETE = "complete"
    DELETE = "delete"


async def dispatch_notifications(
    channel: NotificationChannelRepository,
    notifications: Iterable[StatusChangeNotification],
    failure_message: str,
) -> None:
    """Enqueue every notification once; raise if any of them could not be enqueued.

    Every notification is attempted even after a failure. The store writes that
    produced them are already committed and are never rolled back here.
    """
    failed: list[str] = []
    last_error: Exception | None = None
    for notification in notifications:
        try:
            await channel.enqueue(notification)
        except Exception as exc:
            logger.error(
                "Failed to add task to queue: %s",
                exc,
                exc_info=True,
                extra={"task_id": notification.task_id, "status": notification.status.value},
            )
            failed.append(notification.task_id)
            last_error = exc

    if failed:
        raise NotificationDispatchError(failure_message, failed_task_ids=failed) from last_error


class TaskLifecycleService:
    """Persists single-task mutations and announces status transitions."""

    def __init__(
        self,
        storage: TaskStorageRepository | None = None,
        channel: NotificationChannelRepository | None = None,
    ) -> None:
        self._storage = storage or cast(
            TaskStorageRepository, inject.instance(TaskStorageRepository)
        )
        self._channel = channel or cast(
            NotificationChannelRepository, inject.instance(NotificationChannelRepository)
        )

    async def create(self, request: TaskCreate) -> Task:
        """
        Persist a new task, then announce its initial status.

        If the announcement fails the task stays persisted and
        ``NotificationDispatchError`` is raised.
        """
        task = await self._storage.create_task(request)
        logger.info("Task created", extra={"task_id": task.id, "status": task.status.value})
        await dispatch_notifications(
            self._channel, [StatusChangeNotification.for_task(task)], CREATE_FAILED_MESSAGE
        )
        return task

    async def update(self, task_id: str, patch: TaskUpdate) -> Task:
        """Apply a partial update; announce only when the status actually changed."""
        task, previous_status = await self._storage.update_task(task_id, patch)
        if previous_status != task.status:
            logger.info(
                "Task status changed",
                extra={
                    "task_id": task.id,
                    "from_status": previous_status.value,
                    "to_status": task.status.value,
                },
            )
            await dispatch_notifications(
                self._channel, [StatusChangeNotification.for_task(task)], UPDATE_FAILED_MESSAGE
            )
        return task

    async def remove(self, task_id: str) -> None:
        # Deletions are not status transitions and are not announced.
        deleted = await self._storage.delete_task(task_id)
        if deleted == 0:
            raise TaskNotFoundError(task_id)
        logger.info("Task removed", extra={"task_id": task_id})


class BulkOperationService:
    """Applies one set-based mutation to many tasks and reconciles the outcome."""

    def __init__(
        self,
        storage: TaskStorageRepository | None = None,
        channel: NotificationChannelRepository | None = None,
    ) -> None:
        self._storage = storage or cast(
            TaskStorageRepository, inject.instance(TaskStorageRepository)
        )
        self._channel = channel or cast(
            NotificationChannelRepository, inject.instance(NotificationChannelRepository)
        )

    async def bulk_update_status(
        self, task_ids: Sequence[str], status: TaskStatus
    ) -> BulkUpdateResult:
        """
        Move every listed task not already at ``status`` to ``status``.

        Ids that are missing and ids already at ``status`` both end up in
        ``not_updated_ids``. A ``NotificationDispatchError`` here does not mean
        nothing changed: the status update is committed before notifying.
        """
        requested = list(dict.fromkeys(task_ids))
        updated_ids, changed_at = await self._storage.update_status_where(requested, status)
        updated = set(updated_ids)
        result = BulkUpdateResult(
            updated_ids=updated_ids,
            not_updated_ids=[task_id for task_id in requested if task_id not in updated],
        )
        logger.info(
            "Bulk status update applied",
            extra={
                "status": status.value,
                "updated": len(result.updated_ids),
                "not_updated": len(result.not_updated_ids),
            },
        )

        await dispatch_notifications(
            self._channel,
            (
                StatusChangeNotification(task_id=task_id, status=status, changed_at=changed_at)
                for task_id in updated_ids
            ),
            BULK_FAILED_MESSAGE,
        )
        return result

    async def bulk_delete(self, task_ids: Sequence[str]) -> BulkDeleteResult:
        deleted_count = await self._storage.delete_tasks(list(dict.fromkeys(task_ids)))
        logger.info("Bulk delete applied", extra={"deleted": deleted_count})
        return BulkDeleteResult(deleted_count=deleted_count)

    async def run_batch(self, request: BatchRequest) -> BatchResponse:
        if not request.task_ids:
            raise TaskValidationError("No task IDs provided")
        try:
            action = BatchAction(request.action)
        except ValueError:
            raise UnknownBatchActionError(request.action) from None

        match action:
            case BatchAction.COMPLETE:
                results = await self.bulk_update_status(request.task_ids, TaskStatus.COMPLETED)
            case BatchAction.DELETE:
                results = await self.bulk_delete(request.task_ids)
        return BatchResponse(success=True, results=results)


class TaskQueryService:
    """Read-only listing, lookup and aggregate statistics."""

    def __init__(self, storage: TaskStorageRepository | None = None) -> None:
        self._storage = storage or cast(
            TaskStorageRepository, inject.instance(TaskStorageRepository)
        )

    async def list_tasks(self, task_filter: TaskFilter) -> TaskPage:
        tasks, total = await self._storage.list_tasks(task_filter)
        return TaskPage(
            data=tasks,
            meta=PageMeta.build(total=total, page=task_filter.page, limit=task_filter.limit),
        )

    async def get(self, task_id: str) -> Task:
        return await self._storage.get_task(task_id)

    async def find_by_status(self, status: TaskStatus) -> list[Task]:
        return await self._storage.find_by_status(status)

    async def stats(self) -> TaskStats:
        return await self._storage.get_stats()
