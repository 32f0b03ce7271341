from __future__ import annotations

import importlib
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.lifecycle.application.services import (
    BulkOperationService,
    TaskLifecycleService,
    TaskQueryService,
)
from src.lifecycle.domain.events.status_change import StatusChangeNotification
from src.lifecycle.domain.exceptions import PersistenceError, TaskNotFoundError
from src.lifecycle.domain.models import (
    Task,
    TaskCreate,
    TaskFilter,
    TaskPriority,
    TaskStats,
    TaskStatus,
    TaskUpdate,
)
from src.lifecycle.domain.repositories import NotificationChannelRepository, TaskStorageRepository
from src.lifecycle.presentation.errors import register_exception_handlers

API_TOKEN = "test-token"


class InMemoryTaskStorage(TaskStorageRepository):
    """Dictionary-backed task store for service and API tests."""

    def __init__(self) -> None:
        self.tasks: dict[str, Task] = {}
        self.fail_writes = False
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _check_writable(self) -> None:
        if self.fail_writes:
            raise PersistenceError()

    async def create_task(self, request: TaskCreate) -> Task:
        self._check_writable()
        now = self._now()
        task = Task(id=str(uuid4()), created_at=now, updated_at=now, **request.model_dump())
        self.tasks[task.id] = task
        return task.model_copy()

    async def get_task(self, task_id: str) -> Task:
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        return self.tasks[task_id].model_copy()

    async def update_task(self, task_id: str, patch: TaskUpdate) -> tuple[Task, TaskStatus]:
        self._check_writable()
        if task_id not in self.tasks:
            raise TaskNotFoundError(task_id)
        previous = self.tasks[task_id]
        changes = patch.changes()
        updated = previous
        if changes:
            updated = previous.model_copy(update={**changes, "updated_at": self._now()})
        self.tasks[task_id] = updated
        return updated.model_copy(), previous.status

    async def delete_task(self, task_id: str) -> int:
        return await self.delete_tasks([task_id])

    async def delete_tasks(self, task_ids: Sequence[str]) -> int:
        self._check_writable()
        removed = 0
        for task_id in task_ids:
            if self.tasks.pop(task_id, None) is not None:
                removed += 1
        return removed

    async def update_status_where(
        self, task_ids: Sequence[str], status: TaskStatus
    ) -> tuple[list[str], datetime]:
        self._check_writable()
        changed_at = self._now()
        changed: list[str] = []
        for task_id in task_ids:
            task = self.tasks.get(task_id)
            if task is not None and task.status != status:
                self.tasks[task_id] = task.model_copy(
                    update={"status": status, "updated_at": changed_at}
                )
                changed.append(task_id)
        return changed, changed_at

    async def list_tasks(self, task_filter: TaskFilter) -> tuple[list[Task], int]:
        matching = [
            task
            for task in sorted(self.tasks.values(), key=lambda t: (t.created_at, t.id))
            if (task_filter.status is None or task.status == task_filter.status)
            and (task_filter.priority is None or task.priority == task_filter.priority)
        ]
        start = task_filter.offset
        return matching[start : start + task_filter.limit], len(matching)

    async def find_by_status(self, status: TaskStatus) -> list[Task]:
        return [task for task in self.tasks.values() if task.status == status]

    async def get_stats(self) -> TaskStats:
        tasks = list(self.tasks.values())
        return TaskStats(
            total=len(tasks),
            completed=sum(task.status == TaskStatus.COMPLETED for task in tasks),
            in_progress=sum(task.status == TaskStatus.IN_PROGRESS for task in tasks),
            pending=sum(task.status == TaskStatus.PENDING for task in tasks),
            high_priority=sum(task.priority == TaskPriority.HIGH for task in tasks),
        )


class RecordingChannel(NotificationChannelRepository):
    """Notification channel stub that records every enqueue attempt."""

    def __init__(self) -> None:
        self.attempts: list[StatusChangeNotification] = []
        self.fail_all = False
        self.fail_task_ids: set[str] = set()

    @property
    def delivered(self) -> list[StatusChangeNotification]:
        return [n for n in self.attempts if not self._should_fail(n)]

    def _should_fail(self, notification: StatusChangeNotification) -> bool:
        return self.fail_all or notification.task_id in self.fail_task_ids

    async def enqueue(self, notification: StatusChangeNotification) -> None:
        self.attempts.append(notification)
        if self._should_fail(notification):
            raise ConnectionError("queue unavailable")


@pytest.fixture
def storage() -> InMemoryTaskStorage:
    return InMemoryTaskStorage()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def lifecycle_service(storage: InMemoryTaskStorage, channel: RecordingChannel) -> TaskLifecycleService:
    return TaskLifecycleService(storage=storage, channel=channel)


@pytest.fixture
def bulk_service(storage: InMemoryTaskStorage, channel: RecordingChannel) -> BulkOperationService:
    return BulkOperationService(storage=storage, channel=channel)


@pytest.fixture
def query_service(storage: InMemoryTaskStorage) -> TaskQueryService:
    return TaskQueryService(storage=storage)


@pytest.fixture
def env_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide environment variables read by ApiSettings."""
    monkeypatch.setenv("API_TOKEN", API_TOKEN)
    monkeypatch.setenv("APP_NAME", "Test API")
    monkeypatch.setenv("APP_VERSION", "0.1.0")


def _patch_inject_instance(
    monkeypatch: pytest.MonkeyPatch,
    storage_stub: InMemoryTaskStorage,
    channel_stub: RecordingChannel,
) -> Callable[[object], object]:
    """Patch `inject.instance` to return the stub repositories."""
    import inject

    def fake_instance(interface: object) -> object:
        if interface is TaskStorageRepository:
            return storage_stub
        if interface is NotificationChannelRepository:
            return channel_stub
        raise RuntimeError(f"Unexpected dependency request: {interface}")

    monkeypatch.setattr(inject, "instance", fake_instance)
    return fake_instance


@pytest.fixture
def api_client(
    env_settings: None,
    monkeypatch: pytest.MonkeyPatch,
    storage: InMemoryTaskStorage,
    channel: RecordingChannel,
):
    """FastAPI test client with services wired to the stub repositories."""
    _patch_inject_instance(monkeypatch, storage, channel)

    # Reload so module-level service singletons pick up the patched injector.
    routes_module = importlib.reload(importlib.import_module("src.lifecycle.presentation.routes"))

    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(routes_module.router)
    client = TestClient(app, headers={"Authorization": f"Bearer {API_TOKEN}"})
    return client, storage, channel
