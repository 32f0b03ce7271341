"""SQL-level tests for the task repository, run against a temporary SQLite database."""

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from src.lifecycle.domain.exceptions import PersistenceError, TaskNotFoundError
from src.lifecycle.domain.models import (
    TaskCreate,
    TaskFilter,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
)
from src.lifecycle.infrastructure.postgres.orm import PostgresOrm
from src.lifecycle.infrastructure.postgres.repositories import PostgresTaskRepository


@pytest_asyncio.fixture
async def orm(tmp_path):
    orm = PostgresOrm(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}")
    await orm.create_schema()
    yield orm
    await orm.dispose()


@pytest.fixture
def repository(orm: PostgresOrm) -> PostgresTaskRepository:
    return PostgresTaskRepository(orm)


async def _create(repository, title: str = "task", **kwargs):
    return await repository.create_task(TaskCreate(title=title, **kwargs))


@pytest.mark.asyncio
async def test_create_and_get_round_trip(repository) -> None:
    created = await _create(repository, "Write docs", description="all of them", user_id="u-1")

    fetched = await repository.get_task(created.id)

    assert fetched.id == created.id
    assert fetched.title == "Write docs"
    assert fetched.status == TaskStatus.PENDING
    assert fetched.priority == TaskPriority.MEDIUM
    assert fetched.user_id == "u-1"
    assert fetched.created_at is not None


@pytest.mark.asyncio
async def test_get_missing_task_raises_not_found(repository) -> None:
    with pytest.raises(TaskNotFoundError):
        await repository.get_task("missing")


@pytest.mark.asyncio
async def test_update_returns_previous_status(repository) -> None:
    created = await _create(repository)

    updated, previous = await repository.update_task(
        created.id, TaskUpdate(status=TaskStatus.IN_PROGRESS, title="renamed")
    )

    assert previous == TaskStatus.PENDING
    assert updated.status == TaskStatus.IN_PROGRESS
    assert (await repository.get_task(created.id)).title == "renamed"


@pytest.mark.asyncio
async def test_update_missing_task_raises_not_found(repository) -> None:
    with pytest.raises(TaskNotFoundError):
        await repository.update_task("missing", TaskUpdate(title="x"))


@pytest.mark.asyncio
async def test_update_status_where_skips_rows_already_in_status(repository) -> None:
    a = await _create(repository, "a", status=TaskStatus.COMPLETED)
    b = await _create(repository, "b")
    c = await _create(repository, "c", status=TaskStatus.IN_PROGRESS)

    changed, changed_at = await repository.update_status_where(
        [a.id, b.id, c.id, "ghost"], TaskStatus.COMPLETED
    )

    assert changed == [b.id, c.id]
    stored_b = await repository.get_task(b.id)
    assert stored_b.status == TaskStatus.COMPLETED
    assert stored_b.updated_at == changed_at
    assert (await repository.get_task(c.id)).status == TaskStatus.COMPLETED
    assert (await repository.get_task(a.id)).updated_at < changed_at


@pytest.mark.asyncio
async def test_update_status_where_with_no_ids(repository) -> None:
    changed, _ = await repository.update_status_where([], TaskStatus.COMPLETED)

    assert changed == []


@pytest.mark.asyncio
async def test_delete_tasks_counts_removed_rows(repository) -> None:
    x = await _create(repository, "x")

    assert await repository.delete_tasks([x.id, "y"]) == 1
    assert await repository.delete_task(x.id) == 0
    with pytest.raises(TaskNotFoundError):
        await repository.get_task(x.id)


@pytest.mark.asyncio
async def test_list_tasks_paginates_in_creation_order(repository) -> None:
    created = [await _create(repository, f"pending-{i}") for i in range(12)]
    await _create(repository, "done", status=TaskStatus.COMPLETED)

    rows, total = await repository.list_tasks(
        TaskFilter(status=TaskStatus.PENDING, page=2, limit=5)
    )

    assert total == 12
    assert [row.id for row in rows] == [task.id for task in created[5:10]]


@pytest.mark.asyncio
async def test_list_tasks_filters_by_priority_user_and_search(repository) -> None:
    match = await _create(
        repository, "Quarterly REPORT", priority=TaskPriority.HIGH, user_id="u-1"
    )
    await _create(repository, "Quarterly report", priority=TaskPriority.LOW, user_id="u-1")
    await _create(repository, "Other", description="report inside", priority=TaskPriority.HIGH)

    rows, total = await repository.list_tasks(
        TaskFilter(priority=TaskPriority.HIGH, user_id="u-1", search="report")
    )

    assert total == 1
    assert rows[0].id == match.id


@pytest.mark.asyncio
async def test_list_tasks_search_treats_wildcards_literally(repository) -> None:
    await _create(repository, "100% done")
    await _create(repository, "1000 done")

    rows, total = await repository.list_tasks(TaskFilter(search="100%"))

    assert total == 1
    assert rows[0].title == "100% done"


@pytest.mark.asyncio
async def test_list_tasks_date_range_applies_to_creation_time(repository) -> None:
    await _create(repository, "now")
    future = datetime.now(UTC) + timedelta(days=1)

    _, total_after = await repository.list_tasks(TaskFilter(start_date=future))
    _, total_before = await repository.list_tasks(TaskFilter(end_date=future))

    assert total_after == 0
    assert total_before == 1


@pytest.mark.asyncio
async def test_find_by_status(repository) -> None:
    done = await _create(repository, "d", status=TaskStatus.COMPLETED)
    await _create(repository, "p")

    assert [task.id for task in await repository.find_by_status(TaskStatus.COMPLETED)] == [done.id]


@pytest.mark.asyncio
async def test_get_stats_single_aggregate(repository) -> None:
    await _create(repository, "a", priority=TaskPriority.HIGH)
    await _create(repository, "b", status=TaskStatus.IN_PROGRESS)
    await _create(repository, "c", status=TaskStatus.COMPLETED, priority=TaskPriority.HIGH)
    await _create(repository, "d", status=TaskStatus.COMPLETED)

    stats = await repository.get_stats()

    assert stats.total == 4
    assert stats.completed == 2
    assert stats.in_progress == 1
    assert stats.pending == 1
    assert stats.high_priority == 2


@pytest.mark.asyncio
async def test_driver_errors_become_persistence_errors(tmp_path) -> None:
    # No schema created, so every statement fails.
    orm = PostgresOrm(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    repository = PostgresTaskRepository(orm)
    try:
        with pytest.raises(PersistenceError) as exc_info:
            await repository.create_task(TaskCreate(title="x"))
    finally:
        await orm.dispose()

    assert isinstance(exc_info.value.__cause__, OperationalError)
