from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from src.lifecycle.application.services import (
    BulkOperationService,
    TaskLifecycleService,
    TaskQueryService,
)
from src.lifecycle.domain.models import (
    BatchRequest,
    BatchResponse,
    Task,
    TaskCreate,
    TaskFilter,
    TaskPage,
    TaskPriority,
    TaskStats,
    TaskStatus,
    TaskUpdate,
)
from src.lifecycle.presentation.security import require_api_token

router = APIRouter(prefix="/tasks", tags=["tasks"], dependencies=[Depends(require_api_token)])

# Instantiate services once (simple DI)
_lifecycle_service = TaskLifecycleService()
_bulk_service = BulkOperationService()
_query_service = TaskQueryService()

_ERROR_RESPONSES = {
    401: {"description": "Missing or invalid API token."},
    500: {"description": "Storage or notification failure."},
}


@router.post(
    "",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
    responses=_ERROR_RESPONSES,
)
async def create_task(body: TaskCreate) -> Task:
    return await _lifecycle_service.create(body)


@router.get(
    "",
    response_model=TaskPage,
    summary="Find all tasks with optional filtering",
    responses=_ERROR_RESPONSES,
)
async def list_tasks(
    status_filter: TaskStatus | None = Query(None, alias="status"),
    priority: TaskPriority | None = Query(None),
    search: str | None = Query(None, description="Search tasks by title or description"),
    user_id: str | None = Query(None, alias="userId"),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    page: str | None = Query(None, description="Page number, defaults to 1"),
    limit: str | None = Query(None, description="Page size, defaults to 10"),
) -> TaskPage:
    """
    Invalid ``page`` or ``limit`` values fall back to their defaults.
    """
    task_filter = TaskFilter(
        status=status_filter,
        priority=priority,
        search=search,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return await _query_service.list_tasks(task_filter)


@router.get("/stats", response_model=TaskStats, summary="Get task statistics")
async def get_stats() -> TaskStats:
    return await _query_service.stats()


@router.get("/{task_id}", response_model=Task, summary="Find a task by ID")
async def get_task(task_id: UUID) -> Task:
    return await _query_service.get(str(task_id))


@router.patch(
    "/{task_id}",
    response_model=Task,
    summary="Update a task",
    responses=_ERROR_RESPONSES,
)
async def update_task(task_id: UUID, body: TaskUpdate) -> Task:
    return await _lifecycle_service.update(str(task_id), body)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a task",
)
async def remove_task(task_id: UUID) -> None:
    await _lifecycle_service.remove(str(task_id))


@router.post(
    "/batch",
    response_model=BatchResponse,
    summary="Batch process multiple tasks",
    description="Applies `complete` or `delete` to every listed task in a single statement.",
    responses=_ERROR_RESPONSES,
)
async def batch_process(body: BatchRequest) -> BatchResponse:
    return await _bulk_service.run_batch(body)
