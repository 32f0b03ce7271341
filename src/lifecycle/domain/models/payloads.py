from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from src.lifecycle.domain.models.base import CamelModel
from src.lifecycle.domain.models.task_priority import TaskPriority
from src.lifecycle.domain.models.task_status import TaskStatus

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
_REQUIRED_FIELDS = frozenset({"title", "status", "priority"})


class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255, description="Short task title.")
    description: str | None = Field(default=None, description="Free-text details.")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Initial status.")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority.")
    user_id: str | None = Field(default=None, description="Owning user reference.")


class TaskUpdate(CamelModel):
    """Partial patch; only explicitly provided fields are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    user_id: str | None = None

    def changes(self) -> dict[str, Any]:
        changes = self.model_dump(exclude_unset=True)
        # Required columns: an explicit null leaves the stored value untouched.
        return {
            key: value
            for key, value in changes.items()
            if value is not None or key not in _REQUIRED_FIELDS
        }


class TaskFilter(CamelModel):
    status: TaskStatus | None = Field(default=None, description="Filter by status.")
    priority: TaskPriority | None = Field(default=None, description="Filter by priority.")
    search: str | None = Field(default=None, description="Search in title or description.")
    user_id: str | None = Field(default=None, description="Filter by user id.")
    start_date: datetime | None = Field(
        default=None, description="Lower bound (inclusive) on creation time."
    )
    end_date: datetime | None = Field(
        default=None, description="Upper bound (inclusive) on creation time."
    )
    page: int = Field(default=DEFAULT_PAGE, description="1-based page number.")
    limit: int = Field(default=DEFAULT_LIMIT, description="Page size.")

    @field_validator("page", mode="before")
    @classmethod
    def _coerce_page(cls, value: Any) -> int:
        return _positive_int_or(value, DEFAULT_PAGE)

    @field_validator("limit", mode="before")
    @classmethod
    def _coerce_limit(cls, value: Any) -> int:
        return _positive_int_or(value, DEFAULT_LIMIT)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class BatchRequest(CamelModel):
    task_ids: list[str] = Field(default_factory=list, description="Target task ids.")
    action: str = Field(description="Batch action: 'complete' or 'delete'.")


def _positive_int_or(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default
