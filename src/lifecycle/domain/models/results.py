from __future__ import annotations

import math
from typing import Any

from pydantic import Field

from src.lifecycle.domain.models.base import CamelModel
from src.lifecycle.domain.models.task import Task


class BulkUpdateResult(CamelModel):
    updated_ids: list[str] = Field(description="Ids whose status changed.")
    not_updated_ids: list[str] = Field(
        description="Ids that were missing or already in the target status.",
    )


class BulkDeleteResult(CamelModel):
    deleted_count: int = Field(description="Number of rows removed.")


class BatchResponse(CamelModel):
    success: bool = True
    results: BulkUpdateResult | BulkDeleteResult


class PageMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, *, total: int, page: int, limit: int) -> PageMeta:
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
            has_next_page=page * limit < total,
            has_prev_page=page > 1,
        )


class TaskPage(CamelModel):
    data: list[Task]
    meta: PageMeta


class TaskStats(CamelModel):
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    pending: int = 0
    high_priority: int = 0

    @classmethod
    def from_row(cls, row: Any) -> TaskStats:
        mapping = dict(row._mapping) if hasattr(row, "_mapping") else dict(row)
        return cls(**{key: int(value or 0) for key, value in mapping.items()})
