from datetime import datetime

from pydantic import Field

from src.lifecycle.domain.models.base import CamelModel
from src.lifecycle.domain.models.task_priority import TaskPriority
from src.lifecycle.domain.models.task_status import TaskStatus


class Task(CamelModel):
    id: str = Field(description="Unique task identifier.")
    title: str = Field(description="Short task title.")
    description: str | None = Field(default=None, description="Free-text details.")
    status: TaskStatus = Field(description="Current lifecycle status.")
    priority: TaskPriority = Field(description="Task priority.")
    user_id: str | None = Field(default=None, description="Owning user reference.")
    created_at: datetime | None = Field(default=None, description="Creation timestamp.")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp.")
