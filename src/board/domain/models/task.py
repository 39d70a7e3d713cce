from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from src.board.domain.models.task_priority import TaskPriority
from src.board.domain.models.task_status import TaskStatus


class TaskDraft(BaseModel):
    """A validated task that has not been stored yet (no id)."""

    project_id: str = Field(description="Owning project; immutable after creation.")
    user_id: str = Field(description="User that created the task.")
    title: str = Field(min_length=1, description="Short task title.")
    description: str | None = Field(default=None, description="Optional longer text.")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Board column.")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Display priority.")
    due_date: date | None = Field(default=None, description="Optional due date.")
    time_estimate: float | None = Field(
        default=None, ge=0, description="Estimated effort in hours."
    )
    column_order: int | None = Field(
        default=None, description="Sort key inside the status column."
    )


class Task(TaskDraft):
    id: str = Field(description="Store-assigned unique identifier.")
    time_spent: float | None = Field(
        default=None, ge=0, description="Hours logged against the task."
    )
    created_at: datetime | None = Field(default=None, description="Creation timestamp.")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp.")


class TaskForm(BaseModel):
    """Raw values submitted by the task creation form.

    Values are checked by the synchronizer before anything reaches the
    store, so this model stays permissive on purpose: an empty title or an
    unknown status must surface as a board validation error.
    """

    title: str = Field(default="", description="Task title; must not be blank.")
    description: str | None = Field(default=None, description="Optional description.")
    status: str = Field(default=TaskStatus.TODO.value, description="Initial column.")
    priority: str = Field(default=TaskPriority.MEDIUM.value, description="Priority level.")
    due_date: date | None = Field(default=None, description="Optional due date.")
    time_estimate: float | None = Field(default=None, description="Estimate in hours.")
