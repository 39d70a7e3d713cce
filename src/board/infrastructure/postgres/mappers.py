from __future__ import annotations

from datetime import date, datetime
from typing import Any

from src.board.domain.exceptions import StoreError
from src.board.domain.models.project import Project
from src.board.domain.models.task import Task, TaskDraft
from src.board.domain.models.task_priority import TaskPriority
from src.board.domain.models.task_status import TaskStatus
from src.board.infrastructure.postgres.orm import ProjectRow, ProjectTaskRow

# project_id and user_id are fixed at creation.
UPDATABLE_TASK_FIELDS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "due_date",
        "time_estimate",
        "time_spent",
        "column_order",
    }
)


class OrmMapper:
    @staticmethod
    def to_task_row(task_id: str, draft: TaskDraft, created_at: datetime) -> ProjectTaskRow:
        return ProjectTaskRow(
            id=task_id,
            project_id=draft.project_id,
            user_id=draft.user_id,
            title=draft.title,
            description=draft.description,
            status=draft.status,
            priority=draft.priority,
            due_date=draft.due_date,
            time_estimate=draft.time_estimate,
            column_order=draft.column_order,
            created_at=created_at,
            updated_at=created_at,
        )

    @staticmethod
    def to_project_row(project: Project) -> ProjectRow:
        return ProjectRow(
            id=project.id,
            user_id=project.user_id,
            name=project.name,
            description=project.description,
            status=project.status,
            created_at=project.created_at,
        )

    @staticmethod
    def to_domain_task(row: ProjectTaskRow) -> Task:
        return Task(
            id=row.id,
            project_id=row.project_id,
            user_id=row.user_id,
            title=row.title,
            description=row.description,
            status=row.status,
            priority=row.priority,
            due_date=row.due_date,
            time_estimate=row.time_estimate,
            time_spent=row.time_spent,
            column_order=row.column_order,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def to_domain_project(row: ProjectRow) -> Project:
        return Project(
            id=row.id,
            user_id=row.user_id,
            name=row.name,
            description=row.description,
            status=row.status,
            created_at=row.created_at,
        )

    @staticmethod
    def to_column_values(fields: dict[str, Any]) -> dict[str, Any]:
        """Convert a partial task update into typed column values."""
        unknown = set(fields) - UPDATABLE_TASK_FIELDS
        if unknown:
            raise StoreError(f"Cannot update task fields: {', '.join(sorted(unknown))}")
        values: dict[str, Any] = {}
        for name, value in fields.items():
            try:
                values[name] = OrmMapper._column_value(name, value)
            except (TypeError, ValueError) as exc:
                raise StoreError(f"Invalid value for '{name}': {value!r}") from exc
        return values

    @staticmethod
    def _column_value(name: str, value: Any) -> Any:
        if value is None:
            if name in ("title", "status", "priority"):
                raise ValueError(f"{name} cannot be null")
            return None
        if name == "status":
            return TaskStatus(value)
        if name == "priority":
            return TaskPriority(value)
        if name == "due_date" and not isinstance(value, date):
            return date.fromisoformat(value)
        if name in ("time_estimate", "time_spent"):
            number = float(value)
            if number < 0:
                raise ValueError(f"{name} cannot be negative")
            return number
        if name == "column_order":
            return int(value)
        if name == "title" and not str(value).strip():
            raise ValueError("title cannot be blank")
        return value
