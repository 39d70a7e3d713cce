from __future__ import annotations

from typing import Any, Protocol

from src.board.domain.models.project import Project
from src.board.domain.models.task import Task, TaskDraft


class TaskStoreRepository(Protocol):
    """Persistent store contract for project tasks.

    Every method raises ``StoreError`` (or a subclass) on failure.
    """

    async def list_tasks(self, project_id: str) -> list[Task]:
        """Return the project's tasks ordered by ``column_order`` ascending."""

    async def insert_task(self, draft: TaskDraft) -> Task:
        """Persist ``draft`` and return it with its store-assigned id."""

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        """Apply a partial update and return the stored task."""

    async def delete_task(self, task_id: str) -> None:
        """Remove the task identified by ``task_id``."""


class ProjectRepository(Protocol):
    """Read-only access to the projects a user can open on the board."""

    async def list_projects(self, user_id: str) -> list[Project]:
        """Return the user's projects, newest first."""

    async def get_project(self, user_id: str, project_id: str) -> Project:
        """Return the project, enforcing ownership."""
