from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from src.board.domain.exceptions import (
    ProjectAccessDeniedError,
    ProjectNotFoundError,
    StoreError,
    TaskNotFoundError,
)
from src.board.domain.models.project import Project
from src.board.domain.models.task import Task, TaskDraft
from src.board.domain.repositories import ProjectRepository, TaskStoreRepository
from src.board.infrastructure.postgres.mappers import OrmMapper
from src.board.infrastructure.postgres.orm import PostgresOrm, ProjectRow, ProjectTaskRow

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store operation failed", extra={"operation": operation, "error": str(exc)})
        raise StoreError(f"Store failed during {operation}") from exc


class PostgresTaskStore(TaskStoreRepository):
    """Postgres-backed task store using SQLAlchemy async sessions."""

    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def list_tasks(self, project_id: str) -> list[Task]:
        """List a project's tasks by column order; ties keep insertion order."""
        statement = (
            select(ProjectTaskRow)
            .where(ProjectTaskRow.project_id == project_id)
            .order_by(
                ProjectTaskRow.column_order.asc().nulls_last(),
                ProjectTaskRow.created_at,
                ProjectTaskRow.id,
            )
        )
        with _store_errors("list_tasks"):
            async with self._orm.session_factory() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        return [OrmMapper.to_domain_task(row) for row in rows]

    async def insert_task(self, draft: TaskDraft) -> Task:
        """Persist a new task and return it with its generated id."""
        row = OrmMapper.to_task_row(uuid4().hex, draft, datetime.now(UTC))
        with _store_errors("insert_task"):
            async with self._orm.session_factory() as session:
                async with session.begin():
                    session.add(row)
        return OrmMapper.to_domain_task(row)

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        """Apply a partial update to a task."""
        values = OrmMapper.to_column_values(fields)
        with _store_errors("update_task"):
            async with self._orm.session_factory() as session:
                async with session.begin():
                    row = await session.get(ProjectTaskRow, task_id)
                    if row is None:
                        raise TaskNotFoundError(task_id)
                    for name, value in values.items():
                        setattr(row, name, value)
                    row.updated_at = datetime.now(UTC)
        return OrmMapper.to_domain_task(row)

    async def delete_task(self, task_id: str) -> None:
        with _store_errors("delete_task"):
            async with self._orm.session_factory() as session:
                async with session.begin():
                    row = await session.get(ProjectTaskRow, task_id)
                    if row is None:
                        raise TaskNotFoundError(task_id)
                    await session.delete(row)


class PostgresProjectRepository(ProjectRepository):
    def __init__(self, orm: PostgresOrm) -> None:
        self._orm = orm

    async def list_projects(self, user_id: str) -> list[Project]:
        statement = (
            select(ProjectRow)
            .where(ProjectRow.user_id == user_id)
            .order_by(ProjectRow.created_at.desc(), ProjectRow.id)
        )
        with _store_errors("list_projects"):
            async with self._orm.session_factory() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        return [OrmMapper.to_domain_project(row) for row in rows]

    async def get_project(self, user_id: str, project_id: str) -> Project:
        """Fetch a project by id and enforce ownership."""
        with _store_errors("get_project"):
            async with self._orm.session_factory() as session:
                row = await session.get(ProjectRow, project_id)
        if row is None:
            raise ProjectNotFoundError(project_id)
        if row.user_id != user_id:
            raise ProjectAccessDeniedError(project_id, user_id)
        return OrmMapper.to_domain_project(row)
