from __future__ import annotations

import asyncio
import importlib
from collections import defaultdict, deque
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.board.application.notifier import BoardNotifier
from src.board.application.synchronizer import TaskBoardSynchronizer
from src.board.domain.events.board_event import BoardEvent, EventType
from src.board.domain.exceptions import (
    ProjectAccessDeniedError,
    ProjectNotFoundError,
    StoreError,
    TaskNotFoundError,
)
from src.board.domain.models import Project, Task, TaskDraft, TaskStatus, UserContext
from src.board.domain.repositories import ProjectRepository, TaskStoreRepository
from src.board.infrastructure.postgres.orm import PostgresOrm


class StubTaskStore(TaskStoreRepository):
    """In-memory task store with scriptable failures and delayed responses.

    Writes are applied when the call is made; ``hold`` delays the response
    of the next call to a method until the returned event is set.
    """

    def __init__(self) -> None:
        self.tasks: dict[str, Task] = {}
        self.calls: list[tuple[str, Any]] = []
        self._failures: dict[str, deque[StoreError]] = defaultdict(deque)
        self._holds: dict[str, deque[asyncio.Event]] = defaultdict(deque)
        self._counter = 0

    def add(self, **fields: Any) -> Task:
        self._counter += 1
        fields.setdefault("id", f"task-{self._counter}")
        fields.setdefault("user_id", "user-1")
        task = Task(**fields)
        self.tasks[task.id] = task
        return task

    def fail_next(self, method: str, exc: StoreError | None = None) -> None:
        self._failures[method].append(exc or StoreError(f"{method} failed"))

    def hold(self, method: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._holds[method].append(gate)
        return gate

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def _respond(self, method: str) -> None:
        failure = self._failures[method].popleft() if self._failures[method] else None
        if self._holds[method]:
            await self._holds[method].popleft().wait()
        if failure is not None:
            raise failure

    async def list_tasks(self, project_id: str) -> list[Task]:
        self.calls.append(("list_tasks", project_id))
        snapshot = [t for t in self.tasks.values() if t.project_id == project_id]
        snapshot.sort(key=lambda t: (t.column_order is None, t.column_order or 0))
        await self._respond("list_tasks")
        return snapshot

    async def insert_task(self, draft: TaskDraft) -> Task:
        self.calls.append(("insert_task", draft))
        failing = bool(self._failures["insert_task"])
        task = None
        if not failing:
            self._counter += 1
            task = Task(
                id=f"stored-{self._counter}",
                created_at=datetime.now(UTC),
                **draft.model_dump(),
            )
            self.tasks[task.id] = task
        await self._respond("insert_task")
        return task  # type: ignore[return-value]

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        self.calls.append(("update_task", (task_id, dict(fields))))
        failing = bool(self._failures["update_task"])
        updated = None
        if not failing:
            if task_id not in self.tasks:
                await self._respond("update_task")
                raise TaskNotFoundError(task_id)
            data = self.tasks[task_id].model_dump()
            data.update(fields)
            updated = Task.model_validate(data)
            self.tasks[task_id] = updated
        await self._respond("update_task")
        return updated  # type: ignore[return-value]

    async def delete_task(self, task_id: str) -> None:
        self.calls.append(("delete_task", task_id))
        if not self._failures["delete_task"]:
            if task_id not in self.tasks:
                await self._respond("delete_task")
                raise TaskNotFoundError(task_id)
            del self.tasks[task_id]
        await self._respond("delete_task")


class StubProjectRepository(ProjectRepository):
    def __init__(self, projects: list[Project] | None = None) -> None:
        self.projects = list(projects or [])

    async def list_projects(self, user_id: str) -> list[Project]:
        owned = [p for p in self.projects if p.user_id == user_id]
        return sorted(owned, key=lambda p: p.created_at or datetime.min.replace(tzinfo=UTC), reverse=True)

    async def get_project(self, user_id: str, project_id: str) -> Project:
        for project in self.projects:
            if project.id == project_id:
                if project.user_id != user_id:
                    raise ProjectAccessDeniedError(project_id, user_id)
                return project
        raise ProjectNotFoundError(project_id)


class RecordingNotifier(BoardNotifier):
    def __init__(self) -> None:
        self.events: list[BoardEvent] = []

    async def publish(self, event: BoardEvent) -> None:
        self.events.append(event)

    def types(self) -> list[EventType]:
        return [event.type for event in self.events]

    def errors(self) -> list[BoardEvent]:
        return [event for event in self.events if event.type == EventType.ERROR]


def ids(tasks) -> list[str]:
    return [task.id for task in tasks]


@pytest.fixture
def user() -> UserContext:
    return UserContext(user_id="user-1")


@pytest.fixture
def store() -> StubTaskStore:
    return StubTaskStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def board(user: UserContext, store: StubTaskStore, notifier: RecordingNotifier) -> TaskBoardSynchronizer:
    return TaskBoardSynchronizer(user, store=store, notifier=notifier)


@pytest.fixture
def projects() -> StubProjectRepository:
    return StubProjectRepository(
        [
            Project(id="p-old", user_id="user-1", name="Website", created_at=datetime(2024, 1, 1, tzinfo=UTC)),
            Project(id="p-new", user_id="user-1", name="Mobile app", created_at=datetime(2024, 6, 1, tzinfo=UTC)),
            Project(id="p-other", user_id="user-2", name="Someone else", created_at=datetime(2024, 7, 1, tzinfo=UTC)),
        ]
    )


def _patch_inject_instance(
    monkeypatch: pytest.MonkeyPatch,
    store: StubTaskStore,
    projects: StubProjectRepository,
    notifier: RecordingNotifier,
) -> Callable[[object], object]:
    """Patch `inject.instance` to return the stubs."""
    import inject

    def fake_instance(interface: object) -> object:
        if interface is TaskStoreRepository:
            return store
        if interface is ProjectRepository:
            return projects
        if interface is BoardNotifier:
            return notifier
        raise RuntimeError(f"Unexpected dependency request: {interface}")

    monkeypatch.setattr(inject, "instance", fake_instance)
    return fake_instance


@pytest.fixture
def api_client(
    monkeypatch: pytest.MonkeyPatch,
    store: StubTaskStore,
    projects: StubProjectRepository,
    notifier: RecordingNotifier,
):
    """FastAPI test client with the board service wired to the stubs."""
    _patch_inject_instance(monkeypatch, store, projects, notifier)

    # Reload so the module-level service picks up the patched injector.
    routes_module = importlib.reload(importlib.import_module("src.board.presentation.routes"))

    app = FastAPI()
    app.include_router(routes_module.router)
    client = TestClient(app)
    return client, store, notifier


@pytest_asyncio.fixture
async def sqlite_orm(tmp_path):
    orm = PostgresOrm(f"sqlite+aiosqlite:///{tmp_path / 'board.db'}")
    await orm.create_all()
    yield orm
    await orm.dispose()
