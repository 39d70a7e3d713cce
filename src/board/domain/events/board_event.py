from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from src.board.domain.models.board_view import BoardView
from src.board.domain.models.task import Task
from src.board.domain.models.task_status import TaskStatus


class EventType(str, Enum):
    PROJECT_SELECTED = "project_selected"
    BOARD_LOADED = "board_loaded"
    BOARD_SNAPSHOT = "board_snapshot"
    TASK_CREATED = "task_created"
    TASK_MOVED = "task_moved"
    TASK_MOVE_REVERTED = "task_move_reverted"
    TASK_DELETED = "task_deleted"
    TASK_TIME_LOGGED = "task_time_logged"
    ERROR = "error"


class BoardEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: uuid4().hex, description="Event id.")
    type: EventType = Field(description="Kind of board update.")
    user_id: str = Field(description="User whose board emitted the event.")
    project_id: str | None = Field(default=None, description="Project shown on the board.")
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Emit time.")
    payload: dict[str, Any] = Field(default_factory=dict, description="Event body.")

    @classmethod
    def project_selected(cls, user_id: str, project_id: str | None) -> BoardEvent:
        return cls(type=EventType.PROJECT_SELECTED, user_id=user_id, project_id=project_id)

    @classmethod
    def board_loaded(cls, user_id: str, project_id: str, task_count: int) -> BoardEvent:
        return cls(
            type=EventType.BOARD_LOADED,
            user_id=user_id,
            project_id=project_id,
            payload={"task_count": task_count},
        )

    @classmethod
    def board_snapshot(cls, user_id: str, view: BoardView) -> BoardEvent:
        """Full board state, sent to a connection when it subscribes."""
        return cls(
            type=EventType.BOARD_SNAPSHOT,
            user_id=user_id,
            project_id=view.project_id,
            payload={"view": view.model_dump(mode="json")},
        )

    @classmethod
    def task_created(cls, user_id: str, task: Task) -> BoardEvent:
        # The shell closes the creation form when it sees this event.
        return cls(
            type=EventType.TASK_CREATED,
            user_id=user_id,
            project_id=task.project_id,
            payload={
                "task": task.model_dump(mode="json"),
                "title": "Task created",
                "close_form": True,
            },
        )

    @classmethod
    def task_moved(
        cls, user_id: str, task: Task, from_status: TaskStatus
    ) -> BoardEvent:
        return cls(
            type=EventType.TASK_MOVED,
            user_id=user_id,
            project_id=task.project_id,
            payload={
                "task_id": task.id,
                "from_status": from_status.value,
                "to_status": task.status.value,
                "title": "Task status updated",
            },
        )

    @classmethod
    def task_move_reverted(
        cls, user_id: str, task: Task, attempted_status: TaskStatus
    ) -> BoardEvent:
        return cls(
            type=EventType.TASK_MOVE_REVERTED,
            user_id=user_id,
            project_id=task.project_id,
            payload={
                "task_id": task.id,
                "status": task.status.value,
                "attempted_status": attempted_status.value,
            },
        )

    @classmethod
    def task_deleted(cls, user_id: str, project_id: str, task_id: str) -> BoardEvent:
        return cls(
            type=EventType.TASK_DELETED,
            user_id=user_id,
            project_id=project_id,
            payload={"task_id": task_id, "title": "Task deleted"},
        )

    @classmethod
    def task_time_logged(cls, user_id: str, task: Task, hours: float) -> BoardEvent:
        return cls(
            type=EventType.TASK_TIME_LOGGED,
            user_id=user_id,
            project_id=task.project_id,
            payload={
                "task_id": task.id,
                "hours": hours,
                "time_spent": task.time_spent,
                "title": "Time saved",
            },
        )

    @classmethod
    def error(
        cls,
        user_id: str,
        project_id: str | None,
        title: str,
        description: str,
    ) -> BoardEvent:
        return cls(
            type=EventType.ERROR,
            user_id=user_id,
            project_id=project_id,
            payload={"title": title, "description": description},
        )
