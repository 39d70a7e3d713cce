from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import (
    APIRouter,
    Depends,
    Header,
    HTTPException,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from pydantic import BaseModel, Field

from src.board.application.services import BoardService
from src.board.domain.events.board_event import BoardEvent
from src.board.domain.exceptions import (
    BoardError,
    BoardSessionNotFoundError,
    ProjectAccessDeniedError,
    ProjectNotFoundError,
    StaleViewError,
    StoreError,
    TaskNotFoundError,
    ValidationError,
)
from src.board.domain.models import BoardView, Project, Task, TaskForm, UserContext
from src.board.presentation.websockets import connection_manager

router = APIRouter(tags=["board"])
logger = logging.getLogger(__name__)

# Instantiate services once (simple DI)
_board_service = BoardService()


class SelectProjectRequest(BaseModel):
    project_id: str | None = Field(default=None, description="Project to show; null clears the board.")


class MoveTaskRequest(BaseModel):
    status: str = Field(..., description="Target column: todo, in_progress, review or completed.")


class LogTimeRequest(BaseModel):
    hours: float = Field(..., description="Hours to add to the time already spent.")


def current_user(x_user_id: str = Header(..., min_length=1)) -> UserContext:
    return UserContext(user_id=x_user_id)


def _raise_http(exc: BoardError) -> NoReturn:
    if isinstance(exc, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": str(exc), "field": exc.field},
        ) from exc
    if isinstance(exc, (TaskNotFoundError, ProjectNotFoundError, BoardSessionNotFoundError)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ProjectAccessDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    if isinstance(exc, StaleViewError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, StoreError):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    logger.exception("Unhandled board error")
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR) from exc


@router.get("/projects", response_model=list[Project], summary="List selectable projects")
async def list_projects(user: UserContext = Depends(current_user)):
    try:
        return await _board_service.list_projects(user)
    except BoardError as exc:
        _raise_http(exc)


@router.get(
    "/board",
    response_model=BoardView,
    summary="Show the task board",
    description="Opens the board on the newest project the first time it is requested.",
)
async def get_board(user: UserContext = Depends(current_user)):
    try:
        return await _board_service.open_board(user)
    except BoardError as exc:
        _raise_http(exc)


@router.post("/board/reload", response_model=BoardView, summary="Re-read the board from the store")
async def reload_board(user: UserContext = Depends(current_user)):
    try:
        return await _board_service.reload(user)
    except BoardError as exc:
        _raise_http(exc)


@router.put("/board/project", response_model=BoardView, summary="Select the board's project")
async def select_project(body: SelectProjectRequest, user: UserContext = Depends(current_user)):
    try:
        return await _board_service.select_project(user, body.project_id)
    except BoardError as exc:
        _raise_http(exc)


@router.delete("/board", status_code=status.HTTP_204_NO_CONTENT, summary="Close the board")
async def close_board(user: UserContext = Depends(current_user)):
    _board_service.close_board(user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/board/tasks",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task in the selected project",
)
async def create_task(form: TaskForm, user: UserContext = Depends(current_user)):
    try:
        return await _board_service.create_task(user, form)
    except BoardError as exc:
        _raise_http(exc)


@router.post(
    "/board/tasks/{task_id}/move",
    response_model=Task,
    summary="Move a task to another column",
    description="Called when a card is dropped on a column. The move is applied locally "
    "before the store confirms it and rolled back if the store rejects it.",
)
async def move_task(task_id: str, body: MoveTaskRequest, user: UserContext = Depends(current_user)):
    try:
        return await _board_service.move_task(user, task_id, body.status)
    except BoardError as exc:
        _raise_http(exc)


@router.post("/board/tasks/{task_id}/time", response_model=Task, summary="Log time on a task")
async def log_time(task_id: str, body: LogTimeRequest, user: UserContext = Depends(current_user)):
    try:
        return await _board_service.log_time(user, task_id, body.hours)
    except BoardError as exc:
        _raise_http(exc)


@router.delete(
    "/board/tasks/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
)
async def delete_task(task_id: str, user: UserContext = Depends(current_user)):
    try:
        await _board_service.delete_task(user, task_id)
    except BoardError as exc:
        _raise_http(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/ws/board/{user_id}")
async def board_updates(websocket: WebSocket, user_id: str) -> None:
    """Stream board events; an open board is sent first as a snapshot."""
    view = _board_service.current_view(UserContext(user_id=user_id))
    snapshot = BoardEvent.board_snapshot(user_id, view) if view is not None else None
    await connection_manager.subscribe(user_id, websocket, snapshot)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        connection_manager.unsubscribe(user_id, websocket)
