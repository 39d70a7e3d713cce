from __future__ import annotations

import logging
from typing import cast

import inject

from src.board.application.notifier import BoardNotifier
from src.board.application.synchronizer import TaskBoardSynchronizer
from src.board.domain.exceptions import BoardSessionNotFoundError
from src.board.domain.models import BoardView, Project, Task, TaskForm, TaskStatus, UserContext
from src.board.domain.repositories import ProjectRepository, TaskStoreRepository

logger = logging.getLogger(__name__)


class BoardService:
    """Keeps one task board session per user and routes shell actions to it."""

    def __init__(
        self,
        store: TaskStoreRepository | None = None,
        projects: ProjectRepository | None = None,
        notifier: BoardNotifier | None = None,
    ) -> None:
        self._store = store or cast(TaskStoreRepository, inject.instance(TaskStoreRepository))
        self._projects = projects or cast(ProjectRepository, inject.instance(ProjectRepository))
        self._notifier = notifier or cast(BoardNotifier, inject.instance(BoardNotifier))
        self._sessions: dict[str, TaskBoardSynchronizer] = {}

    async def list_projects(self, user: UserContext) -> list[Project]:
        """Return the projects the user can put on the board, newest first."""
        return await self._projects.list_projects(user.user_id)

    async def open_board(self, user: UserContext) -> BoardView:
        """Return the user's board, opening it on their newest project the first time."""
        session = self._sessions.get(user.user_id)
        if session is not None:
            return session.view()

        session = self._session_for(user)
        projects = await self._projects.list_projects(user.user_id)
        if not projects:
            return await session.select_project(None)
        return await session.select_project(projects[0].id)

    async def select_project(self, user: UserContext, project_id: str | None) -> BoardView:
        """Switch the user's board to ``project_id`` after checking they own it."""
        if project_id is not None:
            await self._projects.get_project(user.user_id, project_id)
        return await self._session_for(user).select_project(project_id)

    async def reload(self, user: UserContext) -> BoardView:
        session = self.session(user)
        if session.project_id is None:
            return session.view()
        return await session.load(session.project_id)

    async def create_task(self, user: UserContext, form: TaskForm) -> Task:
        return await self.session(user).create_task(form)

    async def move_task(self, user: UserContext, task_id: str, status: TaskStatus | str) -> Task:
        return await self.session(user).move_task(task_id, status)

    async def delete_task(self, user: UserContext, task_id: str) -> None:
        await self.session(user).delete_task(task_id)

    async def log_time(self, user: UserContext, task_id: str, hours: float) -> Task:
        return await self.session(user).log_time(task_id, hours)

    def current_view(self, user: UserContext) -> BoardView | None:
        session = self._sessions.get(user.user_id)
        return session.view() if session is not None else None

    def session(self, user: UserContext) -> TaskBoardSynchronizer:
        session = self._sessions.get(user.user_id)
        if session is None:
            raise BoardSessionNotFoundError(user.user_id)
        return session

    def close_board(self, user: UserContext) -> None:
        if self._sessions.pop(user.user_id, None) is not None:
            logger.info("Board session closed", extra={"user_id": user.user_id})

    def _session_for(self, user: UserContext) -> TaskBoardSynchronizer:
        session = self._sessions.get(user.user_id)
        if session is None:
            session = TaskBoardSynchronizer(user, store=self._store, notifier=self._notifier)
            self._sessions[user.user_id] = session
            logger.info("Board session opened", extra={"user_id": user.user_id})
        return session
