from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass

import inject

from src.board.application.notifier import BoardNotifier
from src.board.domain.events.board_event import BoardEvent
from src.board.domain.exceptions import (
    StaleViewError,
    StoreError,
    TaskNotFoundError,
    ValidationError,
)
from src.board.domain.models.board_view import BoardView
from src.board.domain.models.task import Task, TaskDraft, TaskForm
from src.board.domain.models.task_priority import TaskPriority
from src.board.domain.models.task_status import TaskStatus
from src.board.domain.models.user_context import UserContext
from src.board.domain.repositories import TaskStoreRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _PendingMove:
    token: int
    generation: int
    status: TaskStatus
    column_order: int
    position: int


class TaskBoardSynchronizer:
    """Local, column-partitioned view of one project's tasks kept in sync with the store.

    All operations run on a single event loop. Remote calls are the only
    suspension points, so three tokens guard against late responses:

    * a view generation, bumped whenever the board switches project, so
      that responses belonging to the previous project are discarded;
    * a load sequence, so that only the newest read of the task list is
      applied;
    * a per-task move token, so that only the newest move of a task may
      confirm or roll back its local position.
    """

    def __init__(
        self,
        user: UserContext,
        store: TaskStoreRepository | None = None,
        notifier: BoardNotifier | None = None,
    ) -> None:
        self._user = user
        self._store = store or inject.instance(TaskStoreRepository)
        self._notifier = notifier or inject.instance(BoardNotifier)
        self._project_id: str | None = None
        # Project of the newest select/load, set before its read completes.
        self._requested_project: str | None = None
        self._tasks: list[Task] = []
        self._generation = 0
        self._load_seq = 0
        self._move_tokens = itertools.count(1)
        self._pending_moves: dict[str, _PendingMove] = {}
        # Last store-confirmed copy of each task, with the move token that produced it.
        self._confirmed: dict[str, tuple[int, Task]] = {}

    @property
    def user(self) -> UserContext:
        return self._user

    @property
    def project_id(self) -> str | None:
        return self._project_id

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def view(self) -> BoardView:
        return BoardView.from_tasks(self._project_id, self._tasks)

    async def select_project(self, project_id: str | None) -> BoardView:
        """Switch the board to ``project_id``; ``None`` shows the empty board."""
        if project_id is None:
            self._generation += 1
            self._load_seq += 1
            self._project_id = None
            self._requested_project = None
            self._tasks = []
            self._pending_moves.clear()
            self._confirmed.clear()
            await self._notifier.publish(BoardEvent.project_selected(self._user.user_id, None))
            return self.view()

        view = await self.load(project_id)
        await self._notifier.publish(BoardEvent.project_selected(self._user.user_id, project_id))
        return view

    async def load(self, project_id: str) -> BoardView:
        """Replace the local collection with the project's tasks from the store.

        On failure the previous collection (and project) stays in place.
        """
        self._requested_project = project_id
        try:
            tasks = await self._fetch(project_id, "load", "Unable to load tasks")
        except StoreError:
            # Only the newest read fails with StoreError; the board stays put.
            self._requested_project = self._project_id
            raise
        if project_id != self._project_id:
            self._generation += 1
            self._project_id = project_id
        self._replace_tasks(tasks)
        logger.info(
            "Board loaded",
            extra={"user_id": self._user.user_id, "project_id": project_id, "tasks": len(tasks)},
        )
        await self._notifier.publish(
            BoardEvent.board_loaded(self._user.user_id, project_id, len(tasks))
        )
        return self.view()

    async def create_task(self, form: TaskForm) -> Task:
        """Validate ``form``, insert it and re-read the column list from the store."""
        draft = self._build_draft(form)
        generation = self._generation
        try:
            created = await self._store.insert_task(draft)
        except StoreError as exc:
            self._ensure_current(generation, "create_task")
            await self._report_failure(draft.project_id, "Unable to create the task", exc)
            raise
        self._ensure_current(generation, "create_task")
        if self._requested_project != draft.project_id:
            # A switch to another project is waiting on its read; re-reading
            # the old project would supersede it.
            logger.info(
                "Skipping refresh after create, project switch in progress",
                extra={"task_id": created.id, "project_id": draft.project_id},
            )
            raise StaleViewError("create_task", "project switch in progress")

        # Re-read rather than appending locally: the store owns ids and ordering.
        try:
            tasks = await self._fetch(draft.project_id, "create_task", "Unable to refresh tasks")
        except StaleViewError:
            # A newer read started after the insert and will bring the task in.
            self._ensure_current(generation, "create_task")
            if self._requested_project != draft.project_id:
                raise
        else:
            self._ensure_current(generation, "create_task")
            self._replace_tasks(tasks)
        logger.info(
            "Task created",
            extra={"task_id": created.id, "project_id": created.project_id},
        )
        await self._notifier.publish(BoardEvent.task_created(self._user.user_id, created))
        return created

    async def move_task(self, task_id: str, target_status: TaskStatus | str) -> Task:
        """Move a task to the end of ``target_status``; optimistic, rolled back on failure."""
        status = _coerce(TaskStatus, target_status, "status")
        task = self._require_task(task_id)
        if task.status == status:
            return task

        generation = self._generation
        position = self._tasks.index(task)
        column_order = self._next_column_order(status, exclude=task_id)
        pending = _PendingMove(
            token=next(self._move_tokens),
            generation=generation,
            status=status,
            column_order=column_order,
            position=position,
        )
        self._pending_moves[task_id] = pending
        self._confirmed.setdefault(task_id, (0, task))
        self._tasks.pop(position)
        self._tasks.append(task.model_copy(update={"status": status, "column_order": column_order}))

        try:
            updated = await self._store.update_task(
                task_id, {"status": status.value, "column_order": column_order}
            )
        except StoreError as exc:
            await self._move_failed(task_id, pending, exc)
            raise

        self._ensure_current(generation, "move_task")
        if self._find(task_id) is None:
            raise StaleViewError("move_task", "task no longer on the board")
        confirmed = self._confirmed.get(task_id)
        if confirmed is None or confirmed[0] < pending.token:
            self._confirmed[task_id] = (pending.token, updated)
        if self._pending_moves.get(task_id) is not pending:
            logger.debug(
                "Discarding superseded move response",
                extra={"task_id": task_id, "token": pending.token},
            )
            raise StaleViewError("move_task", "superseded by a newer move")
        del self._pending_moves[task_id]
        self._swap(updated)

        logger.info(
            "Task moved",
            extra={"task_id": task_id, "from": task.status.value, "to": status.value},
        )
        await self._notifier.publish(
            BoardEvent.task_moved(self._user.user_id, updated, from_status=task.status)
        )
        return updated

    async def delete_task(self, task_id: str) -> None:
        """Delete a task in the store, then drop it locally once confirmed."""
        task = self._require_task(task_id)
        generation = self._generation
        try:
            await self._store.delete_task(task_id)
        except StoreError as exc:
            self._ensure_current(generation, "delete_task")
            await self._report_failure(task.project_id, "Unable to delete the task", exc)
            raise
        self._ensure_current(generation, "delete_task")

        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._pending_moves.pop(task_id, None)
        self._confirmed.pop(task_id, None)
        logger.info("Task deleted", extra={"task_id": task_id})
        await self._notifier.publish(
            BoardEvent.task_deleted(self._user.user_id, task.project_id, task_id)
        )

    async def log_time(self, task_id: str, hours: float) -> Task:
        """Add ``hours`` to the time spent on a task once the store confirms it."""
        if hours is None or hours <= 0:
            raise ValidationError("Logged time must be a positive number of hours", field="hours")
        task = self._require_task(task_id)
        total = round((task.time_spent or 0.0) + hours, 2)
        generation = self._generation
        try:
            updated = await self._store.update_task(task_id, {"time_spent": total})
        except StoreError as exc:
            self._ensure_current(generation, "log_time")
            await self._report_failure(task.project_id, "Unable to save time", exc)
            raise
        self._ensure_current(generation, "log_time")
        if self._find(task_id) is None:
            raise StaleViewError("log_time", "task no longer on the board")

        pending = self._pending_moves.get(task_id)
        if pending is None:
            self._confirmed[task_id] = (self._confirmed.get(task_id, (0, task))[0], updated)
        local = self._overlay_pending(updated)
        self._swap(local)
        await self._notifier.publish(BoardEvent.task_time_logged(self._user.user_id, local, hours))
        return local

    async def _move_failed(self, task_id: str, pending: _PendingMove, exc: StoreError) -> None:
        if pending.generation != self._generation:
            raise StaleViewError("move_task", "view changed") from exc
        if self._pending_moves.get(task_id) is not pending:
            # A newer move owns the local state; report without touching it.
            await self._report_failure(self._project_id, "Unable to update the task status", exc)
            return
        del self._pending_moves[task_id]
        current = self._find(task_id)
        if current is None:
            await self._report_failure(self._project_id, "Unable to update the task status", exc)
            return
        _, base = self._confirmed[task_id]
        restored = current.model_copy(
            update={"status": base.status, "column_order": base.column_order}
        )
        self._tasks.remove(current)
        self._tasks.insert(min(pending.position, len(self._tasks)), restored)
        logger.warning(
            "Rolled back task move",
            extra={"task_id": task_id, "attempted": pending.status.value, "error": str(exc)},
        )
        await self._notifier.publish(
            BoardEvent.task_move_reverted(self._user.user_id, restored, pending.status)
        )
        await self._report_failure(self._project_id, "Unable to update the task status", exc)

    async def _fetch(self, project_id: str, operation: str, failure_title: str) -> list[Task]:
        self._load_seq += 1
        seq = self._load_seq
        try:
            tasks = await self._store.list_tasks(project_id)
        except StoreError as exc:
            if seq != self._load_seq:
                raise StaleViewError(operation, "superseded by a newer load") from exc
            await self._report_failure(project_id, failure_title, exc)
            raise
        if seq != self._load_seq:
            logger.info(
                "Discarding superseded task list",
                extra={"operation": operation, "project_id": project_id},
            )
            raise StaleViewError(operation, "superseded by a newer load")
        return tasks

    def _replace_tasks(self, tasks: list[Task]) -> None:
        loaded_ids = {task.id for task in tasks}
        self._pending_moves = {
            task_id: pending
            for task_id, pending in self._pending_moves.items()
            if task_id in loaded_ids and pending.generation == self._generation
        }
        self._confirmed = {task.id: (0, task) for task in tasks}
        self._tasks = [self._overlay_pending(task) for task in tasks]

    def _overlay_pending(self, task: Task) -> Task:
        pending = self._pending_moves.get(task.id)
        if pending is None:
            return task
        return task.model_copy(
            update={"status": pending.status, "column_order": pending.column_order}
        )

    def _build_draft(self, form: TaskForm) -> TaskDraft:
        if self._project_id is None:
            raise ValidationError("Select a project before adding tasks", field="project_id")
        title = (form.title or "").strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        if form.time_estimate is not None and form.time_estimate < 0:
            raise ValidationError("Time estimate cannot be negative", field="time_estimate")
        status = _coerce(TaskStatus, form.status or TaskStatus.TODO.value, "status")
        priority = _coerce(TaskPriority, form.priority or TaskPriority.MEDIUM.value, "priority")
        return TaskDraft(
            project_id=self._project_id,
            user_id=self._user.user_id,
            title=title,
            description=form.description or None,
            status=status,
            priority=priority,
            due_date=form.due_date,
            time_estimate=form.time_estimate,
            column_order=self._next_column_order(status),
        )

    def _next_column_order(self, status: TaskStatus, exclude: str | None = None) -> int:
        orders = [
            task.column_order
            for task in self._tasks
            if task.status == status and task.id != exclude and task.column_order is not None
        ]
        return max(orders) + 1 if orders else 0

    def _ensure_current(self, generation: int, operation: str) -> None:
        if generation != self._generation:
            logger.info(
                "Discarding stale response",
                extra={"operation": operation, "user_id": self._user.user_id},
            )
            raise StaleViewError(operation)

    def _find(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def _require_task(self, task_id: str) -> Task:
        task = self._find(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _swap(self, task: Task) -> bool:
        for index, current in enumerate(self._tasks):
            if current.id == task.id:
                self._tasks[index] = task
                return True
        return False

    async def _report_failure(self, project_id: str | None, title: str, exc: Exception) -> None:
        logger.warning(
            title,
            extra={"user_id": self._user.user_id, "project_id": project_id, "error": str(exc)},
        )
        await self._notifier.publish(
            BoardEvent.error(self._user.user_id, project_id, title, str(exc))
        )


def _coerce(enum_type, value, field: str):
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"Invalid {field} '{value}'; expected one of: {allowed}", field=field) from None
