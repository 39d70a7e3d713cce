from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, Field, computed_field

from src.board.domain.models.task import Task
from src.board.domain.models.task_status import BOARD_COLUMNS, COLUMN_LABELS, TaskStatus


class BoardColumn(BaseModel):
    status: TaskStatus = Field(description="Status rendered by this column.")
    label: str = Field(description="Human readable column title.")
    tasks: list[Task] = Field(default_factory=list, description="Tasks in display order.")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        return len(self.tasks)


class BoardView(BaseModel):
    """Render-ready, column-partitioned snapshot of a project's tasks."""

    project_id: str | None = Field(default=None, description="Selected project, if any.")
    columns: list[BoardColumn] = Field(default_factory=list, description="The four columns.")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def empty(self) -> bool:
        """True when no project is selected and a placeholder should be shown."""
        return self.project_id is None

    def column(self, status: TaskStatus) -> BoardColumn:
        for column in self.columns:
            if column.status == status:
                return column
        raise KeyError(status)

    def task_ids(self, status: TaskStatus) -> list[str]:
        return [task.id for task in self.column(status).tasks]

    @classmethod
    def from_tasks(cls, project_id: str | None, tasks: Sequence[Task]) -> BoardView:
        """Partition ``tasks`` (in store order) into the fixed board columns.

        Within a column tasks sort by ``column_order`` ascending with missing
        keys last; ties keep their position in ``tasks``.
        """
        if project_id is None:
            return cls(project_id=None, columns=[])
        buckets: dict[TaskStatus, list[tuple[int, Task]]] = {s: [] for s in BOARD_COLUMNS}
        for position, task in enumerate(tasks):
            buckets[task.status].append((position, task))
        columns = []
        for status in BOARD_COLUMNS:
            ordered = sorted(buckets[status], key=_column_sort_key)
            columns.append(
                BoardColumn(
                    status=status,
                    label=COLUMN_LABELS[status],
                    tasks=[task for _, task in ordered],
                )
            )
        return cls(project_id=project_id, columns=columns)


def _column_sort_key(entry: tuple[int, Task]) -> tuple[bool, int, int]:
    position, task = entry
    order = task.column_order
    return (order is None, order if order is not None else 0, position)
