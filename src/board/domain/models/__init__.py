from src.board.domain.models.board_view import BoardColumn, BoardView
from src.board.domain.models.project import Project
from src.board.domain.models.task import Task, TaskDraft, TaskForm
from src.board.domain.models.task_priority import TaskPriority
from src.board.domain.models.task_status import BOARD_COLUMNS, COLUMN_LABELS, TaskStatus
from src.board.domain.models.user_context import UserContext

__all__ = [
    "Task",
    "TaskDraft",
    "TaskForm",
    "TaskStatus",
    "TaskPriority",
    "Project",
    "UserContext",
    "BoardView",
    "BoardColumn",
    "BOARD_COLUMNS",
    "COLUMN_LABELS",
]
