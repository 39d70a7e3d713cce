class BoardError(Exception):
    """Base class for every failure raised by the task board."""


class ValidationError(BoardError):
    """Raised when local input is rejected before reaching the store."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StoreError(BoardError):
    """Raised when the persistent store fails (network, permission, constraint)."""


class TaskNotFoundError(StoreError):
    """Raised when a task identifier does not exist in the store."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id '{task_id}' was not found.")
        self.task_id = task_id


class ProjectNotFoundError(StoreError):
    """Raised when a project identifier does not exist in the store."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project with id '{project_id}' was not found.")
        self.project_id = project_id


class ProjectAccessDeniedError(StoreError):
    """Raised when a user attempts to open a project they do not own."""

    def __init__(self, project_id: str, user_id: str) -> None:
        super().__init__(f"User '{user_id}' has no access to project '{project_id}'.")
        self.project_id = project_id
        self.user_id = user_id


class StaleViewError(BoardError):
    """Raised when a store response arrives after the board view moved on."""

    def __init__(self, operation: str, detail: str = "view changed") -> None:
        super().__init__(f"Discarded stale response for {operation}: {detail}.")
        self.operation = operation


class BoardSessionNotFoundError(BoardError):
    """Raised when no board has been opened for a user."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"No board is open for user '{user_id}'.")
        self.user_id = user_id
