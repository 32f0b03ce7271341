class TaskLifecycleError(Exception):
    """Base class for errors raised by the task lifecycle core."""


class TaskNotFoundError(TaskLifecycleError):
    """Raised when a task identifier does not exist in the task store."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with ID {task_id} not found")
        self.task_id = task_id


class TaskValidationError(TaskLifecycleError):
    """Raised when a request is malformed beyond what schema validation catches."""


class UnknownBatchActionError(TaskLifecycleError):
    """Raised when a batch request names an action that is not supported."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Unknown action: {action}")
        self.action = action


class PersistenceError(TaskLifecycleError):
    """Raised when the task store fails to read or write.

    The message is safe to show to callers; the driver error is chained as ``__cause__``.
    """

    def __init__(self, message: str = "Failed to access task storage. Please try again later.") -> None:
        super().__init__(message)
        self.message = message


class NotificationDispatchError(TaskLifecycleError):
    """Raised when a store mutation committed but its status notification was not enqueued.

    The committed write is not undone, so callers must not assume nothing changed.
    """

    def __init__(self, message: str, failed_task_ids: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.failed_task_ids = failed_task_ids or []
