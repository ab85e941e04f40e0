"""Error taxonomy for task synchronization.

Write-path failures (``ValidationError``, ``AuthenticationRequired``,
``ServerError``) are raised to the caller. ``ConsistencyWarning`` is never
raised by the engine: it is recorded when a verification refetch keeps
disagreeing with the expected post-mutation state.
"""

from typing import Optional


class TaskSyncError(RuntimeError):
    pass


class ValidationError(TaskSyncError):
    """Identifier that cannot be used or resolved; no request was sent."""

    def __init__(self, message: str, identifier: Optional[str] = None) -> None:
        super().__init__(message)
        self.identifier = identifier


class AuthenticationRequired(TaskSyncError):
    def __init__(self, message: str = "Authentication required", status_code: int = 401) -> None:
        super().__init__(message)
        self.status_code = status_code


class ServerError(TaskSyncError):
    """Non-auth failure of a store request. ``status_code`` is None for transport errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConsistencyWarning(TaskSyncError):
    def __init__(
        self,
        operation: str,
        project_id: str,
        task_id: Optional[str],
        reason: str,
        attempts: int = 2,
    ) -> None:
        super().__init__(f"{operation} {task_id or '-'} in project {project_id}: {reason}")
        self.operation = operation
        self.project_id = project_id
        self.task_id = task_id
        self.reason = reason
        self.attempts = attempts

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "project_id": self.project_id,
            "task_id": self.task_id,
            "reason": self.reason,
            "attempts": self.attempts,
        }


_ACTIONS = {
    "create": "create task",
    "update": "save change",
    "delete": "delete task",
    "list": "load tasks",
}


def user_message(exc: BaseException, operation: str = "update") -> str:
    """Actionable text for a failed write, suitable for a toast."""
    action = _ACTIONS.get(operation, operation)
    if isinstance(exc, AuthenticationRequired):
        return f"Could not {action}: please sign in again."
    if isinstance(exc, ValidationError):
        return f"Could not {action}: the task reference is invalid."
    if isinstance(exc, ServerError):
        if exc.status_code is None:
            return f"Could not {action}: connection failed. Check your connection and try again."
        return f"Could not {action}: the server returned an error ({exc.status_code}). Try again."
    return f"Could not {action}. Try again."


__all__ = [
    "TaskSyncError",
    "ValidationError",
    "AuthenticationRequired",
    "ServerError",
    "ConsistencyWarning",
    "user_message",
]
