import pytest

from core.errors import (
    AuthenticationRequired,
    ConsistencyWarning,
    ServerError,
    TaskSyncError,
    ValidationError,
    user_message,
)


def test_error_hierarchy():
    for exc in (ValidationError("bad"), AuthenticationRequired(), ServerError("x"), ConsistencyWarning("update", "p", "t", "r")):
        assert isinstance(exc, TaskSyncError)


def test_consistency_warning_payload():
    warning = ConsistencyWarning("delete", "proj", None, "task still present after delete")

    assert "delete - in project proj" in str(warning)
    assert warning.to_dict() == {
        "operation": "delete",
        "project_id": "proj",
        "task_id": None,
        "reason": "task still present after delete",
        "attempts": 2,
    }


@pytest.mark.parametrize(
    "exc, operation, expected",
    [
        (AuthenticationRequired(), "update", "Could not save change: please sign in again."),
        (ValidationError("bad", "x"), "delete", "Could not delete task: the task reference is invalid."),
        (ServerError("down"), "create", "Could not create task: connection failed. Check your connection and try again."),
        (ServerError("boom", 500), "list", "Could not load tasks: the server returned an error (500). Try again."),
        (RuntimeError("?"), "archive", "Could not archive. Try again."),
    ],
)
def test_user_message(exc, operation, expected):
    assert user_message(exc, operation) == expected
