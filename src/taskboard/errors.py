# src/taskboard/errors.py

from __future__ import annotations

"""
Exceptions raised inside the task state core.

Only ApiError ever crosses a component boundary, and the optimistic
coordinator catches it there. Unknown task ids and empty history stacks are
not errors: the entry points degrade to no-ops instead of raising.
"""


class TaskboardError(Exception):
    """Base class for taskboard exceptions."""


class ApiError(TaskboardError):
    """A confirmation call was rejected by the (mock) backend."""

    def __init__(self, message: str, status_code: int = 500, code: str = "API_ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def __repr__(self) -> str:
        return f"ApiError(code={self.code!r}, status_code={self.status_code}, message={self.message!r})"
