from __future__ import annotations


class StoreError(Exception):
    """Raised by a repository when the underlying storage call fails."""


class TodoNotFoundError(StoreError):
    """Raised when a lookup by id matches no row."""

    def __init__(self, todo_id: int) -> None:
        super().__init__(f"todo {todo_id} not found")
        self.todo_id = todo_id


# PUBLIC_INTERFACE
class ApiError(Exception):
    """
    HTTP-facing failure. Rendered as ``{"error": message}`` with the given
    status code by the handler registered in ``create_app``.
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
