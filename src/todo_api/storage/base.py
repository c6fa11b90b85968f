"""Storage interfaces for the todo record lifecycle."""

from __future__ import annotations

from typing import Protocol

from todo_api.storage.models import Todo

# Ids are stored as signed 64-bit integers by every backend.
MIN_TODO_ID = -(2**63)
MAX_TODO_ID = 2**63 - 1


class StorageError(RuntimeError):
    """Backing store is unreachable or returned an unexpected error."""


class TodoStorage(Protocol):
    def migrate(self) -> None: ...

    def create_todo(self, task: str, completed: bool = False) -> Todo: ...

    def list_todos(self) -> list[Todo]: ...

    def get_todo(self, todo_id: int) -> Todo | None: ...

    def update_todo(
        self,
        todo_id: int,
        *,
        task: str | None = None,
        completed: bool | None = None,
    ) -> Todo | None: ...

    def delete_todo(self, todo_id: int) -> bool: ...

    def close(self) -> None: ...
