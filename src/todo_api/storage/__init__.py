"""Storage backends and models."""

from __future__ import annotations

from todo_api.storage.base import MAX_TODO_ID, MIN_TODO_ID, StorageError, TodoStorage
from todo_api.storage.models import Todo
from todo_api.storage.postgres import PostgresTodoStorage
from todo_api.storage.sqlite import SqliteTodoStorage

__all__ = [
    "MAX_TODO_ID",
    "MIN_TODO_ID",
    "PostgresTodoStorage",
    "SqliteTodoStorage",
    "StorageError",
    "Todo",
    "TodoStorage",
    "build_storage",
    "sqlite_path_from_url",
]

_POSTGRES_SCHEMES = ("postgres://", "postgresql://")


def build_storage(
    database_url: str,
    *,
    max_connections: int = 10,
    timeout_s: float = 5.0,
) -> TodoStorage:
    """Pick a backend from the connection string.

    ``postgres://`` and ``postgresql://`` URLs use PostgreSQL; ``sqlite:`` URLs
    and bare file paths use SQLite.
    """
    url = database_url.strip()
    if not url:
        raise ValueError("database_url is required")
    if url.startswith(_POSTGRES_SCHEMES):
        return PostgresTodoStorage(url, max_connections=max_connections, timeout_s=timeout_s)
    return SqliteTodoStorage(
        sqlite_path_from_url(url),
        max_connections=max_connections,
        timeout_s=timeout_s,
    )


def sqlite_path_from_url(database_url: str) -> str:
    """Map a SQLite URL to a file path.

    ``sqlite://todo.db`` and ``sqlite:///todo.db`` are relative paths,
    ``sqlite:////var/data/todo.db`` is absolute. Anything without the
    ``sqlite:`` prefix is already a path.
    """
    if not database_url.startswith("sqlite:"):
        return database_url
    rest = database_url.removeprefix("sqlite:").removeprefix("//")
    if rest.startswith("/"):
        rest = rest[1:]
    if not rest:
        raise ValueError(f"SQLite URL has no database path: {database_url!r}")
    return rest
