from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from todo_api.api.main import create_app
from todo_api.config.settings import Settings
from todo_api.storage import SqliteTodoStorage, StorageError
from todo_api.storage.models import Todo


class UnavailableStorage:
    """Test-only storage double whose backing store is unreachable."""

    def migrate(self) -> None:
        raise StorageError("connection refused")

    def create_todo(self, task: str, completed: bool = False) -> Todo:
        raise StorageError("connection refused")

    def list_todos(self) -> list[Todo]:
        raise StorageError("connection refused")

    def get_todo(self, todo_id: int) -> Todo | None:
        raise StorageError("connection refused")

    def update_todo(
        self,
        todo_id: int,
        *,
        task: str | None = None,
        completed: bool | None = None,
    ) -> Todo | None:
        raise StorageError("connection refused")

    def delete_todo(self, todo_id: int) -> bool:
        raise StorageError("connection refused")

    def close(self) -> None:
        return None


@pytest.fixture
def unavailable_storage() -> UnavailableStorage:
    return UnavailableStorage()


@pytest.fixture
def storage(tmp_path: Path) -> SqliteTodoStorage:
    sqlite_storage = SqliteTodoStorage(tmp_path / "todo.db")
    sqlite_storage.migrate()
    return sqlite_storage


@pytest.fixture
def settings() -> Settings:
    return Settings(app_name="todo-api-test")


@pytest.fixture
def client(storage: SqliteTodoStorage, settings: Settings) -> Iterator[TestClient]:
    app = create_app(storage=storage, settings_override=settings)
    with TestClient(app) as test_client:
        yield test_client
